"""Resilience infrastructure for store calls: retry with backoff and logging."""

from marketplace.resilience.retry import is_transient, resilient_api_call

__all__ = [
    "is_transient",
    "resilient_api_call",
]
