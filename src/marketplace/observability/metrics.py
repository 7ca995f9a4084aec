"""Prometheus metrics instrumentation for the marketplace inbox.

Provides:
- ``setup_metrics(app)``: Attach prometheus-fastapi-instrumentator to a FastAPI app,
  exposing ``/metrics`` with HTTP request duration/count plus custom inbox counters.
- ``MESSAGES_MARKED_READ``: Counter of read flags persisted to the store.
- ``READ_MARK_FAILURES``: Counter of read-mark store calls that failed.
- ``MESSAGES_SENT``: Counter of messages inserted by the send and reply paths.
"""

from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

MESSAGES_MARKED_READ: Counter = Counter(
    "inbox_messages_marked_read_total",
    "Total number of messages whose read flag was persisted",
)

READ_MARK_FAILURES: Counter = Counter(
    "inbox_read_mark_failures_total",
    "Total number of read-mark store calls that failed",
)

MESSAGES_SENT: Counter = Counter(
    "inbox_messages_sent_total",
    "Total number of messages inserted by the send and reply paths",
)


def setup_metrics(app: FastAPI) -> None:
    """Instrument *app* with Prometheus HTTP metrics and expose ``/metrics``.

    Excludes health/ready/metrics endpoints from instrumentation.

    Args:
        app: The FastAPI application to instrument.
    """
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/health", "/ready", "/metrics"],
    ).instrument(app).expose(app, include_in_schema=False, should_gzip=True)
