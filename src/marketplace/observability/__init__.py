"""Metrics and request tracing for the HTTP surface."""
