"""Prometheus instrumentation for the API and the data lifecycle."""
