"""Helpers for web services: binding, validation, paging, responses, SQL filters and tracing."""

__version__ = "0.1.0"

__all__ = [
    "binding_errors",
    "bytesconv",
    "convert",
    "mapping",
    "paging",
    "query",
    "response",
    "tracing_attributes",
    "validation",
]