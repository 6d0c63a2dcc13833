"""Span attributes describing HTTP requests and responses, with sensitive keys left out."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs, urlsplit

from svcutil.bytesconv import bytes_to_string

EXPORTER_TYPE_GCP = "gcp"
EXPORTER_TYPE_JAEGER_COLLECTOR = "jaeger-collector"
EXPORTER_TYPE_JAEGER_AGENT = "jaeger-agent"

READ_BYTES_KEY = "http.read_bytes"
READ_ERROR_KEY = "http.read_error"
WROTE_BYTES_KEY = "http.wrote_bytes"
WRITE_ERROR_KEY = "http.write_error"
SPAN_TYPE_KEY = "type"
VM_PROVIDER_KEY = "vm.provider"

SPAN_TYPE_VM = (SPAN_TYPE_KEY, "vm")
SPAN_TYPE_DNS = (SPAN_TYPE_KEY, "dns")
SPAN_TYPE_AWS_MARKETPLACE = (SPAN_TYPE_KEY, "aws_marketplace")

REQUEST_COUNT = "http.server.request_count"
REQUEST_CONTENT_LENGTH = "http.server.request_content_length"
RESPONSE_CONTENT_LENGTH = "http.server.response_content_length"
SERVER_LATENCY = "http.server.duration"

OMIT_KEYS = ("key", "Key", "Authorization")

SpanOption = Callable[[Any], None]


@dataclass
class RecordingSpan:
    """A span that keeps the attributes set on it."""

    attributes: dict[str, Any] = field(default_factory=dict)

    def set_attributes(self, attributes: Mapping[str, Any]) -> None:
        """Set or overwrite attributes."""
        self.attributes.update(attributes)


def _as_text(data: bytes | str) -> str:
    return data if isinstance(data, str) else bytes_to_string(data)


def _values(value: str | Iterable[str]) -> list[str]:
    return [value] if isinstance(value, str) else list(value)


def is_need_omit(key: str) -> bool:
    """True when ``key`` looks like it holds a credential."""
    return any(marker in key for marker in OMIT_KEYS)


def set_span_http_attributes(span: Any, *args: SpanOption) -> None:
    """Apply each option to ``span``."""
    for option in args:
        option(span)


def with_request_body(body: bytes | str | None) -> SpanOption:
    """Record a non-empty request body as ``body``."""

    def apply(span: Any) -> None:
        if not body:
            return
        span.set_attributes({"body": _as_text(body)})

    return apply


def with_request_query(url: str | None) -> SpanOption:
    """Record each query parameter as ``params.<name>``, leaving out credentials."""

    def apply(span: Any) -> None:
        if not url:
            return
        raw = urlsplit(url).query
        if not raw:
            return
        parsed = parse_qs(raw, keep_blank_values=True)
        span.set_attributes(
            {f"params.{k}": v for k, v in parsed.items() if not is_need_omit(k)}
        )

    return apply


def with_request_header(headers: Mapping[str, str | Iterable[str]]) -> SpanOption:
    """Record request headers as ``request.header.<name>``, leaving out credentials."""

    def apply(span: Any) -> None:
        span.set_attributes(
            {
                f"request.header.{k}": _values(v)
                for k, v in headers.items()
                if not is_need_omit(k)
            }
        )

    return apply


def with_response_header(headers: Mapping[str, str | Iterable[str]]) -> SpanOption:
    """Record every response header as ``response.header.<name>``."""

    def apply(span: Any) -> None:
        span.set_attributes({f"response.header.{k}": _values(v) for k, v in headers.items()})

    return apply


def with_response_body(body: bytes | str | None) -> SpanOption:
    """Record the response body as ``response.body`` when there is a response."""

    def apply(span: Any) -> None:
        if body is None:
            return
        span.set_attributes({"response.body": _as_text(body)})

    return apply