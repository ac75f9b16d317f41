"""OpenTelemetry setup and span helpers for the command line surface.

The engines themselves stay pure; spans are opened around the CLI commands
that call them.
"""

from __future__ import annotations

import os
import sys
from contextlib import nullcontext
from typing import Any, ContextManager, Mapping, Sequence, TextIO

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
    SpanExportResult,
)

_INITIALIZED = False
_ENABLED = False
# The widest command span (cli.plan) records four attributes.
_MAX_SPAN_ATTRS = 4


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def is_enabled() -> bool:
    return _as_bool(os.getenv("DAYGUIDE_TRACING_ENABLED"), default=True)


def configure_telemetry() -> bool:
    """Configure the global tracer provider once. Returns tracing enabled state."""
    global _INITIALIZED
    global _ENABLED

    if _INITIALIZED:
        return _ENABLED

    _ENABLED = is_enabled()
    if not _ENABLED:
        _INITIALIZED = True
        return False

    provider = TracerProvider(
        resource=Resource.create({"service.name": "dayguide"}),
    )
    exporter_kind = os.getenv("DAYGUIDE_TRACING_EXPORTER", "console").strip().lower()
    if exporter_kind == "otlp":
        endpoint = os.getenv("DAYGUIDE_OTLP_ENDPOINT", "http://localhost:4318/v1/traces")
        timeout_ms = int(os.getenv("DAYGUIDE_OTLP_TIMEOUT_MS", "1000"))
        exporter: SpanExporter = OTLPSpanExporter(endpoint=endpoint, timeout=timeout_ms / 1000)
    elif os.getenv("DAYGUIDE_TRACING_CONSOLE_MODE", "compact").strip().lower() == "raw":
        exporter = ConsoleSpanExporter(out=sys.stderr)
    else:
        exporter = _CompactConsoleSpanExporter(out=sys.stderr)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    _INITIALIZED = True
    return True


def start_span(name: str) -> ContextManager[Any]:
    """Start a span when tracing is enabled; no-op (yielding None) otherwise."""
    if not configure_telemetry():
        return nullcontext()
    tracer = trace.get_tracer("dayguide")
    return tracer.start_as_current_span(name)


def record_attributes(span: Any, attributes: Mapping[str, Any]) -> None:
    if span is None:
        return
    for key, value in attributes.items():
        if value is not None:
            span.set_attribute(key, value)


class _CompactConsoleSpanExporter(SpanExporter):
    """Console exporter with concise one-line span summaries."""

    _INTERESTING_ATTRS = (
        "hours.state",
        "hours.next_change",
        "plan.candidates",
        "plan.stop_count",
        "plan.total_minutes",
        "plan.warning_count",
        "vectors.kind",
        "vectors.total",
        "vectors.failed",
    )

    def __init__(self, out: TextIO) -> None:
        self._out = out

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        for span in spans:
            try:
                self._out.write(_format_span_line(span, self._INTERESTING_ATTRS) + "\n")
            except ValueError:
                # Stream may be closed during process shutdown under capture.
                return SpanExportResult.SUCCESS
        try:
            self._out.flush()
        except ValueError:
            return SpanExportResult.SUCCESS
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        return None


def _format_span_line(span: ReadableSpan, attrs_whitelist: tuple[str, ...]) -> str:
    duration_ms = max(0.0, (span.end_time - span.start_time) / 1_000_000)
    status_text = "ERR" if span.status.status_code.name == "ERROR" else "OK"
    attr_bits: list[str] = []
    for key in attrs_whitelist:
        if key in span.attributes:
            value = _safe_text(span.attributes[key])
            if value:
                attr_bits.append(f"{key}={value}")
    attr_bits = attr_bits[:_MAX_SPAN_ATTRS]
    if span.status.description:
        attr_bits.append(f"error={_safe_text(span.status.description)}")
    attrs_joined = " | ".join(attr_bits)
    if attrs_joined:
        return f"[trace] {span.name} | {duration_ms:.1f}ms | {status_text} | {attrs_joined}"
    return f"[trace] {span.name} | {duration_ms:.1f}ms | {status_text}"


def _safe_text(value: Any, max_len: int = 80) -> str:
    text = str(value).replace("\n", " ").replace("\r", " ")
    if len(text) > max_len:
        return text[: max_len - 1] + "…"
    return text
