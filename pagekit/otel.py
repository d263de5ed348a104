"""OpenTelemetry backend for paginator instrumentation.

Uses only the opentelemetry API: spans go to whatever tracer provider
the host process installed, metrics to its meter provider.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from opentelemetry import context, metrics, trace
from opentelemetry.metrics import Histogram, Meter
from opentelemetry.trace import Span, Status, StatusCode, Tracer

from pagekit.instrumentation import Scope, ScopeStatus

_PRIMITIVES = (str, bool, int, float)


def _attribute(value: Any) -> Any:
    """Coerce *value* to something OpenTelemetry accepts as an attribute."""
    if isinstance(value, _PRIMITIVES):
        return value
    if value is None:
        return ""
    return str(value)


class _SpanScope:
    """A span that is the current span from creation until :meth:`end`."""

    def __init__(self, span: Span) -> None:
        self._span = span
        self._token = context.attach(trace.set_span_in_context(span))

    def set_attribute(self, key: str, value: Any) -> None:
        self._span.set_attribute(key, _attribute(value))

    def record_exception(self, exc: BaseException) -> None:
        self._span.record_exception(exc)

    def set_status(self, status: ScopeStatus, detail: str | None = None) -> None:
        if status == "ok":
            self._span.set_status(Status(StatusCode.OK))
        else:
            self._span.set_status(Status(StatusCode.ERROR, detail))

    def end(self) -> None:
        self._span.end()
        context.detach(self._token)


class OpenTelemetryObservability:
    """Scopes as OpenTelemetry spans, metrics as histograms (one per name)."""

    def __init__(
        self,
        service_name: str = "pagekit-paginator",
        *,
        tracer: Tracer | None = None,
        meter: Meter | None = None,
    ) -> None:
        self._tracer = tracer or trace.get_tracer(service_name)
        self._meter = meter or metrics.get_meter(service_name)
        self._histograms: dict[str, Histogram] = {}

    def start_scope(self, name: str) -> Scope:
        return _SpanScope(self._tracer.start_span(name))

    def record_metric(self, name: str, value: float, tags: Mapping[str, Any]) -> None:
        histogram = self._histograms.get(name)
        if histogram is None:
            histogram = self._meter.create_histogram(name)
            self._histograms[name] = histogram
        histogram.record(value, attributes={k: _attribute(v) for k, v in tags.items()})
