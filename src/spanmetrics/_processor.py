"""Span processor that turns ended spans into error, fault and latency metrics."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from opentelemetry.sdk.trace import SpanProcessor

from spanmetrics._attribute_keys import HTTP_RESPONSE_STATUS_CODE, HTTP_STATUS_CODE
from spanmetrics._decorated import decorate_span
from spanmetrics._generator import AwsMetricAttributeGenerator, MetricAttributeGenerator
from spanmetrics._types import is_sampled, latency_nanos

if TYPE_CHECKING:
    from opentelemetry.context import Context
    from opentelemetry.metrics import Counter, Histogram, MeterProvider
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import ReadableSpan, Span

    from spanmetrics._types import MetricAttributes

logger = logging.getLogger("spanmetrics.processor")

_NANOS_TO_MILLIS = 1_000_000.0

_ERROR_CODE_LOWER_BOUND = 400
_ERROR_CODE_UPPER_BOUND = 499
_FAULT_CODE_LOWER_BOUND = 500
_FAULT_CODE_UPPER_BOUND = 599

# Instrument names
ERROR = "Error"
FAULT = "Fault"
LATENCY = "Latency"
LATENCY_UNITS = "Milliseconds"

DEFAULT_SCOPE_NAME = "SpanMetricsProcessor"


class SpanMetricsProcessor(SpanProcessor):
    """Generates metrics from ended spans and forwards them to the next processor.

    Errors (HTTP 4XX) and faults (HTTP 5XX) are counted and latency is
    recorded in milliseconds, all labelled with the attributes returned by
    ``generator``. When the span is sampled, those attributes are also added
    to the span handed to ``next_processor`` through a DecoratedSpan, so
    exported traces carry the same labels as the metrics.

    ``resource`` labels the metrics; when omitted, each span's own resource
    is used.
    """

    def __init__(
        self,
        error_counter: Counter,
        fault_counter: Counter,
        latency_histogram: Histogram,
        generator: MetricAttributeGenerator,
        next_processor: SpanProcessor,
        resource: Resource | None = None,
    ) -> None:
        self._error_counter = error_counter
        self._fault_counter = fault_counter
        self._latency_histogram = latency_histogram
        self._generator = generator
        self._next = next_processor
        self._resource = resource

    def on_start(self, span: Span, parent_context: Context | None = None) -> None:
        self._next.on_start(span, parent_context=parent_context)

    def is_start_required(self) -> bool:
        return _is_start_required(self._next)

    def on_end(self, span: ReadableSpan) -> None:
        resource = self._resource if self._resource is not None else span.resource
        attributes = self._generator.generate(span, resource)

        if attributes:
            self._record_error_or_fault(span, attributes)
            self._record_latency(span, attributes)

        if not _is_end_required(self._next):
            return
        if is_sampled(span) and attributes:
            span = decorate_span(span, attributes)
        self._next.on_end(span)

    def is_end_required(self) -> bool:
        """Every ended span must be inspected, whatever the next processor needs."""
        return True

    def shutdown(self) -> None:
        self._next.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return self._next.force_flush(timeout_millis)

    def close(self) -> None:
        close = getattr(self._next, "close", None)
        if close is not None:
            close()
        else:
            self._next.shutdown()

    def _record_error_or_fault(
        self, span: ReadableSpan, attributes: MetricAttributes
    ) -> None:
        status_code = _http_status_code(span)
        if status_code is None:
            return
        if _ERROR_CODE_LOWER_BOUND <= status_code <= _ERROR_CODE_UPPER_BOUND:
            self._error_counter.add(1, attributes)
        elif _FAULT_CODE_LOWER_BOUND <= status_code <= _FAULT_CODE_UPPER_BOUND:
            self._fault_counter.add(1, attributes)

    def _record_latency(self, span: ReadableSpan, attributes: MetricAttributes) -> None:
        millis = latency_nanos(span) / _NANOS_TO_MILLIS
        self._latency_histogram.record(millis, attributes)


def _http_status_code(span: ReadableSpan) -> int | None:
    attributes = span.attributes
    if not attributes:
        return None
    for key in (HTTP_STATUS_CODE, HTTP_RESPONSE_STATUS_CODE):
        value = attributes.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _is_start_required(processor: SpanProcessor) -> bool:
    # SDK processors without the requiredness hooks see every span.
    check = getattr(processor, "is_start_required", None)
    return True if check is None else bool(check())


def _is_end_required(processor: SpanProcessor) -> bool:
    check = getattr(processor, "is_end_required", None)
    return True if check is None else bool(check())


class SpanMetricsProcessorBuilder:
    """Builds a SpanMetricsProcessor with instruments taken from a MeterProvider.

    Usage::

        processor = (
            SpanMetricsProcessorBuilder(meter_provider, BatchSpanProcessor(exporter))
            .set_scope_name("my-scope")
            .build()
        )
    """

    def __init__(
        self,
        meter_provider: MeterProvider,
        next_processor: SpanProcessor,
        resource: Resource | None = None,
    ) -> None:
        self._meter_provider = meter_provider
        self._next = next_processor
        self._resource = resource
        self._generator: MetricAttributeGenerator = AwsMetricAttributeGenerator()
        self._scope_name = DEFAULT_SCOPE_NAME

    def set_generator(self, generator: MetricAttributeGenerator) -> SpanMetricsProcessorBuilder:
        """Replace the default AwsMetricAttributeGenerator."""
        if generator is None:
            raise ValueError("generator must not be None")
        self._generator = generator
        return self

    def set_scope_name(self, scope_name: str) -> SpanMetricsProcessorBuilder:
        """Set the instrumentation scope of the created instruments."""
        if scope_name is None:
            raise ValueError("scope_name must not be None")
        self._scope_name = scope_name
        return self

    def build(self) -> SpanMetricsProcessor:
        meter = self._meter_provider.get_meter(self._scope_name)
        error_counter = meter.create_counter(ERROR)
        fault_counter = meter.create_counter(FAULT)
        latency_histogram = meter.create_histogram(LATENCY, unit=LATENCY_UNITS)
        logger.debug("Created span metric instruments in scope %s", self._scope_name)
        return SpanMetricsProcessor(
            error_counter,
            fault_counter,
            latency_histogram,
            self._generator,
            self._next,
            self._resource,
        )
