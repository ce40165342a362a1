"""Tests for _decorated module."""

from __future__ import annotations

from typing import Any

from opentelemetry.attributes import BoundedAttributes
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.util.instrumentation import InstrumentationScope
from opentelemetry.trace import SpanContext, SpanKind, TraceFlags
from opentelemetry.trace.status import Status, StatusCode

from spanmetrics._decorated import DecoratedSpan, decorate_span

METRIC_ATTRIBUTES = {"Service": "svc", "Operation": "op"}


def _make_span(attributes: Any = None) -> ReadableSpan:
    context = SpanContext(
        trace_id=1,
        span_id=2,
        is_remote=False,
        trace_flags=TraceFlags(TraceFlags.SAMPLED),
    )
    parent = SpanContext(trace_id=1, span_id=3, is_remote=False)
    return ReadableSpan(
        name="GET /orders",
        context=context,
        parent=parent,
        resource=Resource({"service.name": "orders"}),
        attributes=attributes if attributes is not None else {"original key": "original value"},
        kind=SpanKind.CLIENT,
        status=Status(StatusCode.ERROR, "boom"),
        start_time=1_000,
        end_time=151_000,
        instrumentation_scope=InstrumentationScope("test-scope", "1.0"),
    )


def test_decorated_span_is_a_readable_span() -> None:
    span = _make_span()
    decorated = decorate_span(span, METRIC_ATTRIBUTES)
    assert isinstance(decorated, DecoratedSpan)
    assert isinstance(decorated, ReadableSpan)
    assert decorated is not span
    assert decorated.original is span


def test_attributes_are_the_union() -> None:
    decorated = decorate_span(_make_span(), METRIC_ATTRIBUTES)
    assert dict(decorated.attributes) == {
        "original key": "original value",
        "Service": "svc",
        "Operation": "op",
    }
    assert decorated.total_attribute_count == 3


def test_original_span_is_untouched() -> None:
    span = _make_span()
    decorate_span(span, METRIC_ATTRIBUTES)
    assert dict(span.attributes) == {"original key": "original value"}


def test_metric_attributes_win_on_collision() -> None:
    span = _make_span({"Service": "from-span", "other": 1})
    decorated = decorate_span(span, METRIC_ATTRIBUTES)

    assert decorated.attributes["Service"] == "svc"
    assert decorated.get_attribute("Service") == "svc"
    assert decorated.get_attribute("other") == 1
    assert decorated.get_attribute("missing") is None
    assert len(decorated.attributes) == 3
    assert decorated.total_attribute_count == 3


def test_span_without_attributes() -> None:
    decorated = decorate_span(_make_span({}), METRIC_ATTRIBUTES)
    assert dict(decorated.attributes) == METRIC_ATTRIBUTES
    assert decorated.total_attribute_count == len(METRIC_ATTRIBUTES)


def test_dropped_attributes_are_counted() -> None:
    attributes = BoundedAttributes(maxlen=1, attributes={"a": 1, "b": 2})
    span = _make_span(attributes)
    assert span.dropped_attributes == 1

    decorated = decorate_span(span, METRIC_ATTRIBUTES)

    assert decorated.dropped_attributes == 1
    assert decorated.total_attribute_count == 1 + 1 + len(METRIC_ATTRIBUTES)


def test_other_accessors_delegate() -> None:
    span = _make_span()
    decorated = decorate_span(span, METRIC_ATTRIBUTES)

    assert decorated.name == span.name
    assert decorated.context == span.context
    assert decorated.get_span_context() == span.get_span_context()
    assert decorated.parent == span.parent
    assert decorated.resource is span.resource
    assert decorated.kind == span.kind
    assert decorated.status.status_code == StatusCode.ERROR
    assert decorated.status.description == "boom"
    assert decorated.start_time == span.start_time
    assert decorated.end_time == span.end_time
    assert decorated.instrumentation_scope == span.instrumentation_scope
    assert tuple(decorated.events) == tuple(span.events)
    assert tuple(decorated.links) == tuple(span.links)
    assert decorated.dropped_events == span.dropped_events
    assert decorated.dropped_links == span.dropped_links


def test_to_json_includes_metric_attributes() -> None:
    decorated = decorate_span(_make_span(), METRIC_ATTRIBUTES)
    rendered = decorated.to_json()
    assert '"Service": "svc"' in rendered
    assert '"original key": "original value"' in rendered
