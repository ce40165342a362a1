"""Core types and read-only lookups over spans and resources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import ReadableSpan

MetricAttributes = dict[str, str]
"""Low-cardinality labels derived from one span. Empty means "emit nothing"."""


@dataclass(frozen=True)
class OriginResult:
    """Immutable identity of the AWS resource a span originated from."""

    resource_type: str
    resource_arn: str


def span_attribute(span: ReadableSpan, key: str) -> str | None:
    """Return a string span attribute, or None if absent or not a string."""
    attributes = span.attributes
    if not attributes:
        return None
    value = attributes.get(key)
    if isinstance(value, str):
        return value
    return None


def resource_attribute(resource: Resource | None, key: str) -> str | None:
    """Return a string resource attribute, or None if absent or not a string."""
    if resource is None:
        return None
    value = resource.attributes.get(key)
    if isinstance(value, str):
        return value
    return None


def span_id_hex(span: ReadableSpan) -> str:
    """Format the span id the way trace backends display it."""
    context = span.context
    if context is None:
        return "unknown"
    return format(context.span_id, "016x")


def is_sampled(span: ReadableSpan) -> bool:
    context = span.context
    return context is not None and context.trace_flags.sampled


def latency_nanos(span: ReadableSpan) -> int:
    """Wall-clock duration of an ended span in nanoseconds (0 if unknown)."""
    if span.start_time is None or span.end_time is None:
        return 0
    return span.end_time - span.start_time
