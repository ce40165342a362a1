"""Read-only span view carrying derived metric attributes."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from opentelemetry.sdk.trace import ReadableSpan

if TYPE_CHECKING:
    from opentelemetry.util.types import AttributeValue

    from spanmetrics._types import MetricAttributes


class DecoratedSpan(ReadableSpan):
    """A ReadableSpan that adds metric attributes to an ended span.

    ``on_end`` only receives read-only spans, yet the derived attributes must
    reach the exporter so metrics can be correlated with traces. This view
    shares everything with the original span by reference except the
    attribute mapping, which is the union of the original attributes and the
    metric attributes (metric attributes win on key collision). The merged
    mapping is built once here and never changes.
    """

    def __init__(self, span: ReadableSpan, metric_attributes: MetricAttributes) -> None:
        original = span.attributes or {}
        merged: dict[str, AttributeValue] = dict(original)
        merged.update(metric_attributes)
        super().__init__(
            name=span.name,
            context=span.context,
            parent=span.parent,
            resource=span.resource,
            attributes=merged,
            events=span.events,
            links=span.links,
            kind=span.kind,
            status=span.status,
            start_time=span.start_time,
            end_time=span.end_time,
            instrumentation_scope=span.instrumentation_scope,
        )
        self._span = span
        self._metric_attributes = metric_attributes
        self._added_attribute_count = len(merged) - len(original)

    @property
    def original(self) -> ReadableSpan:
        """The wrapped span, unchanged."""
        return self._span

    @property
    def metric_attributes(self) -> Mapping[str, str]:
        return self._metric_attributes

    def get_attribute(self, key: str) -> AttributeValue | None:
        """Look up one attribute, consulting the metric attributes first."""
        if key in self._metric_attributes:
            return self._metric_attributes[key]
        original = self._span.attributes
        if original is None:
            return None
        return original.get(key)

    @property
    def total_attribute_count(self) -> int:
        """Attributes recorded on the span, including dropped ones.

        Keys already present on the original span are not counted twice.
        """
        original = self._span.attributes or {}
        return len(original) + self._span.dropped_attributes + self._added_attribute_count

    @property
    def dropped_attributes(self) -> int:
        return self._span.dropped_attributes

    @property
    def dropped_events(self) -> int:
        return self._span.dropped_events

    @property
    def dropped_links(self) -> int:
        return self._span.dropped_links


def decorate_span(span: ReadableSpan, metric_attributes: MetricAttributes) -> DecoratedSpan:
    """Wrap ``span`` so downstream stages see ``metric_attributes`` on it."""
    return DecoratedSpan(span, metric_attributes)
