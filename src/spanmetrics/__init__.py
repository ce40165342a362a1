"""spanmetrics: service and dependency metrics derived from OpenTelemetry spans."""

from __future__ import annotations

from spanmetrics._config import SpanMetricsConfig
from spanmetrics._decorated import DecoratedSpan, decorate_span
from spanmetrics._generator import AwsMetricAttributeGenerator, MetricAttributeGenerator
from spanmetrics._origin import (
    DEFAULT_ORIGIN_DETECTORS,
    OriginDetector,
    SyntheticsCanaryDetector,
    detect_origin,
)
from spanmetrics._processor import SpanMetricsProcessor, SpanMetricsProcessorBuilder
from spanmetrics._sdk import SpanMetricsPipeline, init
from spanmetrics._types import MetricAttributes, OriginResult

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_ORIGIN_DETECTORS",
    "AwsMetricAttributeGenerator",
    "DecoratedSpan",
    "MetricAttributeGenerator",
    "MetricAttributes",
    "OriginDetector",
    "OriginResult",
    "SpanMetricsConfig",
    "SpanMetricsPipeline",
    "SpanMetricsProcessor",
    "SpanMetricsProcessorBuilder",
    "SyntheticsCanaryDetector",
    "__version__",
    "decorate_span",
    "detect_origin",
    "init",
]
