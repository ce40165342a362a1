"""Pluggable detection of the AWS resource a span originated from."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol

from spanmetrics._attribute_keys import HTTP_USER_AGENT, USER_AGENT_ORIGINAL
from spanmetrics._types import OriginResult, span_attribute

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import ReadableSpan


class OriginDetector(Protocol):
    """Inspects a span for signals identifying its origin resource.

    Implementations must be side-effect free and must not raise: a span
    without the signal simply yields None.
    """

    def detect_origin(self, span: ReadableSpan) -> OriginResult | None: ...


CANARY_RESOURCE_TYPE = "AWS::Synthetics::Canary"
_CANARY_ARN_PATTERN = re.compile(r"arn:aws:synthetics:[^:\s]+:[^:\s]+:canary:\S+")


class SyntheticsCanaryDetector:
    """Detects CloudWatch Synthetics canaries from the request user agent.

    Canary runtimes append their ARN to the user agent, e.g.
    ``... CloudWatchSynthetics/arn:aws:synthetics:us-east-1:123:canary:name``.
    """

    def detect_origin(self, span: ReadableSpan) -> OriginResult | None:
        user_agent = span_attribute(span, HTTP_USER_AGENT)
        if user_agent is None:
            user_agent = span_attribute(span, USER_AGENT_ORIGINAL)
        if user_agent is None:
            return None
        match = _CANARY_ARN_PATTERN.search(user_agent)
        if match is None:
            return None
        return OriginResult(CANARY_RESOURCE_TYPE, match.group())


DEFAULT_ORIGIN_DETECTORS: tuple[OriginDetector, ...] = (SyntheticsCanaryDetector(),)


def detect_origin(
    detectors: Iterable[OriginDetector], span: ReadableSpan
) -> OriginResult | None:
    """Return the first origin reported by ``detectors``, in order."""
    for detector in detectors:
        origin = detector.detect_origin(span)
        if origin is not None:
            return origin
    return None
