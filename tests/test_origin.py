"""Tests for _origin module."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.trace import SpanKind

from spanmetrics._origin import (
    CANARY_RESOURCE_TYPE,
    DEFAULT_ORIGIN_DETECTORS,
    SyntheticsCanaryDetector,
    detect_origin,
)
from spanmetrics._types import OriginResult

CANARY_ARN = "arn:aws:synthetics:us-east-1:1234567890:canary:my-canary"

DETECTOR = SyntheticsCanaryDetector()


def _make_span(attributes: dict[str, Any] | None = None) -> ReadableSpan:
    return ReadableSpan(name="GET /", kind=SpanKind.SERVER, attributes=attributes or {})


class TestSyntheticsCanaryDetector:
    def test_detects_canary_arn(self) -> None:
        user_agent = (
            "Mozilla/5.0 (X11; Linux x86_64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "HeadlessChrome/92.0.4512.0 "
            "Safari/537.36 "
            f"CloudWatchSynthetics/{CANARY_ARN}"
        )
        origin = DETECTOR.detect_origin(_make_span({"http.user_agent": user_agent}))
        assert origin == OriginResult(CANARY_RESOURCE_TYPE, CANARY_ARN)

    def test_arn_ends_at_whitespace(self) -> None:
        user_agent = f"CloudWatchSynthetics/{CANARY_ARN} extra/1.0"
        origin = DETECTOR.detect_origin(_make_span({"http.user_agent": user_agent}))
        assert origin is not None
        assert origin.resource_arn == CANARY_ARN

    def test_no_canary_arn(self) -> None:
        user_agent = "Mozilla/5.0 (X11; Linux x86_64) Safari/537.36"
        assert DETECTOR.detect_origin(_make_span({"http.user_agent": user_agent})) is None

    def test_malformed_arn(self) -> None:
        user_agent = "CloudWatchSynthetics/arn:aws:synthetics:us-east-1:canary:my-canary"
        assert DETECTOR.detect_origin(_make_span({"http.user_agent": user_agent})) is None

    def test_skips_detection_without_user_agent(self) -> None:
        assert DETECTOR.detect_origin(_make_span()) is None

    def test_non_string_user_agent(self) -> None:
        assert DETECTOR.detect_origin(_make_span({"http.user_agent": 12})) is None

    def test_falls_back_to_user_agent_original(self) -> None:
        span = _make_span({"user_agent.original": f"CloudWatchSynthetics/{CANARY_ARN}"})
        origin = DETECTOR.detect_origin(span)
        assert origin is not None
        assert origin.resource_arn == CANARY_ARN


class TestDetectOrigin:
    def test_first_result_short_circuits(self) -> None:
        miss = MagicMock()
        miss.detect_origin.return_value = None
        hit = MagicMock()
        hit.detect_origin.return_value = OriginResult("Type", "arn:hit")
        never = MagicMock()
        span = _make_span()

        assert detect_origin([miss, hit, never], span) == OriginResult("Type", "arn:hit")
        miss.detect_origin.assert_called_once_with(span)
        never.detect_origin.assert_not_called()

    def test_no_match(self) -> None:
        miss = MagicMock()
        miss.detect_origin.return_value = None
        assert detect_origin([miss], _make_span()) is None

    def test_empty_detector_list(self) -> None:
        assert detect_origin([], _make_span()) is None

    def test_default_detectors(self) -> None:
        assert len(DEFAULT_ORIGIN_DETECTORS) == 1
        assert isinstance(DEFAULT_ORIGIN_DETECTORS[0], SyntheticsCanaryDetector)


def test_origin_result_is_frozen() -> None:
    origin = OriginResult("Type", "arn")
    try:
        origin.resource_arn = "changed"  # type: ignore[misc]
        assert False, "Should have raised"
    except AttributeError:
        pass
