"""Derivation of low-cardinality metric attributes from spans."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol

from opentelemetry.trace import SpanKind

from spanmetrics._attribute_keys import (
    AWS_LOCAL_OPERATION,
    AWS_REMOTE_OPERATION,
    AWS_REMOTE_SERVICE,
    DB_OPERATION,
    DB_SYSTEM,
    FAAS_INVOKED_NAME,
    FAAS_INVOKED_PROVIDER,
    GRAPHQL,
    GRAPHQL_OPERATION_TYPE,
    MESSAGING_OPERATION,
    MESSAGING_SYSTEM,
    OPERATION,
    ORIGIN_RESOURCE_ARN,
    ORIGIN_RESOURCE_TYPE,
    PEER_SERVICE,
    REMOTE_OPERATION,
    REMOTE_SERVICE,
    RESOURCE_SERVICE_NAME,
    RPC_METHOD,
    RPC_SERVICE,
    SERVICE,
    SPAN_KIND,
    UNKNOWN_OPERATION,
    UNKNOWN_REMOTE_OPERATION,
    UNKNOWN_REMOTE_SERVICE,
    UNKNOWN_SERVICE,
)
from spanmetrics._origin import DEFAULT_ORIGIN_DETECTORS, OriginDetector, detect_origin
from spanmetrics._types import (
    MetricAttributes,
    resource_attribute,
    span_attribute,
    span_id_hex,
)

if TYPE_CHECKING:
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import ReadableSpan

logger = logging.getLogger("spanmetrics.generator")

_INGRESS_KINDS = frozenset({SpanKind.SERVER, SpanKind.CONSUMER})
_EGRESS_KINDS = frozenset({SpanKind.CLIENT, SpanKind.PRODUCER})

# (remote service key, remote operation key), highest priority first.
_REMOTE_ATTRIBUTE_PAIRS: tuple[tuple[str, str], ...] = (
    (AWS_REMOTE_SERVICE, AWS_REMOTE_OPERATION),
    (RPC_SERVICE, RPC_METHOD),
    (DB_SYSTEM, DB_OPERATION),
    (FAAS_INVOKED_PROVIDER, FAAS_INVOKED_NAME),
    (MESSAGING_SYSTEM, MESSAGING_OPERATION),
)


class MetricAttributeGenerator(Protocol):
    """Produces the attributes used to label metrics emitted for a span.

    Returning an empty mapping signals that no metrics should be emitted.
    """

    def generate(
        self, span: ReadableSpan, resource: Resource | None
    ) -> MetricAttributes: ...


class AwsMetricAttributeGenerator:
    """Generates service and dependency attributes for incoming and outgoing traffic.

    SERVER and CONSUMER spans are "incoming" traffic, CLIENT and PRODUCER
    spans are "outgoing" traffic, and INTERNAL spans are ignored. Attributes
    come from low-cardinality span and resource attributes; when those are
    missing, a fixed default value is used instead and the substitution is
    logged at DEBUG.
    """

    def __init__(
        self,
        origin_detectors: Iterable[OriginDetector] = DEFAULT_ORIGIN_DETECTORS,
        *,
        logger: logging.Logger = logger,
    ) -> None:
        self._origin_detectors = tuple(origin_detectors)
        self._logger = logger

    @property
    def origin_detectors(self) -> tuple[OriginDetector, ...]:
        return self._origin_detectors

    def generate(
        self, span: ReadableSpan, resource: Resource | None
    ) -> MetricAttributes:
        """Derive metric attributes for ``span``. Never raises."""
        if span.kind in _INGRESS_KINDS:
            return self._ingress_attributes(span, resource)
        if span.kind in _EGRESS_KINDS:
            return self._egress_attributes(span, resource)
        return {}

    def _ingress_attributes(
        self, span: ReadableSpan, resource: Resource | None
    ) -> MetricAttributes:
        attributes: MetricAttributes = {
            SERVICE: self._service(span, resource),
            OPERATION: self._ingress_operation(span),
        }
        origin = detect_origin(self._origin_detectors, span)
        if origin is not None:
            attributes[ORIGIN_RESOURCE_TYPE] = origin.resource_type
            attributes[ORIGIN_RESOURCE_ARN] = origin.resource_arn
        attributes[SPAN_KIND] = span.kind.name
        return attributes

    def _egress_attributes(
        self, span: ReadableSpan, resource: Resource | None
    ) -> MetricAttributes:
        attributes: MetricAttributes = {
            SERVICE: self._service(span, resource),
            OPERATION: self._egress_operation(span),
        }
        remote_service, remote_operation = self._remote_service_and_operation(span)
        attributes[REMOTE_SERVICE] = remote_service
        attributes[REMOTE_OPERATION] = remote_operation
        attributes[SPAN_KIND] = span.kind.name
        return attributes

    def _service(self, span: ReadableSpan, resource: Resource | None) -> str:
        """Service always comes from the resource's service.name."""
        service = resource_attribute(resource, RESOURCE_SERVICE_NAME)
        if service is None:
            self._log_unknown(SERVICE, span)
            return UNKNOWN_SERVICE
        return service

    def _ingress_operation(self, span: ReadableSpan) -> str:
        """Ingress operation is always the span name."""
        if not span.name:
            self._log_unknown(OPERATION, span)
            return UNKNOWN_OPERATION
        return span.name

    def _egress_operation(self, span: ReadableSpan) -> str:
        """Egress operation comes from aws.local.operation, set by an upstream processor."""
        operation = span_attribute(span, AWS_LOCAL_OPERATION)
        if operation is None:
            self._log_unknown(OPERATION, span)
            return UNKNOWN_OPERATION
        return operation

    def _remote_service_and_operation(self, span: ReadableSpan) -> tuple[str, str]:
        """Resolve RemoteService/RemoteOperation from span attributes, in priority order.

        The AWS remote attributes are explicit operator intent and always win.
        After them come RPC, DB, FaaS and messaging attributes; the first pair
        with either half present is used and its missing half is defaulted.
        A lone graphql.operation.type maps to the "graphql" remote service.

        peer.service then replaces RemoteService from any source except
        aws.remote.service, including the UnknownRemoteService default.
        """
        remote_service: str | None = None
        remote_operation: str | None = None
        for service_key, operation_key in _REMOTE_ATTRIBUTE_PAIRS:
            service = span_attribute(span, service_key)
            operation = span_attribute(span, operation_key)
            if service is not None or operation is not None:
                remote_service = self._or_unknown(
                    service, REMOTE_SERVICE, UNKNOWN_REMOTE_SERVICE, span
                )
                remote_operation = self._or_unknown(
                    operation, REMOTE_OPERATION, UNKNOWN_REMOTE_OPERATION, span
                )
                break
        else:
            graphql_operation = span_attribute(span, GRAPHQL_OPERATION_TYPE)
            if graphql_operation is not None:
                remote_service = GRAPHQL
                remote_operation = graphql_operation
            else:
                remote_service = self._or_unknown(
                    None, REMOTE_SERVICE, UNKNOWN_REMOTE_SERVICE, span
                )
                remote_operation = self._or_unknown(
                    None, REMOTE_OPERATION, UNKNOWN_REMOTE_OPERATION, span
                )

        peer_service = span_attribute(span, PEER_SERVICE)
        if peer_service is not None and span_attribute(span, AWS_REMOTE_SERVICE) is None:
            remote_service = peer_service

        return remote_service, remote_operation

    def _or_unknown(
        self, value: str | None, key: str, default: str, span: ReadableSpan
    ) -> str:
        if value is None:
            self._log_unknown(key, span)
            return default
        return value

    def _log_unknown(self, key: str, span: ReadableSpan) -> None:
        self._logger.debug(
            "No valid %s value found for %s span %s",
            key,
            span.kind.name,
            span_id_hex(span),
        )
