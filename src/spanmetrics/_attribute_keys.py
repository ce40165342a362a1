"""Attribute keys read from spans/resources and the metric attributes derived from them."""

from __future__ import annotations

from opentelemetry.sdk.resources import SERVICE_NAME

# Span attributes populated upstream by manual instrumentation or other processors.
AWS_LOCAL_OPERATION: str = "aws.local.operation"
AWS_REMOTE_SERVICE: str = "aws.remote.service"
AWS_REMOTE_OPERATION: str = "aws.remote.operation"

# Semantic-convention span attributes.
PEER_SERVICE: str = "peer.service"
RPC_SERVICE: str = "rpc.service"
RPC_METHOD: str = "rpc.method"
DB_SYSTEM: str = "db.system"
DB_OPERATION: str = "db.operation"
FAAS_INVOKED_PROVIDER: str = "faas.invoked_provider"
FAAS_INVOKED_NAME: str = "faas.invoked_name"
MESSAGING_SYSTEM: str = "messaging.system"
MESSAGING_OPERATION: str = "messaging.operation"
GRAPHQL_OPERATION_TYPE: str = "graphql.operation.type"
HTTP_STATUS_CODE: str = "http.status_code"
HTTP_RESPONSE_STATUS_CODE: str = "http.response.status_code"
HTTP_USER_AGENT: str = "http.user_agent"
USER_AGENT_ORIGINAL: str = "user_agent.original"

# Resource attributes.
RESOURCE_SERVICE_NAME: str = SERVICE_NAME

# Generated metric attribute keys.
SERVICE: str = "Service"
OPERATION: str = "Operation"
REMOTE_SERVICE: str = "RemoteService"
REMOTE_OPERATION: str = "RemoteOperation"
ORIGIN_RESOURCE_TYPE: str = "OriginResourceType"
ORIGIN_RESOURCE_ARN: str = "OriginResourceArn"
SPAN_KIND: str = "span.kind"

# RemoteService value used when only graphql.operation.type is present.
GRAPHQL: str = "graphql"

# Defaults when no usable span/resource attribute is found.
UNKNOWN_SERVICE: str = "UnknownService"
UNKNOWN_OPERATION: str = "UnknownOperation"
UNKNOWN_REMOTE_SERVICE: str = "UnknownRemoteService"
UNKNOWN_REMOTE_OPERATION: str = "UnknownRemoteOperation"
