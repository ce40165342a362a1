"""Pipeline configuration."""

from __future__ import annotations

from dataclasses import dataclass

from spanmetrics._processor import DEFAULT_SCOPE_NAME


@dataclass(frozen=True)
class SpanMetricsConfig:
    """Immutable pipeline configuration."""

    endpoint: str
    service_name: str
    environment: str = "development"
    scope_name: str = DEFAULT_SCOPE_NAME
    insecure: bool = True
    api_key: str | None = None
    export_interval_ms: int = 60000
    batch_export: bool = True
