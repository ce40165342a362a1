"""Pipeline wiring: tracer and meter providers exporting over OTLP gRPC."""

from __future__ import annotations

import atexit
import logging
from typing import TYPE_CHECKING

import grpc
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor

from spanmetrics._config import SpanMetricsConfig
from spanmetrics._generator import AwsMetricAttributeGenerator, MetricAttributeGenerator
from spanmetrics._processor import SpanMetricsProcessor, SpanMetricsProcessorBuilder

if TYPE_CHECKING:
    from opentelemetry.sdk.metrics.export import MetricReader
    from opentelemetry.sdk.trace import SpanProcessor
    from opentelemetry.sdk.trace.export import SpanExporter

logger = logging.getLogger("spanmetrics.sdk")


def _build_resource(config: SpanMetricsConfig) -> Resource:
    return Resource.create(
        {
            SERVICE_NAME: config.service_name,
            "deployment.environment": config.environment,
        }
    )


def _exporter_kwargs(config: SpanMetricsConfig) -> dict[str, object]:
    kwargs: dict[str, object] = {"endpoint": config.endpoint, "insecure": config.insecure}
    if not config.insecure:
        kwargs["credentials"] = grpc.ssl_channel_credentials()
    if config.api_key is not None:
        kwargs["headers"] = (("authorization", f"Bearer {config.api_key}"),)
    return kwargs


class SpanMetricsPipeline:
    """Owns the providers that feed spans through a SpanMetricsProcessor.

    Spans end in the TracerProvider, pass through the SpanMetricsProcessor,
    which records metrics on the MeterProvider, and are then exported by the
    next span processor.
    """

    def __init__(
        self,
        config: SpanMetricsConfig,
        *,
        generator: MetricAttributeGenerator | None = None,
        span_exporter: SpanExporter | None = None,
        metric_reader: MetricReader | None = None,
    ) -> None:
        self.config = config
        self.resource = _build_resource(config)
        self._generator = generator if generator is not None else AwsMetricAttributeGenerator()
        self._span_exporter = span_exporter
        self._metric_reader = metric_reader
        self.tracer_provider: TracerProvider | None = None
        self.meter_provider: MeterProvider | None = None
        self.processor: SpanMetricsProcessor | None = None

    def start(self) -> None:
        """Create the providers and register the span metrics processor."""
        if self.tracer_provider is not None:
            return
        exporter_kwargs = _exporter_kwargs(self.config)

        metric_reader = self._metric_reader
        if metric_reader is None:
            metric_reader = PeriodicExportingMetricReader(
                OTLPMetricExporter(**exporter_kwargs),  # type: ignore[arg-type]
                export_interval_millis=self.config.export_interval_ms,
            )
        # Shutdown at exit is handled by this pipeline, not by each provider.
        self.meter_provider = MeterProvider(
            resource=self.resource,
            metric_readers=[metric_reader],
            shutdown_on_exit=False,
        )

        span_exporter = self._span_exporter
        if span_exporter is None:
            span_exporter = OTLPSpanExporter(**exporter_kwargs)  # type: ignore[arg-type]
        export_processor: SpanProcessor
        if self.config.batch_export:
            export_processor = BatchSpanProcessor(span_exporter)
        else:
            export_processor = SimpleSpanProcessor(span_exporter)

        self.processor = (
            SpanMetricsProcessorBuilder(self.meter_provider, export_processor, self.resource)
            .set_generator(self._generator)
            .set_scope_name(self.config.scope_name)
            .build()
        )
        self.tracer_provider = TracerProvider(resource=self.resource, shutdown_on_exit=False)
        self.tracer_provider.add_span_processor(self.processor)
        logger.debug(
            "Span metrics pipeline started for %s -> %s",
            self.config.service_name,
            self.config.endpoint,
        )

    def shutdown(self) -> None:
        """Flush and stop both providers. Errors are logged, never raised."""
        atexit.unregister(self.shutdown)
        if self.tracer_provider is not None:
            try:
                self.tracer_provider.shutdown()
            except Exception:  # noqa: BLE001
                logger.debug("Failed to shut down tracer provider", exc_info=True)
            self.tracer_provider = None
            self.processor = None
        if self.meter_provider is not None:
            try:
                self.meter_provider.shutdown()
            except Exception:  # noqa: BLE001
                logger.debug("Failed to shut down meter provider", exc_info=True)
            self.meter_provider = None

    @property
    def is_running(self) -> bool:
        return self.tracer_provider is not None


def init(
    *,
    endpoint: str,
    service_name: str,
    environment: str = "development",
    scope_name: str | None = None,
    insecure: bool = True,
    api_key: str | None = None,
    export_interval_ms: int = 60000,
    batch_export: bool = True,
    generator: MetricAttributeGenerator | None = None,
    span_exporter: SpanExporter | None = None,
    metric_reader: MetricReader | None = None,
) -> SpanMetricsPipeline:
    """Build and start a span metrics pipeline.

    The returned pipeline is shut down at interpreter exit. Nothing is
    installed globally; pass ``pipeline.tracer_provider`` to
    ``opentelemetry.trace.set_tracer_provider`` to make it the default.
    """
    config_kwargs: dict[str, object] = {}
    if scope_name is not None:
        config_kwargs["scope_name"] = scope_name
    config = SpanMetricsConfig(
        endpoint=endpoint,
        service_name=service_name,
        environment=environment,
        insecure=insecure,
        api_key=api_key,
        export_interval_ms=export_interval_ms,
        batch_export=batch_export,
        **config_kwargs,  # type: ignore[arg-type]
    )
    pipeline = SpanMetricsPipeline(
        config,
        generator=generator,
        span_exporter=span_exporter,
        metric_reader=metric_reader,
    )
    pipeline.start()
    atexit.register(pipeline.shutdown)
    return pipeline
