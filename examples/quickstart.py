"""spanmetrics Quick Start: service and dependency metrics from spans."""

from opentelemetry import trace
from opentelemetry.trace import SpanKind

import spanmetrics

# 1. Build the pipeline (exports traces and metrics to a local collector)
pipeline = spanmetrics.init(
    endpoint="localhost:4317",
    service_name="checkout-service",
    environment="development",
)
assert pipeline.tracer_provider is not None
trace.set_tracer_provider(pipeline.tracer_provider)
tracer = trace.get_tracer(__name__)

# 2. Incoming request: Service/Operation from the resource and span name
with tracer.start_as_current_span("POST /checkout", kind=SpanKind.SERVER) as s:
    s.set_attribute("http.status_code", 200)

    # Outgoing call: RemoteService/RemoteOperation from the rpc.* attributes
    with tracer.start_as_current_span("Charge", kind=SpanKind.CLIENT) as child:
        child.set_attribute("aws.local.operation", "POST /checkout")
        child.set_attribute("rpc.service", "PaymentService")
        child.set_attribute("rpc.method", "Charge")
        child.set_attribute("http.status_code", 503)  # counted as a Fault

# 3. Shutdown (flushes remaining spans and metrics)
pipeline.shutdown()

print("Done! Error, Fault and Latency metrics were exported to localhost:4317")
