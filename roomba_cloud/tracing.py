"""OpenTelemetry tracing configuration for signed cloud API calls.

This module sets up distributed tracing with support for:
- AWS X-Ray integration via OTLP exporter
- Spans around signed HTTP requests to the cloud API
"""

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.propagators.aws import AwsXRayPropagator
from opentelemetry.sdk.extension.aws.trace import AwsXRayIdGenerator
from opentelemetry.propagate import set_global_textmap

from . import __version__
from .config import config

_tracer: trace.Tracer | None = None
_initialized = False


def init_tracing(
    service_name: str = "roomba-cloud",
    otlp_endpoint: str | None = None,
    enable_console_export: bool = False,
) -> trace.Tracer:
    """Initialize OpenTelemetry tracing.

    Args:
        service_name: Name of the service for tracing
        otlp_endpoint: OTLP collector endpoint (e.g., "http://localhost:4317")
                      If None, uses config.otel_endpoint
        enable_console_export: If True, also export spans to console (for debugging);
                      config.otel_console_export turns this on as well

    Returns:
        Configured tracer instance
    """
    global _tracer, _initialized

    if _initialized and _tracer is not None:
        return _tracer

    resource = Resource.create({
        SERVICE_NAME: service_name,
        "service.version": __version__,
        "deployment.environment": config.environment,
    })

    provider = TracerProvider(
        resource=resource,
        id_generator=AwsXRayIdGenerator(),
    )

    set_global_textmap(AwsXRayPropagator())

    endpoint = otlp_endpoint or config.otel_endpoint
    if endpoint:
        otlp_exporter = OTLPSpanExporter(endpoint=endpoint, insecure=True)
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    if enable_console_export or config.otel_console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)

    _tracer = trace.get_tracer(service_name)
    _initialized = True

    return _tracer


def get_tracer() -> trace.Tracer:
    """Get the configured tracer instance, initializing with defaults if needed."""
    if _tracer is None:
        return init_tracing()
    return _tracer


def add_signing_span_attributes(
    span: trace.Span,
    region: str | None = None,
    service: str | None = None,
    host: str | None = None,
    signed_headers: str | None = None,
) -> None:
    """Add SigV4 scope attributes to a span.

    Only scope information is recorded; keys, tokens and signatures are not.
    """
    if region:
        span.set_attribute("aws.region", region)
    if service:
        span.set_attribute("aws.service", service)
    if host:
        span.set_attribute("http.host", host)
    if signed_headers:
        span.set_attribute("sigv4.signed_headers", signed_headers)
