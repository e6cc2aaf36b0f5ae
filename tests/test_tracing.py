"""Tests for the OpenTelemetry tracing module."""

from unittest.mock import MagicMock, patch

import pytest
from opentelemetry import trace

import roomba_cloud.tracing as tracing_module
from roomba_cloud.config import CloudConfig
from roomba_cloud.tracing import (
    add_signing_span_attributes,
    get_tracer,
    init_tracing,
)


@pytest.fixture(autouse=True)
def reset_tracing():
    """Start every test with uninitialized tracing."""
    tracing_module._tracer = None
    tracing_module._initialized = False
    yield


class TestTracingInitialization:
    """Tests for tracing initialization."""

    def test_init_tracing_returns_tracer(self):
        """Test that init_tracing returns a tracer instance."""
        tracer = init_tracing(service_name="test-service")

        assert isinstance(tracer, trace.Tracer)

    def test_init_tracing_is_idempotent(self):
        """Test that calling init_tracing multiple times returns same tracer."""
        tracer1 = init_tracing(service_name="test-service")
        tracer2 = init_tracing(service_name="test-service")

        assert tracer1 is tracer2

    def test_get_tracer_initializes_if_needed(self):
        """Test that get_tracer initializes tracing if not already done."""
        assert get_tracer() is not None
        assert tracing_module._initialized is True

    def test_init_with_console_export(self):
        """Test initialization with console export enabled."""
        tracer = init_tracing(service_name="test-service", enable_console_export=True)

        assert tracer is not None


class TestTracingConfig:
    """Tests for settings taken from CloudConfig."""

    def test_otlp_endpoint_from_config(self):
        """Test that the configured collector endpoint gets an exporter."""
        settings = CloudConfig(otel_endpoint="http://collector:4317")

        with patch.object(tracing_module, "config", settings), \
             patch("roomba_cloud.tracing.OTLPSpanExporter") as exporter, \
             patch("roomba_cloud.tracing.BatchSpanProcessor"), \
             patch("roomba_cloud.tracing.trace.set_tracer_provider"):
            init_tracing(service_name="test-service")

        exporter.assert_called_once_with(endpoint="http://collector:4317", insecure=True)

    def test_explicit_endpoint_wins(self):
        """Test that an endpoint argument overrides the config."""
        settings = CloudConfig(otel_endpoint="http://collector:4317")

        with patch.object(tracing_module, "config", settings), \
             patch("roomba_cloud.tracing.OTLPSpanExporter") as exporter, \
             patch("roomba_cloud.tracing.BatchSpanProcessor"), \
             patch("roomba_cloud.tracing.trace.set_tracer_provider"):
            init_tracing(service_name="test-service", otlp_endpoint="http://other:4317")

        exporter.assert_called_once_with(endpoint="http://other:4317", insecure=True)

    def test_no_exporters_by_default(self):
        """Test that nothing is exported without an endpoint or console flag."""
        with patch.object(tracing_module, "config", CloudConfig()), \
             patch("roomba_cloud.tracing.OTLPSpanExporter") as otlp, \
             patch("roomba_cloud.tracing.ConsoleSpanExporter") as console, \
             patch("roomba_cloud.tracing.trace.set_tracer_provider"):
            init_tracing(service_name="test-service")

        otlp.assert_not_called()
        console.assert_not_called()

    def test_console_export_from_config(self):
        """Test that the config flag enables console export."""
        settings = CloudConfig(otel_console_export=True)

        with patch.object(tracing_module, "config", settings), \
             patch("roomba_cloud.tracing.ConsoleSpanExporter") as console, \
             patch("roomba_cloud.tracing.BatchSpanProcessor"), \
             patch("roomba_cloud.tracing.trace.set_tracer_provider"):
            init_tracing(service_name="test-service")

        console.assert_called_once_with()

    def test_environment_on_resource(self):
        """Test that the deployment environment comes from the config."""
        settings = CloudConfig(environment="staging")

        with patch.object(tracing_module, "config", settings), \
             patch("roomba_cloud.tracing.trace.set_tracer_provider") as set_provider:
            init_tracing(service_name="test-service")

        provider = set_provider.call_args.args[0]
        assert provider.resource.attributes["deployment.environment"] == "staging"
        assert provider.resource.attributes["service.name"] == "test-service"


class TestSigningSpanAttributes:
    """Tests for add_signing_span_attributes."""

    def test_all_attributes(self):
        """Test that scope attributes are set on the span."""
        span = MagicMock()

        add_signing_span_attributes(
            span,
            region="us-east-1",
            service="execute-api",
            host="abc.execute-api.us-east-1.amazonaws.com",
            signed_headers="host;x-amz-date",
        )

        span.set_attribute.assert_any_call("aws.region", "us-east-1")
        span.set_attribute.assert_any_call("aws.service", "execute-api")
        span.set_attribute.assert_any_call("http.host", "abc.execute-api.us-east-1.amazonaws.com")
        span.set_attribute.assert_any_call("sigv4.signed_headers", "host;x-amz-date")
        assert span.set_attribute.call_count == 4

    def test_partial_attributes(self):
        """Test that missing values are skipped."""
        span = MagicMock()

        add_signing_span_attributes(span, region="eu-west-1")

        span.set_attribute.assert_called_once_with("aws.region", "eu-west-1")

    def test_real_span(self):
        """Test against a span from the configured tracer."""
        with get_tracer().start_as_current_span("test_span") as span:
            add_signing_span_attributes(span, region="us-east-1", service="execute-api")
