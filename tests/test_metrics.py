"""Tests for the custom metrics module."""

import json

import pytest

from roomba_cloud.metrics import (
    MetricDimensions,
    MetricsEmitter,
    MetricUnit,
    SignerMetricName,
    get_metrics_emitter,
    init_metrics,
)


@pytest.fixture(autouse=True)
def silence_metrics():
    """Let EMF lines reach stdout in this module."""
    yield None


def _read_emf(capsys) -> dict:
    captured = capsys.readouterr()
    return json.loads(captured.out.strip())


class TestMetricDimensions:
    """Tests for MetricDimensions dataclass."""

    def test_default_dimensions(self, monkeypatch):
        """Test default dimension values."""
        monkeypatch.setenv("ENVIRONMENT", "test")

        assert MetricDimensions().to_dict() == {"Environment": "test"}

    def test_custom_dimensions(self):
        """Test custom dimension values."""
        dims = MetricDimensions(
            environment="production",
            region="us-east-1",
            service="execute-api",
            error_type="ConfigurationError",
        )

        assert dims.to_dict() == {
            "Environment": "production",
            "Region": "us-east-1",
            "Service": "execute-api",
            "ErrorType": "ConfigurationError",
        }

    def test_none_dimensions_excluded(self):
        """Test that None dimensions are excluded from output."""
        result = MetricDimensions(environment="test", region=None, service="execute-api").to_dict()

        assert "Region" not in result
        assert "Service" in result


class TestMetricsEmitter:
    """Tests for MetricsEmitter class."""

    def test_emit_multiple(self, capsys):
        """Test emitting several metrics in one EMF line."""
        emitter = MetricsEmitter(service_name="test-service")

        emitter.emit_multiple(
            {
                SignerMetricName.API_REQUEST_COUNT: (1, MetricUnit.COUNT),
                SignerMetricName.API_REQUEST_LATENCY: (12.5, MetricUnit.MILLISECONDS),
            },
            MetricDimensions(environment="test"),
            {"path": "/v1/robot/pmaps"},
        )

        emf = _read_emf(capsys)
        cloudwatch = emf["_aws"]["CloudWatchMetrics"][0]
        assert cloudwatch["Namespace"] == "RoombaCloud"
        assert cloudwatch["Dimensions"] == [["Environment"]]
        assert {"Name": "ApiRequestLatency", "Unit": "Milliseconds"} in cloudwatch["Metrics"]
        assert emf["ApiRequestCount"] == 1
        assert emf["ApiRequestLatency"] == 12.5
        assert emf["service"] == "test-service"
        assert emf["path"] == "/v1/robot/pmaps"
        assert isinstance(emf["_aws"]["Timestamp"], int)

    def test_record_successful_request(self, capsys):
        """Test metrics for a 2xx response."""
        MetricsEmitter().record_api_request(
            status_code=200,
            latency_ms=40.0,
            path="/v1/robot/pmaps",
            region="us-east-1",
            service="execute-api",
        )

        emf = _read_emf(capsys)
        assert emf["ApiRequestSuccess"] == 1
        assert "ApiRequestAuthFailure" not in emf
        assert "ApiRequestError" not in emf
        assert emf["statusCode"] == 200
        assert emf["Region"] == "us-east-1"
        assert "error" not in emf

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_record_auth_failure(self, capsys, status_code):
        """Test that rejected signatures are counted separately."""
        MetricsEmitter().record_api_request(
            status_code=status_code,
            latency_ms=10.0,
            path="/v1/robot/pmaps",
            error=f"Request failed with status {status_code}",
        )

        emf = _read_emf(capsys)
        assert emf["ApiRequestAuthFailure"] == 1
        assert "ApiRequestSuccess" not in emf
        assert emf["error"] == f"Request failed with status {status_code}"

    def test_record_transport_error(self, capsys):
        """Test metrics when no response was received."""
        MetricsEmitter().record_api_request(
            status_code=0,
            latency_ms=5.0,
            path="/v1/robot/pmaps",
            error="connection refused",
        )

        emf = _read_emf(capsys)
        assert emf["ApiRequestError"] == 1
        assert emf["statusCode"] == 0

    def test_record_signing_failure(self, capsys):
        """Test the signing failure counter."""
        MetricsEmitter().record_signing_failure("ConfigurationError", region="us-east-1")

        emf = _read_emf(capsys)
        assert emf["SigningFailure"] == 1
        assert emf["ErrorType"] == "ConfigurationError"
        assert emf["Region"] == "us-east-1"


class TestGlobalEmitter:
    """Tests for the module-level emitter."""

    def test_get_metrics_emitter_is_shared(self):
        """Test that the global emitter is created once."""
        assert get_metrics_emitter() is get_metrics_emitter()

    def test_init_metrics_replaces_emitter(self):
        """Test that init_metrics installs a new emitter."""
        emitter = init_metrics(service_name="custom-service")

        assert emitter.service_name == "custom-service"
        assert get_metrics_emitter() is emitter
