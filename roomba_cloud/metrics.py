"""
CloudWatch metrics for signed cloud API requests.

Metrics are published with the Embedded Metric Format (EMF): a JSON line on
stdout that CloudWatch turns into metrics, with no PutMetricData calls.
"""

import json
import os
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class MetricUnit(str, Enum):
    """CloudWatch metric units."""
    COUNT = "Count"
    MILLISECONDS = "Milliseconds"
    NONE = "None"


class SignerMetricName(str, Enum):
    """Metric names for the signing client."""
    API_REQUEST_COUNT = "ApiRequestCount"
    API_REQUEST_SUCCESS = "ApiRequestSuccess"
    API_REQUEST_AUTH_FAILURE = "ApiRequestAuthFailure"
    API_REQUEST_ERROR = "ApiRequestError"
    API_REQUEST_LATENCY = "ApiRequestLatency"

    SIGNING_FAILURE = "SigningFailure"


@dataclass
class MetricDimensions:
    """Dimensions for CloudWatch metrics."""
    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    region: Optional[str] = None
    service: Optional[str] = None
    error_type: Optional[str] = None

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary, excluding None values."""
        result = {"Environment": self.environment}
        if self.region:
            result["Region"] = self.region
        if self.service:
            result["Service"] = self.service
        if self.error_type:
            result["ErrorType"] = self.error_type
        return result


class MetricsEmitter:
    """CloudWatch metrics emitter using Embedded Metric Format (EMF)."""

    NAMESPACE = "RoombaCloud"

    def __init__(self, service_name: str = "roomba-cloud"):
        self.service_name = service_name
        self._dimensions = MetricDimensions()

    def _create_emf_log(
        self,
        metrics: dict[str, tuple[float, MetricUnit]],
        dimensions: Optional[MetricDimensions] = None,
        properties: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Create an EMF-formatted log entry.

        Args:
            metrics: Dictionary of metric name to (value, unit) tuples
            dimensions: Optional custom dimensions
            properties: Additional properties to include in the log

        Returns:
            EMF-formatted dictionary
        """
        dim_dict = (dimensions or self._dimensions).to_dict()

        emf_log: dict[str, Any] = {
            "_aws": {
                "Timestamp": int(time.time() * 1000),
                "CloudWatchMetrics": [
                    {
                        "Namespace": self.NAMESPACE,
                        "Dimensions": [list(dim_dict.keys())],
                        "Metrics": [
                            {"Name": name, "Unit": unit.value}
                            for name, (_, unit) in metrics.items()
                        ],
                    }
                ],
            },
            "service": self.service_name,
            **dim_dict,
        }

        for name, (value, _) in metrics.items():
            emf_log[name] = value

        if properties:
            emf_log.update(properties)

        return emf_log

    def emit_multiple(
        self,
        metrics: dict[SignerMetricName, tuple[float, MetricUnit]],
        dimensions: Optional[MetricDimensions] = None,
        properties: Optional[dict[str, Any]] = None,
    ) -> None:
        """Emit multiple metrics in a single log entry."""
        metrics_dict = {name.value: value_unit for name, value_unit in metrics.items()}
        emf_log = self._create_emf_log(metrics_dict, dimensions, properties)
        # Print to stdout for CloudWatch to pick up
        print(json.dumps(emf_log))

    def record_api_request(
        self,
        status_code: int,
        latency_ms: float,
        path: str,
        region: Optional[str] = None,
        service: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        """
        Record a signed API request.

        Args:
            status_code: HTTP status code (0 when no response was received)
            latency_ms: Request latency in milliseconds
            path: Request path
            region: Signing region
            service: Signing service
            error: Error message if the request failed
        """
        dims = MetricDimensions(region=region, service=service)

        metrics: dict[SignerMetricName, tuple[float, MetricUnit]] = {
            SignerMetricName.API_REQUEST_COUNT: (1, MetricUnit.COUNT),
            SignerMetricName.API_REQUEST_LATENCY: (latency_ms, MetricUnit.MILLISECONDS),
        }

        if 200 <= status_code < 300:
            metrics[SignerMetricName.API_REQUEST_SUCCESS] = (1, MetricUnit.COUNT)
        elif status_code in (401, 403):
            metrics[SignerMetricName.API_REQUEST_AUTH_FAILURE] = (1, MetricUnit.COUNT)
        else:
            metrics[SignerMetricName.API_REQUEST_ERROR] = (1, MetricUnit.COUNT)

        properties: dict[str, Any] = {"statusCode": status_code, "path": path}
        if error:
            properties["error"] = error

        self.emit_multiple(metrics, dims, properties)

    def record_signing_failure(self, error_type: str, region: Optional[str] = None) -> None:
        """Record a request that could not be signed."""
        self.emit_multiple(
            {SignerMetricName.SIGNING_FAILURE: (1, MetricUnit.COUNT)},
            MetricDimensions(region=region, error_type=error_type),
        )


_metrics_emitter: Optional[MetricsEmitter] = None


def get_metrics_emitter() -> MetricsEmitter:
    """Get the global metrics emitter instance."""
    global _metrics_emitter
    if _metrics_emitter is None:
        _metrics_emitter = MetricsEmitter()
    return _metrics_emitter


def init_metrics(service_name: str = "roomba-cloud") -> MetricsEmitter:
    """Initialize the global metrics emitter."""
    global _metrics_emitter
    _metrics_emitter = MetricsEmitter(service_name)
    return _metrics_emitter
