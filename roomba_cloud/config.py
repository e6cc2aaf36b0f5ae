"""Configuration for the iRobot cloud signing client."""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass
class CloudConfig:
    """Configuration for signed cloud API requests."""

    # SigV4 scope
    aws_service: str = "execute-api"

    # Headers the mobile app sends with every signed request
    user_agent: str = "aws-sdk-iOS/2.27.6 iOS/18.0.1 en_US"

    # HTTP transport
    request_timeout_seconds: float = 30.0

    # Logging
    log_level: str = "INFO"
    environment: str = "development"

    # OpenTelemetry configuration
    otel_endpoint: str = ""
    otel_console_export: bool = False

    @classmethod
    def from_env(cls) -> "CloudConfig":
        """Load configuration from environment variables."""
        return cls(
            aws_service=os.getenv("ROOMBA_AWS_SERVICE", cls.aws_service),
            user_agent=os.getenv("ROOMBA_USER_AGENT", cls.user_agent),
            request_timeout_seconds=float(
                os.getenv("ROOMBA_REQUEST_TIMEOUT", str(cls.request_timeout_seconds))
            ),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            environment=os.getenv("ENVIRONMENT", cls.environment),
            otel_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", ""),
            otel_console_export=os.getenv("OTEL_CONSOLE_EXPORT", "").lower() == "true",
        )


# Global config instance
config = CloudConfig.from_env()
