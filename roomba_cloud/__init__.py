"""roomba-cloud - AWS SigV4 request signing for the iRobot cloud API."""

__version__ = "0.1.0"

from .auth import (
    AWSCredentials,
    ClockError,
    ConfigurationError,
    CryptoError,
    SigningContext,
    SigningError,
    SigV4Auth,
    generate_signed_headers,
    sign,
)
from .credentials import CloudCredentials, RegionParseError, parse_region
from .api_client import ApiResponse, CloudApiClient

__all__ = [
    # Signing
    "AWSCredentials",
    "SigningContext",
    "SigV4Auth",
    "generate_signed_headers",
    "sign",
    # Errors
    "SigningError",
    "ConfigurationError",
    "CryptoError",
    "ClockError",
    "RegionParseError",
    # Cloud credentials
    "CloudCredentials",
    "parse_region",
    # Transport
    "ApiResponse",
    "CloudApiClient",
]
