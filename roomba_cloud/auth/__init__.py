"""
Authentication utilities for the iRobot cloud API.

This module provides AWS SigV4 request signing for the execute-api endpoints.
"""

from .canonical import (
    CanonicalRequest,
    HeaderMap,
    build_canonical_request,
    canonical_query_string,
    canonical_uri,
)
from .errors import ClockError, ConfigurationError, CryptoError, SigningError
from .primitives import EMPTY_PAYLOAD_SHA256, hmac_sha256, sha256
from .sigv4 import (
    AWSCredentials,
    RequestDescription,
    SignedRequest,
    SigningContext,
    SigV4Auth,
    derive_signing_key,
    generate_signed_headers,
    get_aws_credentials,
    sign,
)

__all__ = [
    # Signing
    "AWSCredentials",
    "RequestDescription",
    "SignedRequest",
    "SigningContext",
    "SigV4Auth",
    "derive_signing_key",
    "generate_signed_headers",
    "get_aws_credentials",
    "sign",
    # Canonical request
    "CanonicalRequest",
    "HeaderMap",
    "build_canonical_request",
    "canonical_query_string",
    "canonical_uri",
    # Primitives
    "EMPTY_PAYLOAD_SHA256",
    "hmac_sha256",
    "sha256",
    # Errors
    "SigningError",
    "ConfigurationError",
    "CryptoError",
    "ClockError",
]
