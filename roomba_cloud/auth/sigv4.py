"""
AWS SigV4 request signing for the iRobot cloud API.

This module turns a request description, a set of (possibly temporary) AWS
credentials and a single clock reading into the headers an AWS endpoint
accepts. It performs no network I/O; the caller attaches the returned headers
to its own HTTP request.

Usage:
    from roomba_cloud.auth import SigV4Auth, generate_signed_headers

    # One-shot signing
    headers = generate_signed_headers(
        method="GET",
        service="execute-api",
        region="us-east-1",
        host="abc.execute-api.us-east-1.amazonaws.com",
        path="/v1/robot/pmaps",
        query_params={"visible": True, "activeDetails": 2},
        access_key_id=credentials.access_key,
        secret_access_key=credentials.secret_key,
        session_token=credentials.session_token,
    )

    # Bound signer for absolute URLs
    auth = SigV4Auth(region="us-east-1", credentials=credentials)
    headers = auth.sign_request("GET", "https://abc.execute-api.us-east-1.amazonaws.com/v1/robot/pmaps")
"""

import datetime
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Callable, Optional
from urllib.parse import parse_qsl, urlparse

import boto3
from botocore.exceptions import BotoCoreError

from .canonical import CanonicalRequest, HeaderMap, build_canonical_request
from .errors import ClockError, ConfigurationError
from .primitives import BytesLike, hmac_sha256, sha256

logger = logging.getLogger(__name__)

ALGORITHM = "AWS4-HMAC-SHA256"
TERMINATOR = "aws4_request"
DEFAULT_SERVICE = "execute-api"


@dataclass
class AWSCredentials:
    """AWS credentials for SigV4 signing."""
    access_key: str
    secret_key: str = field(repr=False)
    session_token: Optional[str] = field(default=None, repr=False)


def get_aws_credentials(profile_name: Optional[str] = None) -> AWSCredentials:
    """
    Get AWS credentials from the environment or profile.

    Args:
        profile_name: Optional AWS profile name to use

    Returns:
        AWSCredentials object with access key, secret key, and optional session token

    Raises:
        ConfigurationError: If credentials cannot be obtained
    """
    try:
        if profile_name:
            session = boto3.Session(profile_name=profile_name)
        else:
            session = boto3.Session()
        credentials = session.get_credentials()
    except BotoCoreError as e:
        raise ConfigurationError(f"Failed to get AWS credentials: {e}") from e

    if credentials is None:
        raise ConfigurationError("No AWS credentials found")

    frozen_credentials = credentials.get_frozen_credentials()

    return AWSCredentials(
        access_key=frozen_credentials.access_key,
        secret_key=frozen_credentials.secret_key,
        session_token=frozen_credentials.token,
    )


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass(frozen=True)
class SigningContext:
    """
    The single instant a signature is computed for.

    ``date_stamp`` and ``amz_date`` are both derived from ``instant`` so the
    credential scope and the x-amz-date header can never straddle a day or
    second boundary.
    """
    instant: datetime.datetime

    @classmethod
    def from_datetime(cls, value: datetime.datetime) -> "SigningContext":
        """Build a context from a datetime; naive values are taken as UTC."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        return cls(instant=value.astimezone(datetime.timezone.utc))

    @classmethod
    def capture(
        cls,
        clock: Optional[Callable[[], datetime.datetime]] = None,
    ) -> "SigningContext":
        """Read the clock exactly once and build a context from it."""
        clock = clock or _utc_now
        try:
            now = clock()
        except (OSError, OverflowError, ValueError) as e:
            raise ClockError(f"Unable to read the system clock: {e}") from e
        return cls.from_datetime(now)

    @property
    def date_stamp(self) -> str:
        return self.instant.strftime("%Y%m%d")

    @property
    def amz_date(self) -> str:
        return self.instant.strftime("%Y%m%dT%H%M%SZ")


@dataclass(frozen=True)
class RequestDescription:
    """The request being signed."""
    method: str
    host: str
    path: str
    query_params: Mapping = field(default_factory=dict)
    headers: Mapping = field(default_factory=dict)
    payload: BytesLike = ""


@dataclass(frozen=True)
class SignedRequest:
    """Result of signing, with the intermediate values kept for diagnostics."""
    headers: dict[str, str]
    signature: str
    credential_scope: str
    string_to_sign: str
    canonical_request: CanonicalRequest


def derive_signing_key(secret_key: str, date_stamp: str, region: str, service: str) -> bytes:
    """
    Derive the scope-bound signing key.

    Each step's raw digest is the key of the next step.
    """
    k_date = hmac_sha256(f"AWS4{secret_key}", date_stamp)
    k_region = hmac_sha256(k_date, region)
    k_service = hmac_sha256(k_region, service)
    return hmac_sha256(k_service, TERMINATOR)


def credential_scope(date_stamp: str, region: str, service: str) -> str:
    return f"{date_stamp}/{region}/{service}/{TERMINATOR}"


def create_string_to_sign(amz_date: str, scope: str, canonical_request: str) -> str:
    return "\n".join([
        ALGORITHM,
        amz_date,
        scope,
        sha256(canonical_request),
    ])


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def validate_signing_inputs(**fields: object) -> None:
    """
    Check that every named signing input is present and non-empty.

    Raises:
        ConfigurationError: Naming every missing field at once
    """
    missing = tuple(name for name, value in fields.items() if _is_blank(value))
    if missing:
        raise ConfigurationError(
            f"Missing required signing field(s): {', '.join(missing)}",
            fields=missing,
        )


def sign(
    request: RequestDescription,
    credentials: AWSCredentials,
    *,
    region: str,
    service: str,
    context: SigningContext,
) -> SignedRequest:
    """
    Sign a request for the given scope at the given instant.

    This is a pure function of its arguments: identical inputs and context
    always produce identical headers.

    Args:
        request: The request to sign
        credentials: Credentials used for the signature
        region: AWS region of the endpoint
        service: AWS service name (e.g. "execute-api")
        context: The captured signing instant

    Returns:
        SignedRequest holding the output headers

    Raises:
        ConfigurationError: If a required input is missing or headers collide
    """
    validate_signing_inputs(
        method=request.method,
        service=service,
        region=region,
        host=request.host,
        path=request.path,
        access_key_id=credentials.access_key,
        secret_access_key=credentials.secret_key,
    )

    method = request.method.upper()
    headers = HeaderMap(
        {"host": request.host, "x-amz-date": context.amz_date},
        request.headers,
    )

    canonical = build_canonical_request(
        method=method,
        path=request.path,
        query_params=request.query_params,
        headers=headers,
        payload=request.payload,
    )

    scope = credential_scope(context.date_stamp, region, service)
    string_to_sign = create_string_to_sign(context.amz_date, scope, canonical.text)

    logger.debug("Signing %s %s%s for scope %s", method, request.host, request.path, scope)
    logger.debug("Canonical request:\n%s", canonical.text)

    signing_key = derive_signing_key(credentials.secret_key, context.date_stamp, region, service)
    signature = hmac_sha256(signing_key, string_to_sign, encoding="hex")

    authorization_header = (
        f"{ALGORITHM} "
        f"Credential={credentials.access_key}/{scope}, "
        f"SignedHeaders={canonical.signed_headers}, "
        f"Signature={signature}"
    )

    signed_headers = dict(canonical.headers)
    signed_headers["Authorization"] = authorization_header
    if credentials.session_token:
        signed_headers["x-amz-security-token"] = credentials.session_token

    return SignedRequest(
        headers=signed_headers,
        signature=signature,
        credential_scope=scope,
        string_to_sign=string_to_sign,
        canonical_request=canonical,
    )


def generate_signed_headers(
    *,
    method: str,
    service: str,
    region: str,
    host: str,
    path: str,
    access_key_id: str,
    secret_access_key: str,
    query_params: Optional[Mapping] = None,
    headers: Optional[Mapping] = None,
    payload: BytesLike = "",
    session_token: Optional[str] = None,
    now: Optional[datetime.datetime] = None,
) -> dict[str, str]:
    """
    Generate AWS SigV4 signed headers for a request.

    Args:
        method: HTTP method (GET, POST, etc.)
        service: AWS service name (e.g. "execute-api")
        region: AWS region (e.g. "us-east-1")
        host: Host header value
        path: Request path (e.g. "/v1/robot/pmaps")
        access_key_id: AWS access key id
        secret_access_key: AWS secret access key
        query_params: Query parameters, unencoded
        headers: Additional headers; they override host/x-amz-date on collision
        payload: Request body, "" for GET
        session_token: Session token for temporary credentials
        now: The signing instant; the clock is read once when omitted

    Returns:
        Headers to attach to the HTTP request

    Raises:
        ConfigurationError: If a required field is missing
        CryptoError: If the hash backend fails
        ClockError: If the clock cannot be read
    """
    validate_signing_inputs(
        method=method,
        service=service,
        region=region,
        host=host,
        path=path,
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
    )

    context = SigningContext.from_datetime(now) if now is not None else SigningContext.capture()
    request = RequestDescription(
        method=method,
        host=host,
        path=path,
        query_params=query_params or {},
        headers=headers or {},
        payload=payload,
    )
    credentials = AWSCredentials(
        access_key=access_key_id,
        secret_key=secret_access_key,
        session_token=session_token,
    )
    return sign(request, credentials, region=region, service=service, context=context).headers


class SigV4Auth:
    """
    AWS Signature Version 4 signer bound to one region, service and identity.

    Attributes:
        region: AWS region (e.g., "us-east-1")
        service: AWS service name (e.g., "execute-api")
        credentials: AWS credentials for signing
    """

    ALGORITHM = ALGORITHM

    def __init__(
        self,
        region: str,
        service: str = DEFAULT_SERVICE,
        credentials: Optional[AWSCredentials] = None,
        profile_name: Optional[str] = None,
    ):
        """
        Initialize SigV4Auth.

        Args:
            region: AWS region
            service: AWS service name
            credentials: Optional pre-configured credentials
            profile_name: Optional AWS profile name, used when credentials is None
        """
        self.region = region
        self.service = service
        self.credentials = credentials or get_aws_credentials(profile_name)

    def sign_request(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping] = None,
        body: BytesLike = "",
        now: Optional[datetime.datetime] = None,
    ) -> dict[str, str]:
        """
        Sign an HTTP request addressed by absolute URL.

        The query string of ``url`` becomes the signed query parameters; a
        repeated parameter keeps its last value. The path is signed as given,
        so pass it percent-encoded the way it goes on the wire.

        Args:
            method: HTTP method
            url: Full request URL
            headers: Optional existing headers to include
            body: Request body (empty string for GET requests)
            now: Optional signing instant

        Returns:
            Dictionary of headers including the Authorization header
        """
        parsed = urlparse(url)
        context = SigningContext.from_datetime(now) if now is not None else SigningContext.capture()
        request = RequestDescription(
            method=method,
            host=parsed.netloc,
            path=parsed.path or "/",
            query_params=dict(parse_qsl(parsed.query, keep_blank_values=True)),
            headers=headers or {},
            payload=body,
        )
        signed = sign(
            request,
            self.credentials,
            region=self.region,
            service=self.service,
            context=context,
        )
        return signed.headers
