"""
Signed HTTP transport for the iRobot cloud API.

This module sends SigV4-signed GET requests to the execute-api endpoints with
the temporary credentials issued by the cloud login. Signing happens in
``roomba_cloud.auth``; this module only attaches the headers, performs the
call with httpx and reports the outcome.

Usage:
    from roomba_cloud.api_client import CloudApiClient
    from roomba_cloud.credentials import CloudCredentials

    credentials = CloudCredentials.from_response(login_response["credentials"])
    client = CloudApiClient(credentials)

    response = await client.get(
        f"{http_base_auth}/v1/{blid}/pmaps",
        params={"visible": True, "activeDetails": 2},
    )
    if response.success:
        print(response.data)
"""

import datetime
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import urlparse, urlunparse

import httpx

from .auth import (
    RequestDescription,
    SignedRequest,
    SigningContext,
    SigningError,
    canonical_query_string,
    sign,
)
from .config import config
from .credentials import CloudCredentials, RegionParseError
from .metrics import get_metrics_emitter
from .tracing import add_signing_span_attributes, get_tracer

logger = logging.getLogger(__name__)


@dataclass
class ApiResponse:
    """Response from a signed API request."""
    success: bool
    status_code: int = 0
    data: Any = None
    error: Optional[str] = None
    headers: dict[str, str] = field(default_factory=dict)


class CloudApiClient:
    """
    Client for signed GET requests against the cloud API.

    Every request is signed with method GET, an empty payload, and the
    accept/content-type/user-agent headers the mobile app sends.

    Attributes:
        credentials: Temporary credentials from the cloud login
        service: SigV4 service name
        timeout_seconds: Request timeout
    """

    def __init__(
        self,
        credentials: CloudCredentials,
        service: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        default_headers: Optional[Mapping] = None,
    ):
        """
        Initialize the API client.

        Args:
            credentials: Temporary credentials from the cloud login
            service: SigV4 service name (defaults to config.aws_service)
            user_agent: User-Agent to sign and send (defaults to config.user_agent)
            timeout_seconds: Request timeout (defaults to config.request_timeout_seconds)
            default_headers: Replaces the mobile-app header set entirely
        """
        self.credentials = credentials
        self.service = service or config.aws_service
        self.timeout_seconds = timeout_seconds or config.request_timeout_seconds
        if default_headers is None:
            default_headers = {
                "accept": "application/json",
                "content-type": "application/json",
                "user-agent": user_agent or config.user_agent,
            }
        self.default_headers = dict(default_headers)

    @property
    def region(self) -> str:
        return self.credentials.region

    def build_request_headers(
        self,
        url: str,
        params: Optional[Mapping] = None,
        now: Optional[datetime.datetime] = None,
    ) -> dict[str, str]:
        """
        Get SigV4-signed headers for a GET request.

        Args:
            url: Request URL; its own query string is replaced by ``params``
            params: Query parameters
            now: Optional signing instant

        Returns:
            Dictionary of signed headers

        Raises:
            SigningError: If the request cannot be signed
        """
        return self._sign_get(url, params, now).headers

    def _sign_get(
        self,
        url: str,
        params: Optional[Mapping],
        now: Optional[datetime.datetime],
    ) -> SignedRequest:
        parsed = urlparse(url)
        context = SigningContext.from_datetime(now) if now is not None else SigningContext.capture()
        request = RequestDescription(
            method="GET",
            host=parsed.netloc,
            path=self.request_path(url),
            query_params=params or {},
            headers=self.default_headers,
            payload="",
        )
        return sign(
            request,
            self.credentials.to_aws_credentials(),
            region=self.region,
            service=self.service,
            context=context,
        )

    @staticmethod
    def request_path(url: str) -> str:
        """
        Path of ``url`` as httpx puts it on the wire.

        Characters that are not valid in a path are percent-encoded and
        existing escapes are kept, so ``/v1/a b`` and ``/v1/a%20b`` both
        give ``/v1/a%20b``. The signer encodes this form once more.
        """
        raw_path = httpx.URL(url).raw_path.decode("ascii")
        return raw_path.split("?", 1)[0] or "/"

    @staticmethod
    def build_request_url(url: str, params: Optional[Mapping] = None) -> str:
        """Replace the query string of ``url`` with the canonical encoding of ``params``."""
        parsed = urlparse(url)
        return urlunparse(parsed._replace(query=canonical_query_string(params)))

    async def get(self, url: str, params: Optional[Mapping] = None) -> ApiResponse:
        """
        Send a signed GET request and decode the JSON response.

        HTTP errors and transport failures are returned as an unsuccessful
        ApiResponse. Signing failures are raised.

        Args:
            url: Request URL
            params: Query parameters

        Returns:
            ApiResponse with the decoded body

        Raises:
            SigningError: If the request cannot be signed
        """
        tracer = get_tracer()
        metrics = get_metrics_emitter()
        path = urlparse(url).path

        if self.credentials.is_expired():
            logger.warning("Cloud credentials expired at %s", self.credentials.expiration)

        with tracer.start_as_current_span("cloud_api.get") as span:
            try:
                signed = self._sign_get(url, params, None)
            except SigningError as e:
                span.record_exception(e)
                region = None if isinstance(e, RegionParseError) else self.region
                metrics.record_signing_failure(type(e).__name__, region=region)
                raise

            headers = signed.headers
            request_url = self.build_request_url(url, params)
            add_signing_span_attributes(
                span,
                region=self.region,
                service=self.service,
                host=headers["host"],
                signed_headers=signed.canonical_request.signed_headers,
            )
            span.set_attribute("http.path", path)

            start_time = time.time()

            async with httpx.AsyncClient() as client:
                try:
                    response = await client.get(
                        request_url,
                        headers=headers,
                        timeout=self.timeout_seconds,
                    )
                except httpx.RequestError as e:
                    latency_ms = (time.time() - start_time) * 1000
                    span.set_attribute("error.type", "request_error")
                    span.record_exception(e)
                    metrics.record_api_request(
                        status_code=0,
                        latency_ms=latency_ms,
                        path=path,
                        region=self.region,
                        service=self.service,
                        error=str(e),
                    )
                    logger.error("Request to %s failed: %s", path, e)
                    return ApiResponse(success=False, error=f"Request failed: {e}")

            latency_ms = (time.time() - start_time) * 1000
            span.set_attribute("http.status_code", response.status_code)

            try:
                data = response.json()
            except ValueError:
                # Invalid JSON or a body that is not UTF-8
                data = response.text

            success = 200 <= response.status_code < 300
            error = None
            if not success:
                error = f"Request failed with status {response.status_code}"
                span.set_attribute("error.type", "http_error")
                logger.warning("%s for %s", error, path)

            metrics.record_api_request(
                status_code=response.status_code,
                latency_ms=latency_ms,
                path=path,
                region=self.region,
                service=self.service,
                error=error,
            )

            return ApiResponse(
                success=success,
                status_code=response.status_code,
                data=data,
                error=error,
                headers=dict(response.headers),
            )
