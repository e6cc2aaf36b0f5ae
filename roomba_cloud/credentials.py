"""
Temporary AWS credentials issued by the iRobot cloud login.

The login exchange returns a ``credentials`` object shaped like::

    {
        "AccessKeyId": "ASIA...",
        "SecretKey": "...",
        "SessionToken": "...",
        "CognitoId": "us-east-1:4b1f...",
        "Expiration": 1700000000
    }

The signing region is not sent separately; it is the part of the Cognito
identity id before the first ':'.
"""

import datetime
from dataclasses import dataclass, field
from typing import Any, Optional

from .auth import AWSCredentials, ConfigurationError

_REQUIRED_KEYS = ("AccessKeyId", "SecretKey", "SessionToken", "CognitoId")


class RegionParseError(ConfigurationError):
    """The identity id does not carry a region prefix."""


def parse_region(identity_id: str) -> str:
    """
    Extract the AWS region from a Cognito identity id.

    Args:
        identity_id: Identity id such as "us-east-1:4b1f..."

    Returns:
        The region prefix, e.g. "us-east-1"

    Raises:
        RegionParseError: If the id has no ':' or the prefix is empty
    """
    if not isinstance(identity_id, str) or ":" not in identity_id:
        raise RegionParseError(
            f"Identity id {identity_id!r} has no region prefix",
            fields=("CognitoId",),
        )
    region = identity_id.split(":", 1)[0].strip()
    if not region:
        raise RegionParseError(
            f"Identity id {identity_id!r} has an empty region prefix",
            fields=("CognitoId",),
        )
    return region


@dataclass
class CloudCredentials:
    """Credentials for signing requests to the iRobot cloud API."""
    access_key_id: str
    secret_key: str = field(repr=False)
    session_token: str = field(repr=False)
    cognito_id: str
    expiration: Optional[datetime.datetime] = None

    @property
    def region(self) -> str:
        return parse_region(self.cognito_id)

    def is_expired(self, now: Optional[datetime.datetime] = None) -> bool:
        """True when an expiration is known and has passed."""
        if self.expiration is None:
            return False
        now = now or datetime.datetime.now(datetime.timezone.utc)
        return now >= self.expiration

    def to_aws_credentials(self) -> AWSCredentials:
        return AWSCredentials(
            access_key=self.access_key_id,
            secret_key=self.secret_key,
            session_token=self.session_token,
        )

    @classmethod
    def from_response(cls, payload: dict[str, Any]) -> "CloudCredentials":
        """
        Build credentials from the ``credentials`` object of a login response.

        Raises:
            ConfigurationError: If a required key is missing or empty
        """
        missing = tuple(key for key in _REQUIRED_KEYS if not payload.get(key))
        if missing:
            raise ConfigurationError(
                f"Login credentials are missing: {', '.join(missing)}",
                fields=missing,
            )

        credentials = cls(
            access_key_id=payload["AccessKeyId"],
            secret_key=payload["SecretKey"],
            session_token=payload["SessionToken"],
            cognito_id=payload["CognitoId"],
            expiration=_parse_expiration(payload.get("Expiration")),
        )
        # Fail now rather than at the first signed request
        parse_region(credentials.cognito_id)
        return credentials


def _parse_expiration(value: Any) -> Optional[datetime.datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return datetime.datetime.fromtimestamp(value, tz=datetime.timezone.utc)
    try:
        parsed = datetime.datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as e:
        raise ConfigurationError(
            f"Unrecognised credential expiration: {value!r}",
            fields=("Expiration",),
        ) from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed
