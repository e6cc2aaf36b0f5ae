"""SHA-256 and HMAC-SHA-256 helpers used by the SigV4 signer."""

import hashlib
import hmac
from typing import Optional, Union

from .errors import CryptoError

BytesLike = Union[str, bytes]

# Hex SHA-256 of the empty string, used as the payload hash of bodiless requests
EMPTY_PAYLOAD_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

_ENCODINGS = ("hex", None)


def _to_bytes(value: BytesLike) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def _check_encoding(encoding: Optional[str]) -> None:
    if encoding not in _ENCODINGS:
        raise ValueError(f"Unsupported digest encoding: {encoding!r}")


def sha256(data: BytesLike, encoding: Optional[str] = "hex") -> BytesLike:
    """
    Compute the SHA-256 digest of ``data``.

    Args:
        data: Text (UTF-8 encoded) or raw bytes
        encoding: "hex" for a lowercase hex string, None for raw bytes

    Returns:
        The digest in the requested encoding

    Raises:
        CryptoError: If the hashing backend is unavailable
    """
    _check_encoding(encoding)
    try:
        digest = hashlib.sha256(_to_bytes(data))
    except ValueError as e:
        raise CryptoError(f"SHA-256 unavailable: {e}") from e
    return digest.hexdigest() if encoding == "hex" else digest.digest()


def hmac_sha256(key: BytesLike, data: BytesLike, encoding: Optional[str] = None) -> BytesLike:
    """
    Compute HMAC-SHA-256 of ``data`` under ``key``.

    Raw bytes are returned by default so the result can be chained
    directly as the key of the next HMAC step.
    """
    _check_encoding(encoding)
    try:
        mac = hmac.new(_to_bytes(key), _to_bytes(data), hashlib.sha256)
    except ValueError as e:
        raise CryptoError(f"HMAC-SHA256 unavailable: {e}") from e
    return mac.hexdigest() if encoding == "hex" else mac.digest()
