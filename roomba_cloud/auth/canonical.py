"""
Canonical request construction for AWS SigV4.

The canonical request is the normalized text form of an HTTP request that
both sides of a SigV4 exchange hash. Every byte matters: the remote endpoint
rebuilds the same string and rejects the request if the hashes differ.

Header values are copied verbatim. They are not trimmed and internal runs of
whitespace are not collapsed, which keeps signatures identical to the ones the
iRobot mobile app produces for this API surface.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional
from urllib.parse import quote

from .errors import ConfigurationError
from .primitives import BytesLike, sha256


def _stringify(value: Any) -> str:
    # Match how URLSearchParams renders JSON-ish values
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def percent_encode(value: str) -> str:
    """Percent-encode everything except the RFC 3986 unreserved characters."""
    return quote(value, safe="")


class HeaderMap(Mapping):
    """
    Case-insensitive header mapping with lowercase keys.

    Sources are applied in order and a later source overrides an earlier one,
    so caller headers applied after the signing defaults win. Inside a single
    source, two names that differ only by case must carry the same value;
    otherwise which one wins would depend on dict ordering, so a
    ConfigurationError is raised instead.
    """

    def __init__(self, *sources: Optional[Mapping]):
        self._items: dict[str, str] = {}
        for source in sources:
            if source:
                self.update(source)

    def update(self, headers: Mapping) -> None:
        staged: dict[str, str] = {}
        for name, value in headers.items():
            key = str(name).lower()
            text = _stringify(value)
            if key in staged and staged[key] != text:
                raise ConfigurationError(
                    f"Conflicting values for header '{key}' supplied with different casing",
                    fields=("headers",),
                )
            staged[key] = text
        self._items.update(staged)

    def __getitem__(self, name: str) -> str:
        return self._items[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def sorted_keys(self) -> list[str]:
        return sorted(self._items)

    def to_dict(self) -> dict[str, str]:
        return dict(self._items)

    def __repr__(self) -> str:
        return f"HeaderMap({self._items!r})"


def canonical_uri(path: str) -> str:
    """Percent-encode a request path, keeping '/' separators."""
    return quote(path, safe="/")


def canonical_query_string(params: Optional[Mapping]) -> str:
    """
    Build the canonical query string.

    Keys are sorted by code point before encoding, then emitted as
    ``key=value`` pairs joined with '&'. No parameters yields "".
    """
    if not params:
        return ""
    items = sorted(((str(key), value) for key, value in params.items()), key=lambda item: item[0])
    return "&".join(
        f"{percent_encode(key)}={percent_encode(_stringify(value))}"
        for key, value in items
    )


@dataclass(frozen=True)
class CanonicalRequest:
    """The normalized request text and the pieces it was built from."""
    method: str
    canonical_uri: str
    canonical_query_string: str
    canonical_headers: str
    signed_headers: str
    payload_hash: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return "\n".join([
            self.method,
            self.canonical_uri,
            self.canonical_query_string,
            self.canonical_headers,
            self.signed_headers,
            self.payload_hash,
        ])

    def __str__(self) -> str:
        return self.text


def build_canonical_request(
    method: str,
    path: str,
    query_params: Optional[Mapping],
    headers: HeaderMap,
    payload: BytesLike = "",
) -> CanonicalRequest:
    """
    Create the canonical request for a SigV4 signature.

    Args:
        method: Uppercase HTTP method
        path: Request path
        query_params: Query parameters (unencoded)
        headers: Merged headers, already holding host and x-amz-date
        payload: Request body

    Returns:
        CanonicalRequest; its ``headers`` are the merged lowercase headers
    """
    sorted_keys = headers.sorted_keys()
    canonical_headers = "".join(f"{key}:{headers[key]}\n" for key in sorted_keys)

    return CanonicalRequest(
        method=method,
        canonical_uri=canonical_uri(path),
        canonical_query_string=canonical_query_string(query_params),
        canonical_headers=canonical_headers,
        signed_headers=";".join(sorted_keys),
        payload_hash=sha256(payload),
        headers=headers.to_dict(),
    )
