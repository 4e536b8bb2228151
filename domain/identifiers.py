"""
Resolve opaque GraphQL identifiers into plain numeric ids.

Accepted forms (first match wins):
    "42"
    "gid://foreman/Location/9"
    base64 of either of the above, or of "Organization-7" / "0:User-6"

Anything else raises InvalidIdentifier, never 0 / negative / NaN-like values.
"""

import base64
import binascii
import re

from domain.errors import InvalidIdentifier

# Matched with fullmatch so trailing newlines are rejected
_DECIMAL_RE = re.compile(r"[0-9]+")
_GLOBAL_PATH_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.-]*://[^/\s]+/[^/\s]+/([0-9]+)")
_BASE64_RE = re.compile(r"(?:[A-Za-z0-9+/]{4})+|(?:[A-Za-z0-9+/]{4})*(?:[A-Za-z0-9+/]{2}==|[A-Za-z0-9+/]{3}=)")
_TRAILING_DIGITS_RE = re.compile(r"(\d+)\Z")
_UNSAFE_CHARS_RE = re.compile(r"[^a-zA-Z0-9\-_./]")


def sanitize_identifier(raw: str) -> str:
    """Shorten/mask an identifier before it goes into an error message or log line."""
    if len(raw) > 20:
        return f"{raw[:10]}...{raw[-4:]}"
    return _UNSAFE_CHARS_RE.sub("*", raw)


def _positive(digits: str) -> int | None:
    value = int(digits)
    return value if value > 0 else None


def _from_global_path(text: str) -> int | None:
    m = _GLOBAL_PATH_RE.fullmatch(text)
    if m is None:
        return None
    return _positive(m.group(1))


def _from_base64(text: str) -> int | None:
    if not _BASE64_RE.fullmatch(text):
        return None
    try:
        decoded = base64.b64decode(text, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    from_path = _from_global_path(decoded)
    if from_path is not None:
        return from_path

    m = _TRAILING_DIGITS_RE.search(decoded)
    if m is None:
        return None
    return _positive(m.group(1))


def resolve_identifier(raw: str) -> int:
    """
    Decode a transport identifier into a positive integer.

    Args:
        raw: Identifier as returned by the GraphQL API (or a plain decimal string)

    Returns:
        Positive integer id

    Raises:
        InvalidIdentifier: If none of the decode strategies yields a positive id
    """
    if not isinstance(raw, str) or not raw:
        raise InvalidIdentifier("Invalid GraphQL ID format: empty identifier", raw=str(raw or ""))

    if _DECIMAL_RE.fullmatch(raw):
        value = _positive(raw)
        if value is not None:
            return value

    for strategy in (_from_global_path, _from_base64):
        value = strategy(raw)
        if value is not None:
            return value

    raise InvalidIdentifier(f"Invalid GraphQL ID format: {sanitize_identifier(raw)}", raw=raw)


def to_global_id(type_name: str, entity_id: int) -> str:
    """Build the base64 "<Type>-<id>" form used by the GraphQL API."""
    if entity_id <= 0:
        raise ValueError(f"entity_id must be positive, got {entity_id}")
    return base64.b64encode(f"{type_name}-{entity_id}".encode()).decode("ascii")
