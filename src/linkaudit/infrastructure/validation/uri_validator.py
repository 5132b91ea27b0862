"""Syntactic URL validation ahead of probing.

Malformed input is a normal per-record outcome, so ``validate_url`` never
raises: it returns either a ``ValidatedTarget`` or a MALFORMED_URL outcome.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

import httpx

from linkaudit.domain.entities import ProbeOutcome, ValidatedTarget

# Schemes the httpx transport can dispatch
SUPPORTED_SCHEMES: frozenset[str] = frozenset({"http", "https"})

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE_RE = re.compile(r"\s")


def validate_url(raw_url: str | None) -> ValidatedTarget | ProbeOutcome:
    """Parse *raw_url* into a probe target.

    Accepts absolute ``http``/``https`` URLs with a host. Surrounding
    whitespace is ignored. Spaces in the path or query are allowed and
    percent-encoded (``My File.pdf`` -> ``My%20File.pdf``); control
    characters anywhere, or whitespace in the scheme or host, are rejected.
    """
    if raw_url is None:
        return ProbeOutcome.malformed_url("empty")
    if not isinstance(raw_url, str):
        return ProbeOutcome.malformed_url(f"not_text: {type(raw_url).__name__}")

    candidate = raw_url.strip()
    if not candidate:
        return ProbeOutcome.malformed_url("empty")

    if _CONTROL_RE.search(candidate):
        return ProbeOutcome.malformed_url("illegal_character")

    try:
        parts = urlsplit(candidate)
        # .port raises ValueError for non-numeric / out-of-range ports
        _ = parts.port
    except ValueError as e:
        return ProbeOutcome.malformed_url(f"unparseable: {e}")

    if not parts.scheme or not _SCHEME_RE.match(parts.scheme):
        return ProbeOutcome.malformed_url("missing_scheme")

    scheme = parts.scheme.lower()
    if scheme not in SUPPORTED_SCHEMES:
        return ProbeOutcome.malformed_url(f"unsupported_scheme: {scheme}")

    if _WHITESPACE_RE.search(parts.netloc):
        return ProbeOutcome.malformed_url("illegal_character")

    if not parts.hostname:
        return ProbeOutcome.malformed_url("missing_host")

    try:
        url = httpx.URL(candidate)
    except httpx.InvalidURL as e:
        return ProbeOutcome.malformed_url(f"invalid_url: {e}")

    return ValidatedTarget(url=str(url), scheme=scheme, host=parts.hostname)
