"""
URL and key helpers shared by the admin controller and the HTTP layer.
"""

import hashlib
import json
import re
from typing import Any, Dict, Iterable, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_KEY_PATTERN = re.compile(r"[^a-z0-9_\-]")


def sanitize_key(key: Optional[str]) -> str:
    """Lowercase a key and strip everything but letters, digits, '_' and '-'."""
    if not key:
        return ""
    return _KEY_PATTERN.sub("", str(key).lower())


def payload_token(payload: Dict[str, Any]) -> str:
    """
    Derive the transient key for a submitted form.

    The payload is encoded as JSON with sorted keys so that the same
    submission always produces the same token.

    Args:
        payload: Submitted form fields

    Returns:
        md5 hex digest of the canonical encoding
    """
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.md5(canonical.encode("utf-8")).hexdigest()


def add_query_arg(url: str, key: str, value: Any) -> str:
    """Append key=value to the query string of url, keeping existing arguments."""
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.append((key, str(value)))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def safe_redirect_url(url: Optional[str], allowed_hosts: Iterable[str], fallback: str) -> str:
    """
    Return url if it is relative or points at an allowed host, else fallback.

    Args:
        url: Candidate redirect target
        allowed_hosts: Host names that may be redirected to
        fallback: Target used when url is empty or off-site

    Returns:
        The URL to redirect to
    """
    if not url:
        return fallback
    parts = urlsplit(url.strip())
    if parts.scheme and parts.scheme not in ("http", "https"):
        return fallback
    if not parts.netloc:
        # browsers treat a leading backslash like a slash
        if url.strip().startswith("\\"):
            return fallback
        return url.strip()
    if parts.hostname and parts.hostname.lower() in {h.lower() for h in allowed_hosts}:
        return url.strip()
    return fallback
