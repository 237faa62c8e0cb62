"""
Query string hash (QSH) for Atlassian Connect tokens.

The QSH binds a signed token to one request: it is the SHA-256 of
``METHOD&path&query`` in canonical form. Canonicalisation:

- method: upper case, must be a known HTTP verb
- path: relative to the product's base URL context path, duplicate slashes
  collapsed, no trailing slash (except for ``/``), ``&`` escaped as ``%26``
- query: ``jwt`` dropped, every ``key=value`` pair percent-decoded, sorted
  by key then value, each side re-encoded RFC 3986 style (so ``&``, ``=``
  and ``%`` are always escaped), joined with ``&``
"""

import hashlib
import re
from typing import Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qsl, quote, urlsplit

from jiralink.core.exceptions import InvalidInput

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"})

# Claim value used by Jira for tokens that are not bound to a request
CONTEXT_QSH = "context-qsh"

QueryInput = Union[None, str, Mapping[str, object], Iterable[Tuple[str, object]]]

_SLASHES = re.compile(r"/{2,}")


def _encode(value: str) -> str:
    return quote(value, safe="")


def _query_pairs(query: QueryInput) -> List[Tuple[str, str]]:
    if query is None:
        return []
    if isinstance(query, str):
        return parse_qsl(query.lstrip("?"), keep_blank_values=True)

    items = query.items() if isinstance(query, Mapping) else query
    pairs = []
    for key, value in items:
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            pairs.append((str(key), "" if item is None else str(item)))
    return pairs


def canonicalize_query(query: QueryInput) -> str:
    """
    Canonical form of a query string.

    Args:
        query: Raw query string (leading ``?`` optional), mapping or list of pairs.
            Mapping values may be lists for repeated keys.

    Returns:
        Sorted, RFC 3986 encoded ``key=value`` pairs joined by ``&``
    """
    pairs = sorted(
        (key, value) for key, value in _query_pairs(query) if key != "jwt"
    )
    return "&".join(f"{_encode(key)}={_encode(value)}" for key, value in pairs)


def normalize_method(method: str) -> str:
    normalized = (method or "").strip().upper()
    if normalized not in HTTP_METHODS:
        raise InvalidInput(f"Unsupported HTTP method: {method!r}")
    return normalized


def normalize_path(path: str, base_url: Optional[str] = None) -> str:
    """
    Canonical form of a request path.

    Args:
        path: Request path, or a full URL whose path is used
        base_url: Product base URL; its context path (e.g. ``/wiki``) is stripped

    Returns:
        Normalized path starting with ``/``
    """
    if path is None:
        raise InvalidInput("Path is required")

    path = urlsplit(path).path if "://" in path else path.split("?", 1)[0]
    path = "/" + _SLASHES.sub("/", path).strip("/")

    if base_url:
        context = "/" + _SLASHES.sub("/", urlsplit(base_url).path).strip("/")
        if context != "/" and (path == context or path.startswith(context + "/")):
            path = path[len(context):] or "/"

    return path.replace("&", "%26")


def canonical_request(
    method: str,
    path: str,
    query: QueryInput = None,
    base_url: Optional[str] = None,
) -> str:
    """Build ``METHOD&path&query``."""
    return "&".join((
        normalize_method(method),
        normalize_path(path, base_url),
        canonicalize_query(query),
    ))


def query_string_hash(
    method: str,
    path: str,
    query: QueryInput = None,
    base_url: Optional[str] = None,
) -> str:
    """Lowercase hex SHA-256 of the canonical request."""
    canonical = canonical_request(method, path, query, base_url)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def split_url(url: str) -> Tuple[str, str]:
    """Split ``/path?query`` (or a full URL) into path and raw query."""
    parts = urlsplit(url)
    return parts.path or "/", parts.query
