"""URL resolution, canonicalization and scope checks."""

import posixpath
import re
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunparse, urlparse

EXCLUDED_PREFIXES = ("#", "mailto:", "tel:", "javascript:", "data:")
FETCHABLE_SCHEMES = ("http", "https")

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


class MalformedReference(ValueError):
    """A reference string that cannot be parsed as a URL."""

    def __init__(self, ref: str, reason: str):
        super().__init__(f"malformed reference {ref!r}: {reason}")
        self.ref = ref
        self.reason = reason


def is_excluded(ref: str) -> bool:
    """Check for references that can never be materialized as local files."""
    return ref.strip().lower().startswith(EXCLUDED_PREFIXES)


def _check_reference(ref: str):
    if not ref:
        raise MalformedReference(ref, "empty reference")
    if _CONTROL_CHARS.search(ref):
        raise MalformedReference(ref, "control character")

    # RFC 3986: the first segment of a relative-path reference cannot hold a colon
    if not _SCHEME.match(ref) and not ref.startswith(("/", "?", "#")):
        first_segment = re.split(r"[/?#]", ref, maxsplit=1)[0]
        if ":" in first_segment:
            raise MalformedReference(ref, "colon in first path segment")

    try:
        parts = urlsplit(ref)
        parts.port
    except ValueError as e:
        raise MalformedReference(ref, str(e)) from e


def remove_dot_segments(path: str) -> str:
    """Collapse `.` and `..` segments; `..` never climbs above the root."""
    if not path:
        return path
    collapsed = posixpath.normpath("/" + path.lstrip("/"))
    if collapsed == "/":
        return collapsed
    if path.endswith("/") or path.endswith(("/.", "/..")):
        collapsed += "/"
    return collapsed


def resolve(base: str, ref: str) -> str:
    """Resolve a possibly-relative reference against a base page URL.

    Raises MalformedReference instead of any other parse error, so a single
    bad link can always be skipped by the caller.
    """
    ref = ref.strip()
    _check_reference(ref)
    try:
        parts = urlsplit(urljoin(base, ref))
        parts.port
        absolute = parts._replace(path=remove_dot_segments(parts.path)).geturl()
    except ValueError as e:
        raise MalformedReference(ref, str(e)) from e
    return absolute


def is_fetchable(url: str) -> bool:
    """Only absolute http(s) URLs with a host are fetched."""
    parsed = urlparse(url)
    return parsed.scheme.lower() in FETCHABLE_SCHEMES and bool(parsed.hostname)


def host_of(url: str) -> str:
    """Lowercased host name of a URL, empty when it has none."""
    try:
        return urlsplit(url).hostname or ""
    except ValueError:
        return ""


def same_host(a: str, b: str) -> bool:
    """Exact host equality, no domain-suffix matching."""
    host = host_of(a)
    return bool(host) and host == host_of(b)


def normalize_url(url: str) -> str:
    """Normalize URL for deduplication (remove fragment, sort query params)."""
    parsed = urlparse(url)

    query_params = parse_qsl(parsed.query, keep_blank_values=True)
    sorted_query = urlencode(sorted(query_params))

    # Trailing slash removed except for root
    path = remove_dot_segments(parsed.path).rstrip('/') or '/'

    return urlunparse((
        parsed.scheme.lower(),
        parsed.netloc.lower(),
        path,
        parsed.params,
        sorted_query,
        ''
    ))
