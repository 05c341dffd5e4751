import ipaddress
import re
import socket
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

import httpx

from gateway.core.config import settings

ALLOWED_SCHEMES = ("http", "https")

# Schemes whose URLs are only valid with a host component
_HOST_REQUIRED_SCHEMES = ("http", "https", "ftp", "ws", "wss")

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*$")
_FORBIDDEN_HOST_CHARS = set(" \t\r\n#%/:<>?@[\\]^|")
_NUMERIC_IPV4_RE = re.compile(r"^(0x[0-9a-f]*|[0-9]+)(\.(0x[0-9a-f]*|[0-9]+)){0,3}$")

INTERNAL_HOST_PATTERNS = [
    re.compile(r"^localhost$"),
    re.compile(r"^127\."),
    re.compile(r"^10\."),
    re.compile(r"^172\.(1[6-9]|2[0-9]|3[0-1])\."),
    re.compile(r"^192\.168\."),
    re.compile(r"^169\.254\."),
    re.compile(r"^::1$"),
    re.compile(r"^fe80:"),
    re.compile(r"^fc00:"),
    re.compile(r"^0\.0\.0\.0$"),
]

REASON_TOO_LONG = "URL too long (max {max_length} characters)"
REASON_INVALID = "Invalid URL format"
REASON_SCHEME = "Only HTTP and HTTPS protocols are allowed"
REASON_INTERNAL = "Access to internal addresses is not allowed"

@dataclass(frozen=True)
class ValidationOutcome:
    valid: bool
    reason: Optional[str] = None

class _InvalidHost(ValueError):
    pass

def _canonical_host(hostname: str) -> str:
    """
    Normalize a hostname for lexical matching without any DNS lookup.

    Strips a trailing root dot, compresses IPv6 literals and rewrites numeric
    IPv4 shorthand ("2130706433", "0x7f.1", "127.1") to dotted-quad form.
    """
    host = hostname.lower()
    if host.endswith("."):
        host = host[:-1]

    if ":" in host:
        try:
            return ipaddress.IPv6Address(host).compressed
        except ValueError as e:
            raise _InvalidHost(host) from e

    if any(ch in _FORBIDDEN_HOST_CHARS for ch in host):
        raise _InvalidHost(host)

    if _NUMERIC_IPV4_RE.match(host):
        try:
            return socket.inet_ntoa(socket.inet_aton(host))
        except OSError as e:
            raise _InvalidHost(host) from e

    return host

def is_internal_host(hostname: str) -> bool:
    """Check a hostname against the private, loopback and link-local patterns."""
    try:
        host = _canonical_host(hostname)
    except _InvalidHost:
        return False

    if any(pattern.search(host) for pattern in INTERNAL_HOST_PATTERNS):
        return True

    # ::ffff:127.0.0.1 and friends reach the IPv4 address underneath
    if ":" in host:
        mapped = ipaddress.IPv6Address(host).ipv4_mapped
        if mapped is not None:
            return is_internal_host(str(mapped))

    return False

def connect_host(url: str) -> str:
    """
    The host httpx will actually connect to for this URL.

    httpx applies IDNA to non-ASCII hosts, which maps ideographic and
    fullwidth full stops to ".", so this can differ from what urlsplit sees.
    """
    try:
        host = httpx.URL(url).host
    except httpx.InvalidURL as e:
        raise _InvalidHost(url) from e
    if not host:
        raise _InvalidHost(url)
    return host

def validate_url(url: str, max_length: Optional[int] = None) -> ValidationOutcome:
    """
    Validate a caller-supplied URL before any network egress.

    Checks run in order and stop at the first failure:
    length, structure, scheme, then the internal-address patterns. The
    patterns are matched against both the parsed hostname and the host
    httpx will connect to. Matching is lexical only: a public hostname
    resolving to a private address is not caught here.
    """
    if max_length is None:
        max_length = settings.MAX_URL_LENGTH

    if len(url) > max_length:
        return ValidationOutcome(False, REASON_TOO_LONG.format(max_length=max_length))

    hosts = []
    try:
        parsed = urlsplit(url)
        scheme = parsed.scheme.lower()
        if not scheme or not _SCHEME_RE.match(scheme):
            return ValidationOutcome(False, REASON_INVALID)

        hostname = parsed.hostname or ""
        if scheme in _HOST_REQUIRED_SCHEMES:
            if not hostname:
                return ValidationOutcome(False, REASON_INVALID)
            parsed.port  # raises ValueError on a malformed or out-of-range port
            _canonical_host(hostname)
            hosts.append(hostname)

        if scheme in ALLOWED_SCHEMES:
            target = connect_host(url)
            _canonical_host(target)
            hosts.append(target)
    except ValueError:
        return ValidationOutcome(False, REASON_INVALID)

    if scheme not in ALLOWED_SCHEMES:
        return ValidationOutcome(False, REASON_SCHEME)

    if any(is_internal_host(host) for host in hosts):
        return ValidationOutcome(False, REASON_INTERNAL)

    return ValidationOutcome(True)
