"""
Browser origin checks for the gateway.

A browser that can reach the gateway (a page on another site, another local
dev server) can issue requests to it. ``OriginValidator.check`` decides from
the ``Host`` and ``Origin`` headers whether such a request comes from a
context the gateway trusts:

1. an unparsable, empty or ``"null"`` origin is always denied
2. an origin listed in the operator allow-list is allowed
3. an origin whose host equals the request ``Host`` is allowed (same origin)
4. a loopback origin talking to a loopback host is allowed, unless the
   gateway port is known and the origin is on a different port
5. anything else is denied
"""
import ipaddress
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Union
from urllib.parse import urlsplit

from gateway.security.net import is_loopback_host

REASON_INVALID = "origin missing or invalid"
REASON_PORT_MISMATCH = "loopback origin port mismatch"
REASON_NOT_ALLOWED = "origin not allowed"

# Ports a browser leaves out of a serialized origin.
_ELIDED_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443, "ftp": 21}
# Only http(s) get an inferred port for the loopback comparison.
_INFERRED_PORTS = {"https": "443", "http": "80"}
# Schemes whose origin is scheme/host/port; others (file:, blob:, data:, custom) are opaque.
_TUPLE_ORIGIN_SCHEMES = frozenset(_ELIDED_PORTS)
_HOSTNAME_RE = re.compile(r"^[a-z0-9_.-]+$")


@dataclass(frozen=True)
class Allowed:
    ok = True
    reason = None


@dataclass(frozen=True)
class Denied:
    reason: str
    ok = False


Verdict = Union[Allowed, Denied]


@dataclass(frozen=True)
class ParsedOrigin:
    scheme: str
    origin: str     # scheme://host[:port]
    host: str       # hostname[:port], IPv6 in brackets
    hostname: str   # no brackets
    port: str       # "" when absent or the scheme default


def normalize_host_header(host_header: Optional[str]) -> str:
    return (host_header or "").strip().lower()


def resolve_host_name(host_header: Optional[str]) -> str:
    """Hostname part of a Host header: ``[::1]:80`` -> ``::1``, ``a.b:80`` -> ``a.b``."""
    host = normalize_host_header(host_header)
    if not host:
        return ""
    if host.startswith("["):
        end = host.find("]")
        if end != -1:
            return host[1:end]
    return host.split(":", 1)[0]


def _parse_ipv4_number(label: str) -> Optional[int]:
    if not label:
        return None
    base = 10
    if label[:2] in ("0x", "0X"):
        label, base = label[2:], 16
        if not label:
            return 0
    elif len(label) > 1 and label[0] == "0":
        label, base = label[1:], 8
    try:
        return int(label, base)
    except ValueError:
        return None


def _canonical_ipv4(hostname: str) -> Optional[str]:
    """Resolve browser IPv4 forms (``127.1``, ``0x7f.0.0.1``) to dotted quad."""
    labels = hostname.split(".")
    if labels[-1] == "" and len(labels) > 1:
        labels.pop()
    if len(labels) > 4:
        return None
    numbers = [_parse_ipv4_number(label) for label in labels]
    if any(n is None for n in numbers):
        return None
    *head, last = numbers
    if any(n > 255 for n in head) or last >= 256 ** (5 - len(numbers)):
        return None
    value = last
    for index, n in enumerate(head):
        value += n * 256 ** (3 - index)
    return str(ipaddress.IPv4Address(value))


def _canonical_hostname(hostname: str) -> Optional[str]:
    if ":" in hostname:
        try:
            return ipaddress.IPv6Address(hostname).compressed
        except ValueError:
            return None
    if not _HOSTNAME_RE.match(hostname):
        return None
    last_label = hostname.rstrip(".").rsplit(".", 1)[-1]
    if last_label.isdigit() or last_label[:2] in ("0x", "0X"):
        return _canonical_ipv4(hostname)
    return hostname


def parse_origin(origin_raw: Optional[str]) -> Optional[ParsedOrigin]:
    """Parse an ``Origin`` header value; ``None`` when it is not a usable absolute URL."""
    trimmed = (origin_raw or "").strip()
    if not trimmed or trimmed == "null":
        return None
    # A browser never serializes these; urlsplit and the URL standard disagree on them.
    if "\\" in trimmed or any(ch.isspace() for ch in trimmed):
        return None
    try:
        parts = urlsplit(trimmed)
        explicit_port = parts.port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    hostname = _canonical_hostname(parts.hostname or "")
    if scheme not in _TUPLE_ORIGIN_SCHEMES or not hostname:
        return None

    if explicit_port is None or explicit_port == _ELIDED_PORTS.get(scheme):
        port = ""
    else:
        port = str(explicit_port)

    host = f"[{hostname}]" if ":" in hostname else hostname
    if port:
        host = f"{host}:{port}"
    return ParsedOrigin(
        scheme=scheme,
        origin=f"{scheme}://{host}",
        host=host,
        hostname=hostname,
        port=port,
    )


def infer_default_port(scheme: str) -> str:
    return _INFERRED_PORTS.get(scheme, "")


def normalize_allowlist(allowed_origins: Optional[Iterable[str]]) -> set[str]:
    normalized = set()
    for value in allowed_origins or ():
        if not isinstance(value, str):
            continue
        value = value.strip().lower()
        if value:
            normalized.add(value)
    return normalized


class OriginValidator:
    """Stateless origin decision; the loopback classifier is injectable."""

    def __init__(self, is_loopback: Callable[[str], bool] = is_loopback_host):
        self._is_loopback = is_loopback

    def check(
        self,
        request_host: Optional[str],
        origin: Optional[str],
        allowed_origins: Optional[Iterable[str]] = None,
        gateway_port: Optional[int] = None,
    ) -> Verdict:
        parsed = parse_origin(origin)
        if parsed is None:
            return Denied(REASON_INVALID)

        if parsed.origin in normalize_allowlist(allowed_origins):
            return Allowed()

        host = normalize_host_header(request_host)
        if host and parsed.host == host:
            return Allowed()

        request_hostname = resolve_host_name(host)
        if self._is_loopback(parsed.hostname) and self._is_loopback(request_hostname):
            # Another service on localhost must not pass as the gateway itself.
            if gateway_port is not None:
                origin_port = parsed.port or infer_default_port(parsed.scheme)
                gw_port = str(gateway_port)
                if origin_port and gw_port and origin_port != gw_port:
                    return Denied(REASON_PORT_MISMATCH)
            return Allowed()

        return Denied(REASON_NOT_ALLOWED)


default_validator = OriginValidator()


def check_browser_origin(
    request_host: Optional[str] = None,
    origin: Optional[str] = None,
    allowed_origins: Optional[Iterable[str]] = None,
    gateway_port: Optional[int] = None,
) -> Verdict:
    return default_validator.check(request_host, origin, allowed_origins, gateway_port)
