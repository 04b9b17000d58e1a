import ipaddress

_LOOPBACK_NAMES = {"localhost"}


def _strip_brackets(hostname: str) -> str:
    if hostname.startswith("[") and hostname.endswith("]"):
        return hostname[1:-1]
    return hostname


def is_loopback_host(hostname: str | None) -> bool:
    """True when ``hostname`` names the local machine (localhost, 127/8, ::1)."""
    host = _strip_brackets((hostname or "").strip().lower())
    if not host:
        return False
    if host in _LOOPBACK_NAMES or host.endswith(".localhost"):
        return True
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return False
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped.is_loopback
    return ip.is_loopback
