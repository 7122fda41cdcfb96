"""Utilities for handling IP address logging policies."""

from __future__ import annotations

import ipaddress
import os


def anonymize_ip(ip: str | None, mode: str | None = None) -> str | None:
    """Return ``ip`` formatted for logs according to ``LOG_IP_MODE``.

    ``full`` keeps the address, ``anonymized`` truncates it to its /24 (IPv4)
    or /64 (IPv6) network and ``off`` drops it.
    """

    mode_value = (mode if mode is not None else os.getenv("LOG_IP_MODE") or "full").lower()
    if mode_value not in {"full", "anonymized", "off"}:
        mode_value = "full"
    if mode_value == "off":
        return None
    if not ip or ip == "unknown":
        return "unknown"

    try:
        parsed = ipaddress.ip_address(ip)
    except ValueError:
        return "unknown"

    if mode_value == "anonymized":
        prefix = 24 if parsed.version == 4 else 64
        return ipaddress.ip_network(f"{parsed}/{prefix}", strict=False).with_prefixlen
    return str(parsed)
