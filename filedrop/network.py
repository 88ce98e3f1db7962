# network.py
import logging
import socket
from typing import Optional

logger = logging.getLogger(__name__)


def _usable(ip: Optional[str]) -> bool:
    return bool(ip) and not ip.startswith("127.") and not ip.startswith("169.254.")


def resolve_local_address() -> Optional[str]:
    """Best guess at this host's LAN IPv4 address, or None.

    Tries the hostname first, then asks the routing table which source address
    a multicast datagram would use. Nothing is actually sent.
    """
    try:
        ip = socket.gethostbyname(socket.gethostname())
        if _usable(ip):
            return ip
    except OSError as e:
        logger.debug("gethostbyname failed: %s", e)

    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            s.connect(("224.0.0.1", 1))
            ip = s.getsockname()[0]
        finally:
            s.close()
        if _usable(ip):
            return ip
    except OSError as e:
        logger.debug("multicast route lookup failed: %s", e)

    return None


def allocate_ephemeral_port(host: str = "0.0.0.0") -> int:
    """Port the OS considers free right now. Another process may still grab it before we bind."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((host, 0))
        return s.getsockname()[1]
