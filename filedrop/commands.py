# commands.py
"""Commands a desktop shell invokes, returning JSON-ready dicts.

All of them share one ``ServerLifecycle`` and therefore one set of usage
counters for the lifetime of the process.
"""
from .errors import AddressError
from .lifecycle import ServerLifecycle
from .network import resolve_local_address

lifecycle = ServerLifecycle()


def get_local_ip() -> str:
    ip = resolve_local_address()
    if ip is None:
        raise AddressError("cannot determine local address")
    return ip


def start_server() -> dict:
    return lifecycle.start().to_dict()


def stop_server() -> None:
    lifecycle.stop()


def get_server_status() -> dict:
    return lifecycle.status().to_dict()
