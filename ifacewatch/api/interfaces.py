# ifacewatch/api/interfaces.py

import socket
from typing import Callable, Dict, List, Tuple

import netifaces
import psutil

# (interface name, socket.AF_* family)
InterfaceEntry = Tuple[str, int]


class SnapshotUnavailable(Exception):
    """The OS refused to enumerate network interfaces."""


def _netifaces_snapshot() -> List[InterfaceEntry]:
    entries: List[InterfaceEntry] = []
    for name in netifaces.interfaces():
        try:
            addresses = netifaces.ifaddresses(name)
        except ValueError:
            # Interface went away between interfaces() and ifaddresses()
            continue
        for family, addrs in addresses.items():
            for _ in addrs:
                entries.append((name, family))
    return entries


def _psutil_snapshot() -> List[InterfaceEntry]:
    entries: List[InterfaceEntry] = []
    for name, addrs in psutil.net_if_addrs().items():
        for addr in addrs:
            entries.append((name, int(addr.family)))
    return entries


BACKENDS: Dict[str, Callable[[], List[InterfaceEntry]]] = {
    "netifaces": _netifaces_snapshot,
    "psutil": _psutil_snapshot,
}


def snapshot(backend: str = "netifaces") -> List[InterfaceEntry]:
    """
    Returns every (name, family) pair currently configured on the host, in the
    order the OS reports them. An interface with several addresses appears
    once per address. An empty list is a valid answer; only a failing OS call
    raises SnapshotUnavailable.
    """
    try:
        source = BACKENDS[backend]
    except KeyError:
        raise ValueError(f"Unknown interface backend: {backend}") from None

    try:
        return source()
    except OSError as e:
        raise SnapshotUnavailable(f"{backend}: {e}") from e


def is_ipv4(family: int) -> bool:
    return family == socket.AF_INET
