from dataclasses import dataclass
from typing import Optional, Sequence

from ifacewatch.api.interfaces import InterfaceEntry, is_ipv4

LOOPBACK_NAME = "lo"


@dataclass
class InterfaceState:
    """
    The interface the monitor currently considers active.
    """
    current_name: str
    previous_name: str = ""
    changed: bool = False
    last_action_time: float = 0.0


@dataclass(frozen=True)
class DetectionResult:
    changed: bool
    name: Optional[str] = None


def select_candidate(entries: Sequence[InterfaceEntry], loopback_name: str = LOOPBACK_NAME) -> Optional[str]:
    """
    First non-loopback IPv4 interface in enumeration order. No sorting is done,
    so two interfaces that are up at the same time resolve by OS order.
    """
    for name, family in entries:
        if not is_ipv4(family):
            continue
        if name == loopback_name:
            continue
        return name
    return None


def detect(entries: Sequence[InterfaceEntry], state: InterfaceState,
           loopback_name: str = LOOPBACK_NAME) -> DetectionResult:
    """
    Compares the snapshot's candidate against state.current_name and records
    the change in state. Without a candidate the previous state is kept.
    """
    candidate = select_candidate(entries, loopback_name)
    if candidate is None:
        return DetectionResult(changed=False)

    if candidate == state.current_name:
        return DetectionResult(changed=False, name=candidate)

    state.previous_name = state.current_name
    state.current_name = candidate
    state.changed = True
    return DetectionResult(changed=True, name=candidate)


def seed_state(entries: Sequence[InterfaceEntry], loopback_name: str = LOOPBACK_NAME) -> InterfaceState:
    """
    Initial state from the startup snapshot: the detector's candidate if there
    is one, else the first non-loopback interface of any family, else the
    first interface reported.
    """
    if not entries:
        raise ValueError("Cannot seed interface state from an empty snapshot")

    name = select_candidate(entries, loopback_name)
    if name is None:
        name = next((n for n, _ in entries if n != loopback_name), entries[0][0])
    return InterfaceState(current_name=name, previous_name=name)
