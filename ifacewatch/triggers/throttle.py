from enum import Enum


class ThrottleMode(Enum):
    # Detect every tick, throttle only the command
    ACTION = "action"
    # Throttle the snapshot and detection themselves
    POLL = "poll"

    def __str__(self) -> str:
        return self.value


def allow(now: float, last_action_time: float, throttle_seconds: float) -> bool:
    """True once at least throttle_seconds have passed since last_action_time."""
    return now - last_action_time >= throttle_seconds


def get_all_modes() -> list[str]:
    return [mode.value for mode in ThrottleMode]
