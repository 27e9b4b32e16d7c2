from enum import Enum


class MonitorState(Enum):
    IDLE = "IDLE"
    POLLING = "POLLING"

    # outcome of a poll:
    NO_CHANGE = "NO_CHANGE"
    CHANGE_DETECTED = "CHANGE_DETECTED"

    def __str__(self) -> str:
        return self.value
