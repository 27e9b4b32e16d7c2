# ifacewatch/triggers/actions.py

import logging
import os
import signal
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

log = logging.getLogger(__name__)


class OutcomeKind(Enum):
    SUCCESS = "success"
    EXIT_ERROR = "exit_error"
    SIGNALED = "signaled"
    ABNORMAL = "abnormal"
    SPAWN_FAILED = "spawn_failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class ExecutionOutcome:
    kind: OutcomeKind
    argv: List[str]
    exit_status: Optional[int] = None
    signal_number: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


def build_argv(command_path: str, interface_name: str, extra_args: Sequence[str] = ()) -> List[str]:
    """argv[0] is the command, argv[1] the interface, then the extra arguments."""
    return [command_path, interface_name, *extra_args]


def _outcome_from_returncode(argv: List[str], returncode: Optional[int]) -> ExecutionOutcome:
    if returncode is None:
        return ExecutionOutcome(OutcomeKind.ABNORMAL, argv)
    if returncode < 0:
        # Popen reports death by signal N as -N
        return ExecutionOutcome(OutcomeKind.SIGNALED, argv, signal_number=-returncode)
    if returncode != 0:
        return ExecutionOutcome(OutcomeKind.EXIT_ERROR, argv, exit_status=returncode)
    return ExecutionOutcome(OutcomeKind.SUCCESS, argv, exit_status=0)


def execute_command(command_path: str, interface_name: str, extra_args: Sequence[str] = (),
                    timeout: Optional[float] = None, detached: bool = False) -> ExecutionOutcome:
    """
    Runs the command once for interface_name and waits for it to finish.

    The child inherits the environment and stdio of the monitor. With
    detached=True it gets its own session, so a hangup on the monitor's
    terminal does not reach it. When timeout expires the child is killed.
    Nothing here raises; every failure is returned as an outcome.
    """
    argv = build_argv(command_path, interface_name, extra_args)
    try:
        proc = subprocess.Popen(argv, start_new_session=detached)
    except OSError as e:
        return ExecutionOutcome(OutcomeKind.SPAWN_FAILED, argv, error=str(e))

    try:
        returncode = proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        if detached:
            # the child leads its own session; take its children down too
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
        proc.wait()
        return ExecutionOutcome(OutcomeKind.TIMED_OUT, argv, error=f"no exit after {timeout} seconds")

    return _outcome_from_returncode(argv, returncode)


def report_outcome(outcome: ExecutionOutcome) -> None:
    """Logs a finished invocation. Failures are reported, never raised."""
    kind = outcome.kind
    if kind is OutcomeKind.SUCCESS:
        log.debug("Command %s finished successfully", outcome.argv)
    elif kind is OutcomeKind.EXIT_ERROR:
        log.warning("Child process exited with error status %d", outcome.exit_status)
    elif kind is OutcomeKind.SIGNALED:
        log.warning("Child process terminated by signal %d", outcome.signal_number)
    elif kind is OutcomeKind.SPAWN_FAILED:
        log.error("Failed to start %s: %s", outcome.argv[0], outcome.error)
    elif kind is OutcomeKind.TIMED_OUT:
        log.error("Child process killed, %s", outcome.error)
    else:
        log.error("Child process terminated abnormally.")
