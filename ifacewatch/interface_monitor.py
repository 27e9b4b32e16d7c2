import logging
import threading
import time
from typing import Callable, List, Optional

from ifacewatch.api.interfaces import InterfaceEntry, SnapshotUnavailable, snapshot
from ifacewatch.config import ExecutionConfig
from ifacewatch.detector import DetectionResult, InterfaceState, detect, seed_state
from ifacewatch.states.state import MonitorState
from ifacewatch.triggers.actions import ExecutionOutcome, execute_command, report_outcome
from ifacewatch.triggers.throttle import ThrottleMode, allow

log = logging.getLogger(__name__)

SnapshotFunc = Callable[[], List[InterfaceEntry]]


class StartupError(Exception):
    """The monitor cannot start, e.g. because the host reports no interfaces."""


class InterfaceMonitor:
    """
    Polls the interface snapshot, feeds the change detector and runs the
    configured command when the active interface changes, subject to the
    throttle.
    """

    def __init__(self, config: ExecutionConfig, snapshot_func: Optional[SnapshotFunc] = None,
                 clock: Callable[[], float] = time.time,
                 sleep: Optional[Callable[[float], object]] = None) -> None:
        self.config = config
        self._snapshot: SnapshotFunc = snapshot_func or (lambda: snapshot(config.backend))
        self._clock = clock
        self._stop_evt = threading.Event()
        self._sleep = sleep or self._stop_evt.wait

        self.iface_state: Optional[InterfaceState] = None
        self.state: MonitorState = MonitorState.IDLE
        self.last_outcome: Optional[ExecutionOutcome] = None

    def start(self) -> InterfaceState:
        """
        Seeds the interface state from the first snapshot. A host with no
        interfaces at all, or one whose interfaces cannot be listed, is fatal.
        """
        try:
            entries = self._snapshot()
        except SnapshotUnavailable as e:
            raise StartupError(f"No interfaces found. ({e})") from e
        if not entries:
            raise StartupError("No interfaces found.")

        self.iface_state = seed_state(entries, self.config.loopback_name)
        log.debug("Tracking %s at startup", self.iface_state.current_name)
        return self.iface_state

    def stop(self) -> None:
        self._stop_evt.set()

    def _set_state(self, new_state: MonitorState) -> None:
        if new_state != self.state:
            log.debug("State transition: %s -> %s", self.state, new_state)
        self.state = new_state

    def poll_once(self, now: Optional[float] = None) -> Optional[DetectionResult]:
        """
        One tick of the loop, without the sleep. Returns the detection result,
        or None when the tick was throttled or the snapshot failed.
        """
        if self.iface_state is None:
            raise RuntimeError("InterfaceMonitor.start() must be called before polling")

        cfg = self.config
        iface_state = self.iface_state
        iface_state.changed = False
        if now is None:
            now = self._clock()

        if cfg.throttle_mode is ThrottleMode.POLL:
            if not allow(now, iface_state.last_action_time, cfg.throttle_seconds):
                return None
            iface_state.last_action_time = now

        self._set_state(MonitorState.POLLING)
        try:
            entries = self._snapshot()
        except SnapshotUnavailable as e:
            log.warning("Interface snapshot failed, retrying next tick: %s", e)
            self._set_state(MonitorState.IDLE)
            return None

        result = detect(entries, iface_state, cfg.loopback_name)
        if cfg.very_verbose:
            print(iface_state.current_name, flush=True)

        if not result.changed:
            self._set_state(MonitorState.NO_CHANGE)
            self._set_state(MonitorState.IDLE)
            return result

        self._set_state(MonitorState.CHANGE_DETECTED)
        log.debug("Interface changed: %s -> %s", iface_state.previous_name, iface_state.current_name)

        if cfg.throttle_mode is ThrottleMode.ACTION:
            if allow(now, iface_state.last_action_time, cfg.throttle_seconds):
                iface_state.last_action_time = now
                self.handle_interface_change(iface_state)
            else:
                log.debug("Change to %s inside throttle window, not acting", iface_state.current_name)
        else:
            self.handle_interface_change(iface_state)

        self._set_state(MonitorState.IDLE)
        return result

    def handle_interface_change(self, iface_state: InterfaceState) -> None:
        cfg = self.config
        if cfg.verbose and not cfg.very_verbose:
            print(iface_state.current_name, flush=True)

        if not cfg.command_path:
            return

        if cfg.very_verbose:
            print(f"executing: {cfg.command_path}", flush=True)
        outcome = execute_command(cfg.command_path, iface_state.current_name, cfg.command_args,
                                  timeout=cfg.command_timeout, detached=cfg.daemonize)
        report_outcome(outcome)
        self.last_outcome = outcome

    def run(self) -> None:
        """
        Polls until stop() is called. Errors inside a tick are logged and the
        loop carries on with the next one.
        """
        if self.iface_state is None:
            self.start()

        while not self._stop_evt.is_set():
            try:
                self.poll_once()
            except Exception:
                log.exception("Unexpected error while polling interfaces")
            self._sleep(self.config.poll_interval)
