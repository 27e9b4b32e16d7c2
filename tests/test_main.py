import json

import pytest

from ifacewatch import main as main_module
from ifacewatch.config import ConfigError
from ifacewatch.detector import InterfaceState
from ifacewatch.interface_monitor import StartupError
from ifacewatch.main import main, parse_config
from ifacewatch.triggers.throttle import ThrottleMode


class FakeMonitor:
    instances = []

    def __init__(self, config, fail_start=False) -> None:
        self.config = config
        self.fail_start = fail_start
        self.iface_state = None
        self.ran = False
        FakeMonitor.instances.append(self)

    def start(self):
        if self.fail_start:
            raise StartupError("No interfaces found.")
        self.iface_state = InterfaceState(current_name="wlan0")
        return self.iface_state

    def run(self) -> None:
        self.ran = True

    def stop(self) -> None:
        pass


@pytest.fixture(autouse=True)
def _no_sentry(monkeypatch):
    monkeypatch.delenv(main_module.SENTRY_DSN_ENV, raising=False)
    monkeypatch.setattr(main_module.signal, "signal", lambda signum, handler: None)
    FakeMonitor.instances = []


def test_exec_consumes_the_rest_of_the_command_line() -> None:
    config = parse_config(["-v", "-t", "5", "-e", "/usr/bin/vpn", "restart", "-v", "--now"])

    assert config.verbose is True
    assert config.very_verbose is False
    assert config.throttle_seconds == 5
    assert config.command_path == "/usr/bin/vpn"
    assert config.command_args == ("restart", "-v", "--now")


def test_double_v_is_very_verbose() -> None:
    config = parse_config(["-vv"])
    assert config.very_verbose is True
    assert config.verbose is True


def test_exec_without_command() -> None:
    with pytest.raises(ConfigError):
        parse_config(["-e"])


def test_cli_overrides_config_file(tmp_path) -> None:
    path = tmp_path / "ifacewatch.json"
    path.write_text(json.dumps({"throttle_seconds": 10, "throttle_mode": "poll", "command_path": "hook"}))

    config = parse_config(["-c", str(path), "-t", "2", "--log-file", "watch.log"])

    assert config.throttle_seconds == 2
    assert config.throttle_mode is ThrottleMode.POLL
    assert config.command_path == "hook"
    assert config.log_file.endswith("watch.log")
    assert config.log_file.startswith("/")


@pytest.mark.parametrize("argv", [["-t", "0"], ["-t", "-3"], ["--bogus"], ["-b", "ioctl"]])
def test_bad_configuration_exits_1(argv, capsys) -> None:
    assert main(argv) == 1
    assert capsys.readouterr().err


def test_no_interfaces_exits_1(monkeypatch, capsys) -> None:
    monkeypatch.setattr(main_module, "InterfaceMonitor", lambda config: FakeMonitor(config, fail_start=True))

    assert main(["-e", "/bin/true"]) == 1
    assert "No interfaces found." in capsys.readouterr().err


def test_runs_monitor(monkeypatch) -> None:
    monkeypatch.setattr(main_module, "InterfaceMonitor", FakeMonitor)

    assert main(["-t", "4", "-e", "hook", "up"]) == 0

    monitor = FakeMonitor.instances[0]
    assert monitor.ran is True
    assert monitor.config.command_args == ("up",)


def test_sentry_only_with_dsn(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(main_module.sentry_sdk, "init", lambda **kwargs: calls.append(kwargs))

    assert main_module.init_error_reporting(parse_config([])) is False

    monkeypatch.setenv(main_module.SENTRY_DSN_ENV, "https://key@sentry.example.com/1")
    assert main_module.init_error_reporting(parse_config([])) is True
    assert calls[0]["dsn"] == "https://key@sentry.example.com/1"
    assert calls[0]["send_default_pii"] is False
