# ifacewatch/config.py

import json
import math
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional, Tuple

from ifacewatch.api.interfaces import BACKENDS
from ifacewatch.detector import LOOPBACK_NAME
from ifacewatch.triggers.throttle import ThrottleMode

DEFAULT_THROTTLE_SECONDS = 3
DEFAULT_POLL_INTERVAL = 1.0

BOOL_KEYS = ("verbose", "very_verbose", "daemonize")
STRING_KEYS = ("command_path", "backend", "loopback_name", "log_file", "sentry_dsn")


class ConfigError(Exception):
    """Invalid configuration; the monitor must not start."""


@dataclass(frozen=True)
class ExecutionConfig:
    verbose: bool = False
    very_verbose: bool = False
    throttle_seconds: int = DEFAULT_THROTTLE_SECONDS
    command_path: Optional[str] = None
    command_args: Tuple[str, ...] = ()
    poll_interval: float = DEFAULT_POLL_INTERVAL
    throttle_mode: ThrottleMode = ThrottleMode.ACTION
    command_timeout: Optional[float] = None
    backend: str = "netifaces"
    loopback_name: str = LOOPBACK_NAME
    daemonize: bool = False
    log_file: Optional[str] = None
    sentry_dsn: Optional[str] = None

    @property
    def verbosity(self) -> int:
        return 2 if self.very_verbose else 1 if self.verbose else 0


def _expand_env_in_config(obj: Any) -> Any:
    """
    Recursively expand config strings of the form "env:VAR_NAME" using os.environ.
    """
    if isinstance(obj, dict):
        return {k: _expand_env_in_config(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_in_config(i) for i in obj]
    elif isinstance(obj, str) and obj.startswith("env:"):
        var_name = obj.split(":", 1)[1]
        return os.environ.get(var_name, "")
    else:
        return obj


def load_config_file(config_path: str) -> Dict[str, Any]:
    try:
        with open(config_path, 'r') as f:
            raw_config = json.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {config_path}: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Config file {config_path} must contain a JSON object")
    return _expand_env_in_config(raw_config)


def _positive_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a positive integer.")
    if isinstance(value, float) and not value.is_integer():
        raise ConfigError(f"{key} must be a positive integer.")
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ConfigError(f"{key} must be a positive integer.") from None
    if number <= 0:
        raise ConfigError(f"{key} must be a positive integer.")
    return number


def _positive_float(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a positive number.")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a positive number.") from None
    if not math.isfinite(number) or number <= 0:
        raise ConfigError(f"{key} must be a positive number.")
    return number


def _check_types(settings: Dict[str, Any]) -> None:
    for key in BOOL_KEYS:
        if key in settings and not isinstance(settings[key], bool):
            raise ConfigError(f"{key} must be true or false.")
    for key in STRING_KEYS:
        if key in settings and not isinstance(settings[key], str):
            raise ConfigError(f"{key} must be a string.")

    args = settings.get("command_args", ())
    if isinstance(args, str) or not isinstance(args, (list, tuple)):
        raise ConfigError("command_args must be a list of strings.")
    if not all(isinstance(a, str) for a in args):
        raise ConfigError("command_args must be a list of strings.")


def build_config(values: Dict[str, Any]) -> ExecutionConfig:
    """
    Validates a flat dict of settings (config file merged with command line
    flags) and freezes it into an ExecutionConfig. Unset or None values fall
    back to the defaults.
    """
    known = {f.name for f in fields(ExecutionConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    settings = {k: v for k, v in values.items() if v is not None}
    _check_types(settings)

    if "throttle_seconds" in settings:
        settings["throttle_seconds"] = _positive_int("Throttle delay", settings["throttle_seconds"])

    if "poll_interval" in settings:
        interval = _positive_float("Poll interval", settings["poll_interval"])
        if interval > 1.0:
            raise ConfigError("Poll interval must not exceed 1 second.")
        settings["poll_interval"] = interval

    if "command_timeout" in settings:
        settings["command_timeout"] = _positive_float("Command timeout", settings["command_timeout"])

    if "throttle_mode" in settings:
        try:
            settings["throttle_mode"] = ThrottleMode(settings["throttle_mode"])
        except ValueError:
            raise ConfigError(f"Unknown throttle mode: {settings['throttle_mode']}") from None

    backend = settings.get("backend", "netifaces")
    if backend not in BACKENDS:
        raise ConfigError(f"Unknown interface backend: {backend}")

    if "command_args" in settings:
        settings["command_args"] = tuple(settings["command_args"])
    if not settings.get("command_path"):
        settings.pop("command_path", None)
        if settings.get("command_args"):
            raise ConfigError("Command arguments given without a command.")

    if not settings.get("sentry_dsn"):
        settings.pop("sentry_dsn", None)

    if settings.get("very_verbose"):
        settings["verbose"] = True

    return ExecutionConfig(**settings)
