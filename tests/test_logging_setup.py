import logging
from logging.handlers import RotatingFileHandler

import pytest

from ifacewatch.logging_setup import setup_logging


@pytest.fixture
def bare_root():
    root = logging.getLogger()
    app_logger = logging.getLogger("ifacewatch")
    saved_handlers, saved_level, saved_app_level = root.handlers[:], root.level, app_logger.level
    root.handlers = []
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers = saved_handlers
    root.setLevel(saved_level)
    app_logger.setLevel(saved_app_level)


def test_levels_follow_verbosity(bare_root) -> None:
    app_logger = logging.getLogger("ifacewatch")

    setup_logging(0)
    assert bare_root.level == logging.WARNING
    assert app_logger.getEffectiveLevel() == logging.WARNING
    setup_logging(1)
    assert bare_root.level == logging.INFO
    assert app_logger.getEffectiveLevel() == logging.INFO
    setup_logging(2)
    assert bare_root.level == logging.INFO
    assert app_logger.getEffectiveLevel() == logging.DEBUG


def test_very_verbose_keeps_library_debug_quiet(bare_root) -> None:
    setup_logging(2)

    assert logging.getLogger("ifacewatch.interface_monitor").isEnabledFor(logging.DEBUG)
    assert not logging.getLogger("urllib3.connectionpool").isEnabledFor(logging.DEBUG)
    assert not logging.getLogger("psutil").isEnabledFor(logging.DEBUG)


def test_log_file_adds_rotating_handler(bare_root, tmp_path) -> None:
    log_file = tmp_path / "ifacewatch.log"
    setup_logging(1, str(log_file))

    assert len(bare_root.handlers) == 2
    assert any(isinstance(h, RotatingFileHandler) for h in bare_root.handlers)

    logging.getLogger("ifacewatch.test").info("tracking wlan0")
    for handler in bare_root.handlers:
        handler.flush()
    assert "tracking wlan0" in log_file.read_text()


def test_setup_is_idempotent(bare_root) -> None:
    setup_logging(0)
    setup_logging(0)
    assert len(bare_root.handlers) == 1
