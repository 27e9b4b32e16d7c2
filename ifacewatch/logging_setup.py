import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def setup_logging(verbosity: int = 0, log_file: Optional[str] = None) -> None:
    root = logging.getLogger()
    root.setLevel(logging.INFO if verbosity else logging.WARNING)

    # DEBUG stays limited to our own modules; libraries keep the root level
    app_logger = logging.getLogger("ifacewatch")
    app_logger.setLevel(logging.DEBUG if verbosity > 1 else logging.NOTSET)

    if root.handlers:
        return

    fmt = logging.Formatter(LOG_FORMAT)

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    root.addHandler(ch)

    if log_file:
        fh = RotatingFileHandler(log_file, maxBytes=2_000_000, backupCount=3, encoding="utf-8")
        fh.setFormatter(fmt)
        root.addHandler(fh)
