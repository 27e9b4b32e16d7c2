import os
import signal
import sys
from typing import Optional


def _redirect_stdio(log_file: Optional[str]) -> None:
    sys.stdout.flush()
    sys.stderr.flush()

    stdin_fd = os.open(os.devnull, os.O_RDONLY)
    if log_file:
        out_fd = os.open(log_file, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o644)
    else:
        out_fd = os.open(os.devnull, os.O_RDWR)

    os.dup2(stdin_fd, sys.stdin.fileno())
    os.dup2(out_fd, sys.stdout.fileno())
    os.dup2(out_fd, sys.stderr.fileno())
    os.close(stdin_fd)
    os.close(out_fd)


def daemonize(log_file: Optional[str] = None) -> None:
    """
    Detaches from the controlling terminal with the usual double fork. Only the
    grandchild returns; stdin reads /dev/null and stdout/stderr go to log_file
    (or /dev/null). log_file should be absolute since the cwd becomes /.
    """
    if os.fork() > 0:
        os._exit(0)

    os.setsid()
    signal.signal(signal.SIGHUP, signal.SIG_IGN)

    if os.fork() > 0:
        os._exit(0)

    os.umask(0)
    os.chdir("/")
    _redirect_stdio(log_file)
