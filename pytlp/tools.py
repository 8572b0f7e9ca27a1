import logging
from logging.handlers import SysLogHandler
import os
from shutil import which
from subprocess import run, DEVNULL
import sys


class ConditionalFormatter(logging.Formatter):
    """
    A custom formatter that applies different format strings based on record level.
    Shows file name and line number only for ERROR and CRITICAL levels.
    """

    def __init__(self) -> None:
        self.default_fmt = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
        self.error_fmt = "%(asctime)s [%(levelname)s] [%(filename)s:%(lineno)d] %(message)s"

        super().__init__(fmt=self.default_fmt, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record) -> str:
        original_fmt: str = self._style._fmt

        if record.levelno >= logging.ERROR:
            self._style._fmt = self.error_fmt
        else:
            self._style._fmt = self.default_fmt

        result: str = super().format(record)

        self._style._fmt = original_fmt

        return result


def setup_logger(syslog_address: str = "/dev/log") -> None:
    """Setup logging global

    Trace records are gated by the Tracer, so the level here is DEBUG.
    """
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(ConditionalFormatter())
    handlers: list[logging.Handler] = [stream_handler]

    if os.path.exists(syslog_address):
        # stale socket, e.g. inside containers
        try: syslog_handler = SysLogHandler(address=syslog_address)
        except OSError: pass
        else:
            syslog_handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
            handlers.append(syslog_handler)

    logging.basicConfig(level=logging.DEBUG, handlers=handlers)


# used to check if binary exists on the system
def does_command_exists(cmd: str) -> bool: return which(cmd) is not None


def write_sysf(value: object, path) -> bool:
    """
    Write a value to a kernel control file.

    :param value: value to write, converted with str()
    :param path: sysfs/procfs file
    :return: True if the kernel accepted the value, False otherwise
    """
    try:
        with open(path, "w") as f:
            f.write(f"{value}\n")
        return True
    except OSError:
        return False


def read_sysf(path) -> str | None:
    try:
        with open(path, "r") as f:
            return f.read().strip()
    except OSError:
        return None


def load_modules(*modules: str) -> None:
    if not does_command_exists("modprobe"): return
    for module in modules:
        run(["modprobe", module], stdout=DEVNULL, stderr=DEVNULL)
