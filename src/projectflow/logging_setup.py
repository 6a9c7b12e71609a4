# src/projectflow/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

_PACKAGE = "projectflow"
_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def level_from_name(name: str | None, default: int = logging.INFO) -> int:
    """Map "debug"/"INFO"/... to a logging level; unknown names give `default`."""
    level = logging.getLevelName((name or "").strip().upper())
    return level if isinstance(level, int) else default


class _ConsoleNoiseFilter(logging.Filter):
    """
    What reaches the console:
    - projectflow.* at any level the handler lets through
    - warnings.warn(...) output ('py.warnings') from WARNING up
    - anything else only at ERROR+
    """

    def __init__(self, package: str = _PACKAGE, other_level: int = logging.ERROR) -> None:
        super().__init__()
        self._package = package
        self._other_level = other_level

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name == self._package or name.startswith(self._package + "."):
            return True
        if name == "py.warnings":
            return record.levelno >= logging.WARNING
        return record.levelno >= self._other_level


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    return handler


def setup_logging(
    *,
    log_dir: str | Path = ".local/projectflow",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Replace root handlers with a filtered stderr handler and a full log file
    (<log_dir>/projectflow.log). Returns the log file path.
    """
    log_file = Path(log_dir) / "projectflow.log"
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for h in list(root.handlers):
        root.removeHandler(h)

    console = _handler(logging.StreamHandler(sys.stderr), console_level)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)
    root.addHandler(_handler(logging.FileHandler(str(log_file), encoding="utf-8"), file_level))

    logging.captureWarnings(True)
    return log_file
