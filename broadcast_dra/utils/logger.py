"""
Logging for broadcast_dra.

Every module logs under the `broadcast_dra.<subsystem>` namespace:

    commitment  malformed openings rejected by verify (debug), receipt mismatches (warning)
    ledger      entries appended to the audit chain (debug)
    session     phase transitions and timeouts (info), failed reveals (warning),
                clock rewinds and audit failures (error)
    resolution  settled outcome per auction (info)
    audit       passed transcripts (debug)
    cli         written transcripts (info), command failures (error)

Console output goes to stderr so command results on stdout stay parseable
JSON. Colour is used only when stderr is a terminal.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

import colorlog


ROOT_LOGGER_NAME = "broadcast_dra"

SUBSYSTEMS = ("commitment", "ledger", "session", "resolution", "audit", "cli")

LOG_FILE_NAME = "broadcast_dra.log"

CONSOLE_FORMAT = "%(log_color)s%(asctime)s [%(name)s] %(levelname)-8s%(reset)s %(message)s"
FILE_FORMAT = "%(asctime)s [%(name)s] %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


class DRALogger:
    """Owns the handlers of the `broadcast_dra` logger tree."""

    _initialized = False
    _log_file: Optional[Path] = None

    @classmethod
    def setup(
        cls,
        level: int = logging.INFO,
        log_dir: Optional[Union[str, Path]] = None,
        log_to_file: bool = False,
        force: bool = False,
    ):
        """
        Configure console (and optionally file) output.

        Args:
            level: Logging level for every handler
            log_dir: Directory for the log file; ./logs if None
            log_to_file: Also append plain-text records to <log_dir>/broadcast_dra.log
            force: Replace handlers installed by an earlier call
        """
        if cls._initialized and not force:
            return

        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.setLevel(level)
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

        stream = sys.stderr
        console_handler = colorlog.StreamHandler(stream)
        console_handler.setLevel(level)
        console_handler.setFormatter(colorlog.ColoredFormatter(
            CONSOLE_FORMAT,
            datefmt=DATE_FORMAT,
            log_colors=LOG_COLORS,
            no_color=not _is_terminal(stream),
        ))
        root_logger.addHandler(console_handler)

        cls._log_file = None
        if log_to_file:
            directory = Path(log_dir) if log_dir else Path("logs")
            directory.mkdir(parents=True, exist_ok=True)
            cls._log_file = directory / LOG_FILE_NAME
            file_handler = logging.FileHandler(cls._log_file)
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
            root_logger.addHandler(file_handler)

        cls._initialized = True

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Get the logger of one subsystem.

        Raises:
            ValueError: name is not one of SUBSYSTEMS
        """
        if name not in SUBSYSTEMS:
            raise ValueError(f"Unknown logging subsystem {name!r}")
        if not cls._initialized:
            cls.setup()
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")

    @classmethod
    def log_file(cls) -> Optional[Path]:
        return cls._log_file


def _is_terminal(stream) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific subsystem"""
    return DRALogger.get_logger(name)


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[Union[str, Path]] = None,
    log_to_file: bool = False,
):
    """(Re)configure logging; the CLI calls this once per invocation."""
    DRALogger.setup(level=level, log_dir=log_dir, log_to_file=log_to_file, force=True)


__all__ = ["DRALogger", "SUBSYSTEMS", "get_logger", "setup_logging"]
