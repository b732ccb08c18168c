"""
LC-3 Virtual Machine - Logging Setup

Library modules only create loggers (logging.getLogger(__name__)); the
host calls setup_logging() once to attach handlers:

  - console: rich RichHandler, WARNING+ by default
  - file (optional): everything DEBUG+, one timestamped file per run,
    ``<log_dir>/<name>_YYYYMMDD_HHMMSS.log``
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    name: str = "lc3_vm",
    level: int = logging.DEBUG,
    console_level: int = logging.WARNING,
    log_dir: Optional[Path] = None,
    rich_console: bool = True,
) -> logging.Logger:
    """
    Configure and return a logger.

    Repeated calls with the same name return the already-configured
    logger untouched.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(level)

    log_file = None
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"{name}_{ts}.log"
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATEFMT))
        logger.addHandler(fh)

    if rich_console:
        ch = RichHandler(
            level=console_level,
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
    else:
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S",
        ))
    ch.setLevel(console_level)
    logger.addHandler(ch)

    if log_file is not None:
        logger.info("=" * 60)
        logger.info("Logger initialized: %s", name)
        logger.info("Log file: %s", log_file)
        logger.info("Console level: %s", logging.getLevelName(console_level))
        logger.info("=" * 60)

    return logger
