"""
Logging setup for the CLI. Library modules only take child loggers of
"signal_engine" (signal_engine.signals, signal_engine.backtest, ...).
"""

from __future__ import annotations
import logging
import sys
from pathlib import Path
from typing import Mapping, Optional

LOGGER_NAME = "signal_engine"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level(name: str, fallback: int = logging.INFO) -> int:
    return getattr(logging, str(name).upper(), fallback)


def module_logger_name(module: str) -> str:
    """'signals.cache' -> 'signal_engine.signals.cache'; full names pass through."""
    if module == LOGGER_NAME or module.startswith(LOGGER_NAME + "."):
        return module
    return f"{LOGGER_NAME}.{module}"


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    log_file: Optional[str] = None,
    module_levels: Optional[Mapping[str, str]] = None,
) -> logging.Logger:
    """
    Console handler on stderr (stdout carries CLI results) plus an optional file.

    module_levels overrides the package level per submodule, e.g.
    {"signals.cache": "DEBUG"} to trace indicator computation during a backtest.
    Handlers carry no level of their own, so a module set below the package
    level still gets through. Calling again replaces the previous handlers.
    """
    package = logging.getLogger(LOGGER_NAME)
    package.setLevel(_level(level))
    for handler in list(package.handlers):
        package.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    package.addHandler(console)

    if log_dir and log_file:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_dir / log_file, encoding="utf-8")
        fh.setFormatter(formatter)
        package.addHandler(fh)

    for module, module_level in (module_levels or {}).items():
        logging.getLogger(module_logger_name(module)).setLevel(_level(module_level, package.level))

    return package
