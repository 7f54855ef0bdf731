"""
Logging configuration — process-wide setup, called once by the CLI.

Modules only ever do ``logger = logging.getLogger(__name__)``; this is
the one place handlers and formats are decided.

Level precedence:
    --debug  >  --verbose  >  --quiet  >  SVCFORGE_LOG_LEVEL  >  WARNING

``SVCFORGE_LOG_FILE`` adds a file handler, at ``SVCFORGE_LOG_FILE_LEVEL``
(defaults to the console level).
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LEVEL = "SVCFORGE_LOG_LEVEL"
ENV_FILE = "SVCFORGE_LOG_FILE"
ENV_FILE_LEVEL = "SVCFORGE_LOG_FILE_LEVEL"

# (format, datefmt) per console verbosity
_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-7s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s %(message)s", "%H:%M:%S"),
    logging.WARNING: ("%(levelname)s: %(message)s", None),
}
_FILE_FORMAT = ("%(asctime)s %(levelname)-7s %(name)s:%(lineno)d  %(message)s", "%Y-%m-%d %H:%M:%S")

_NOISY_LOGGERS = ("urllib3", "asyncio")


def resolve_level(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Pick the console level from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(ENV_LEVEL, "WARNING")


def parse_level(level: str | None) -> int:
    """Level name → numeric level; unknown names fall back to WARNING."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING


def _console_format(numeric_level: int) -> tuple[str, str | None]:
    if numeric_level <= logging.DEBUG:
        return _CONSOLE_FORMATS[logging.DEBUG]
    if numeric_level <= logging.INFO:
        return _CONSOLE_FORMATS[logging.INFO]
    return _CONSOLE_FORMATS[logging.WARNING]


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Install the console (stderr) handler and the optional file handler.

    Replaces any handlers already on the root logger, so calling it
    twice does not duplicate output.
    """
    console_level = parse_level(level)
    fmt, datefmt = _console_format(console_level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = parse_level(log_file_level) if log_file_level else console_level
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(*_FILE_FORMAT))
        root.addHandler(handler)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def setup_from_flags(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """CLI entry: resolve the level, read the file settings, set up. Returns the level."""
    level = resolve_level(debug=debug, verbose=verbose, quiet=quiet)
    setup_logging(
        level=level,
        log_file=os.environ.get(ENV_FILE),
        log_file_level=os.environ.get(ENV_FILE_LEVEL),
        quiet_third_party=not debug,
    )
    return level
