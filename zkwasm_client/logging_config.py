"""
logging_config.py
Handlers for scripts that drive a Player. Library modules only create
loggers under "zkwasm_client" and never install handlers themselves.

The submitter attaches `signer`, `nonce` and `command` to its records; the
JSON-lines file keeps them as fields so a run can be audited per signer.

Environment
-----------
- ZKWASM_LOG_LEVEL   level name used when setup_logging() gets none (INFO)
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

PACKAGE_LOGGER = "zkwasm_client"
TRANSACTION_FIELDS = ("signer", "nonce", "command")

TERMINAL_FORMAT = "%(asctime)s [%(levelname).1s] %(name)s: %(message)s"


class JsonLinesFormatter(logging.Formatter):
    """One JSON object per record, with any transaction fields the record carries."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in TRANSACTION_FIELDS:
            if hasattr(record, name):
                entry[name] = getattr(record, name)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def level_from_env(default: int = logging.INFO) -> int:
    raw = os.environ.get("ZKWASM_LOG_LEVEL", "").strip().upper()
    if not raw:
        return default
    level = logging.getLevelName(raw)
    if not isinstance(level, int):
        raise EnvironmentError(f"ZKWASM_LOG_LEVEL must be a logging level name, got {raw!r}")
    return level


def setup_logging(level: Optional[Union[int, str]] = None,
                  log_file_path: Optional[str] = None) -> logging.Logger:
    """Replace the package logger's handlers with a terminal handler and an optional JSON-lines file."""
    if level is None:
        level = level_from_env()
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    pkg_logger.setLevel(level)
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
        handler.close()

    terminal = logging.StreamHandler(sys.stdout)
    terminal.setFormatter(logging.Formatter(TERMINAL_FORMAT, datefmt="%H:%M:%S"))
    pkg_logger.addHandler(terminal)

    if log_file_path:
        path = Path(log_file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        audit = logging.FileHandler(path, encoding="utf-8")
        audit.setFormatter(JsonLinesFormatter())
        pkg_logger.addHandler(audit)

    pkg_logger.propagate = False
    return pkg_logger
