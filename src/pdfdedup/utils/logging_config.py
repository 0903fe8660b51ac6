# src/pdfdedup/utils/logging_config.py
"""
File logging for deduplication runs.

Usage:
    from pdfdedup.utils.logging_config import Logger, LogFiles

    Logger.info("Planned 3 removals", file=LogFiles.DEDUP)
    Logger.error("Failed to trash ABCD1234", file=LogFiles.ERROR)

Configuration via environment variables:
    PDFDEDUP_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)
    PDFDEDUP_LOG_DIR: Base directory for log files (default: logs/)
    PDFDEDUP_LOG_MAX_BYTES: Max size per log file in bytes (default: 10MB)
    PDFDEDUP_LOG_BACKUP_COUNT: Number of backup files to keep (default: 5)
"""

from __future__ import annotations

import logging
import os
import uuid
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

_trace_id_var: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_FILE = "pdfdedup.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKUP_COUNT = 5
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] [%(trace_id)s] %(caller)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_CONFIG_FILE = Path(__file__).parent / "log_config.yaml"

_DEFAULT_FILES = {
    "dedup": "dedup/dedup.log",
    "error": "errors/error.log",
}


class _LogFilesMeta(type):
    """Allows attribute access like LogFiles.DEDUP."""

    def __getattr__(cls, name: str) -> str:
        files = cls._load()
        key = name.lower()
        if key in files:
            return files[key]
        raise AttributeError(f"Log file '{name}' not found in config")


class LogFiles(metaclass=_LogFilesMeta):
    """
    Log file paths loaded from log_config.yaml next to this module.

    Entries under the 'files' key override or extend the defaults.
    """

    _files: Optional[Dict[str, str]] = None

    @classmethod
    def _load(cls) -> Dict[str, str]:
        if cls._files is not None:
            return cls._files

        files = dict(_DEFAULT_FILES)
        if LOG_CONFIG_FILE.exists():
            import yaml

            try:
                with open(LOG_CONFIG_FILE, "r", encoding="utf-8") as f:
                    config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logging.getLogger(__name__).warning(f"Ignoring unreadable log config: {e}")
                config = {}
            if isinstance(config.get("files"), dict):
                files.update({str(k).lower(): str(v) for k, v in config["files"].items()})

        cls._files = files
        return files

    @classmethod
    def get(cls, name: str) -> str:
        """Get log file path by name, falling back to '<name>/<name>.log'."""
        return cls._load().get(name.lower(), f"{name}/{name}.log")


class _TraceFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = _trace_id_var.get() or "-"
        if not hasattr(record, "caller"):
            record.caller = f"{record.filename}:{record.lineno}"
        return True


_config: Dict[str, object] = {}
_loggers: Dict[str, logging.Logger] = {}


def _get_config() -> Dict[str, object]:
    """Read logging configuration from environment variables."""
    return {
        "level": os.environ.get("PDFDEDUP_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        "base_dir": os.environ.get("PDFDEDUP_LOG_DIR", DEFAULT_LOG_DIR),
        "max_bytes": int(os.environ.get("PDFDEDUP_LOG_MAX_BYTES", DEFAULT_MAX_BYTES)),
        "backup_count": int(os.environ.get("PDFDEDUP_LOG_BACKUP_COUNT", DEFAULT_BACKUP_COUNT)),
    }


def _resolve_file_path(file: Optional[str]) -> Path:
    base_dir = Path(str(_config.get("base_dir", DEFAULT_LOG_DIR)))
    return base_dir / (file or DEFAULT_LOG_FILE)


def _file_logger(file: Optional[str]) -> logging.Logger:
    path = _resolve_file_path(file)
    key = str(path)
    if key in _loggers:
        return _loggers[key]

    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=key,
        maxBytes=int(_config.get("max_bytes", DEFAULT_MAX_BYTES)),
        backupCount=int(_config.get("backup_count", DEFAULT_BACKUP_COUNT)),
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT))
    handler.addFilter(_TraceFilter())

    file_logger = logging.getLogger(f"pdfdedup.files.{key}")
    file_logger.propagate = False
    file_logger.setLevel(str(_config.get("level", DEFAULT_LOG_LEVEL)))
    file_logger.addHandler(handler)
    _loggers[key] = file_logger
    return file_logger


class Logger:
    """
    Static logger writing to named log files.

    Messages also reach the module logger `pdfdedup`, so console handlers
    configured by the CLI see them too.
    """

    @staticmethod
    def init(
        level: Optional[str] = None,
        base_dir: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        """Initialize once; explicit arguments override environment values."""
        if _config:
            return
        _config.update(_get_config())
        if level:
            _config["level"] = level.upper()
        if base_dir:
            _config["base_dir"] = base_dir
        if max_bytes:
            _config["max_bytes"] = max_bytes
        if backup_count:
            _config["backup_count"] = backup_count

    @staticmethod
    def _log(level: int, message: str, file: Optional[str]) -> None:
        Logger.init()
        logging.getLogger("pdfdedup").log(level, message, stacklevel=3)
        _file_logger(file).log(level, message, stacklevel=3)

    @staticmethod
    def debug(message: str, file: Optional[str] = None) -> None:
        Logger._log(logging.DEBUG, message, file)

    @staticmethod
    def info(message: str, file: Optional[str] = None) -> None:
        Logger._log(logging.INFO, message, file)

    @staticmethod
    def warning(message: str, file: Optional[str] = None) -> None:
        Logger._log(logging.WARNING, message, file)

    @staticmethod
    def error(message: str, file: Optional[str] = None) -> None:
        Logger._log(logging.ERROR, message, file)

    @staticmethod
    def set_level(level: str) -> None:
        """Change the log level at runtime."""
        Logger.init()
        _config["level"] = level.upper()
        for file_logger in _loggers.values():
            file_logger.setLevel(level.upper())

    @staticmethod
    def close() -> None:
        """Close all file handlers and forget the configuration."""
        for file_logger in _loggers.values():
            for handler in list(file_logger.handlers):
                handler.close()
                file_logger.removeHandler(handler)
        _loggers.clear()
        _config.clear()


def generate_trace_id() -> str:
    return f"dedup-{uuid.uuid4().hex[:12]}"


def set_trace_id(trace_id: Optional[str] = None) -> str:
    """Set the trace id for the current context; generates one if omitted."""
    tid = trace_id or generate_trace_id()
    _trace_id_var.set(tid)
    return tid


def get_trace_id() -> Optional[str]:
    return _trace_id_var.get()


def clear_trace_id() -> None:
    _trace_id_var.set(None)
