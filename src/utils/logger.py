from __future__ import annotations

import logging
import os
import re
import threading
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
_loggers: dict[tuple[str, str, str, str], logging.Logger] = {}
_lock = threading.Lock()

_LOG_ROOT = Path(os.getenv("LOG_DIR") or Path(__file__).resolve().parents[2] / "logs")


def _log_level() -> int:
    level = logging.getLevelName((os.getenv("LOG_LEVEL") or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def _sanitize_component(name: str | None) -> str:
    if not name:
        return "default"
    sanitized = re.sub(r"[^\w.-]+", "_", name.strip())
    sanitized = sanitized.strip("._")
    return sanitized or "default"


def _normalize_log_filename(name: str | None) -> str:
    sanitized = _sanitize_component(name or "service")
    if not sanitized.lower().endswith(".log"):
        sanitized = f"{sanitized}.log"
    return sanitized


def get_logger(
    module_name: str,
    source: str | None = None,
    log_name: str | None = None,
    subdir: str | None = None,
) -> logging.Logger:
    """คืน logger ที่เขียนไฟล์แยกตาม component และหมุนไฟล์รายวัน"""
    src = source or ""
    filename = _normalize_log_filename(log_name)
    normalized_subdir = _sanitize_component(subdir) if subdir else ""
    key = (module_name, src, filename, normalized_subdir)
    logger = _loggers.get(key)
    if logger is not None:
        return logger
    with _lock:
        logger = _loggers.get(key)
        if logger is not None:
            return logger
        logger_name = module_name if not src else f"{module_name}:{src}"
        if normalized_subdir:
            logger_name = f"{logger_name}:{normalized_subdir}"
        logger = logging.getLogger(logger_name)
        for existing in list(logger.handlers):
            logger.removeHandler(existing)
            existing.close()
        logger.setLevel(_log_level())
        log_dir = _LOG_ROOT / f"log_{_sanitize_component(src or module_name)}"
        if normalized_subdir:
            log_dir = log_dir / normalized_subdir
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = TimedRotatingFileHandler(
            str(log_dir / filename), when="D", interval=1, backupCount=7
        )
        handler.setFormatter(_formatter)
        logger.addHandler(handler)
        logger.propagate = False
        _loggers[key] = logger
        return logger
