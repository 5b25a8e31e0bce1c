"""Logging configuration for s5cmdfs."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from loguru import logger


class JSONFormatter:
    """Render loguru records as single-line JSON."""
    
    def __call__(self, record: dict[str, Any]) -> str:
        payload = {
            "timestamp": record["time"].isoformat(),
            "level": record["level"].name,
            "message": record["message"],
            "module": record.get("module", ""),
            "function": record.get("function", ""),
            "line": record.get("line", 0),
        }
        
        exception = record.get("exception")
        if exception is not None:
            payload["exception"] = {
                "type": exception.type.__name__ if exception.type else None,
                "value": str(exception.value) if exception.value else None,
            }
        
        # uri / stage (and exit_code on failure) bound by the write path
        extra = record.get("extra") or {}
        payload.update({key: str(value) for key, value in extra.items()})
        
        # loguru treats the returned string as a format template
        return json.dumps(payload, ensure_ascii=False).replace("{", "{{").replace("}", "}}") + "\n"


def setup_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: Path | None = None,
) -> None:
    """Configure logging sinks.
    
    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Emit one JSON object per record instead of coloured text.
        log_file: Optional path to a rotating log file in addition to stderr.
    """
    logger.remove()
    
    formatter: Any
    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = (
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )
    
    # uploads run on producer threads; enqueue keeps sinks thread-safe
    logger.add(
        sys.stderr,
        format=formatter,
        level=level,
        colorize=not json_format,
        enqueue=True,
    )
    
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=formatter,
            level=level,
            rotation="10 MB",
            retention="7 days",
            compression="zip",
            enqueue=True,
        )


def get_logger(name: str | None = None) -> Any:
    """Return the shared logger, optionally bound to a component name."""
    if name:
        return logger.bind(name=name)
    return logger


__all__ = ["JSONFormatter", "setup_logging", "get_logger"]
