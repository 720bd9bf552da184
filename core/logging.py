# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Structured logging with context
# PURPOSE: Consistent, queryable logging across planner, resolver, transitioner
# CREATED: 18 OCT 2026
# ============================================================================
"""
Structured Logging

JSON or human-readable logging with contextual fields.

Features:
- Context stack carrying session_id, job_id, stage_slug, model_id
- JSON output for log aggregation (LOG_FORMAT=json)
- Named checkpoints marking milestones of an operation

Usage:
    from core.logging import get_logger, log_context

    logger = get_logger(__name__)

    with log_context(session_id="sess-1", stage_slug="thesis"):
        logger.info("Planning jobs")
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

_CONTEXT_FIELDS = (
    "session_id",
    "job_id",
    "stage_slug",
    "model_id",
    "correlation_id",
    "component",
    "operation",
)


class ComponentType(str, Enum):
    """Component types for logging categorization."""
    API = "api"
    PLANNER = "planner"
    RESOLVER = "resolver"
    TRANSITIONER = "transitioner"
    REPOSITORY = "repository"
    MESSAGING = "messaging"
    INFRASTRUCTURE = "infrastructure"


@dataclass
class LogContext:
    """Contextual fields attached to every record logged inside log_context()."""
    session_id: Optional[str] = None
    job_id: Optional[str] = None
    stage_slug: Optional[str] = None
    model_id: Optional[str] = None
    correlation_id: Optional[str] = None
    component: Optional[str] = None
    operation: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict, excluding None values."""
        result = {
            key: value
            for key, value in asdict(self).items()
            if value is not None and key != "extra"
        }
        if self.extra:
            result.update(self.extra)
        return result


# Per-task context: asyncio tasks each see their own copy
_current_context: ContextVar[Optional[LogContext]] = ContextVar("dialectic_log_context", default=None)


def get_current_context() -> LogContext:
    """Get current logging context."""
    return _current_context.get() or LogContext()


@contextmanager
def log_context(**kwargs):
    """
    Push logging context for the duration of the block.

    Unspecified fields are inherited from the enclosing context.

    Example:
        with log_context(session_id="sess-1", model_id="model-a"):
            logger.info("Inserting job")
    """
    parent = get_current_context()
    values = {name: kwargs.get(name, getattr(parent, name)) for name in _CONTEXT_FIELDS}
    new_context = LogContext(
        **values,
        extra={**parent.extra, **kwargs.get("extra", {})},
    )

    token = _current_context.set(new_context)
    try:
        yield new_context
    finally:
        _current_context.reset(token)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for log aggregators."""

    def __init__(self, include_context: bool = True):
        super().__init__()
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_context:
            context_dict = get_current_context().to_dict()
            if context_dict:
                log_data["context"] = context_dict

        if hasattr(record, "extra") and record.extra:
            log_data["data"] = record.extra

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data["source"] = {
            "file": record.filename,
            "line": record.lineno,
            "function": record.funcName,
        }

        return json.dumps(log_data, default=str)


class HumanFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    _SHORT_NAMES = (
        ("session_id", "session"),
        ("job_id", "job"),
        ("stage_slug", "stage"),
        ("model_id", "model"),
    )

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname.ljust(8)

        context = get_current_context()
        context_parts = [
            f"{short}={getattr(context, name)}"
            for name, short in self._SHORT_NAMES
            if getattr(context, name)
        ]
        context_str = f" [{', '.join(context_parts)}]" if context_parts else ""

        result = f"{timestamp} {level} {record.name}{context_str}: {record.getMessage()}"

        if record.exc_info:
            result += f"\n{self.formatException(record.exc_info)}"

        return result


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that merges the current context into each record."""

    def process(self, msg, kwargs):
        extra = kwargs.get("extra", {})
        component = self.extra.get("component") if self.extra else None
        if component is not None:
            extra["component"] = getattr(component, "value", component)
        extra.update(get_current_context().to_dict())
        kwargs["extra"] = {"extra": extra}
        return msg, kwargs


def get_logger(
    name: str,
    component: Optional[ComponentType] = None,
) -> ContextLogger:
    """Get a context-aware logger."""
    return ContextLogger(logging.getLogger(name), {"component": component})


def configure_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = False,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_output: Use JSON format (for production)
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if json_output or os.getenv("LOG_FORMAT", "").lower() == "json":
        formatter: logging.Formatter = StructuredFormatter(include_context=True)
    else:
        formatter = HumanFormatter()

    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root.addHandler(handler)


# ============================================================================
# CHECKPOINT LOGGING
# ============================================================================

def log_checkpoint(
    name: str,
    data: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """
    Log a named checkpoint (e.g. "jobs_planned", "stage_advanced").

    The current context's identifiers are copied into the checkpoint data.
    """
    if logger is None:
        logger = logging.getLogger("checkpoint")

    checkpoint_data: Dict[str, Any] = {
        "checkpoint": name,
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }
    context = get_current_context()
    for key in ("session_id", "job_id", "stage_slug"):
        value = getattr(context, key)
        if value:
            checkpoint_data[key] = value
    if data:
        checkpoint_data["data"] = data

    logger.info(f"CHECKPOINT: {name}", extra={"extra": checkpoint_data})


__all__ = [
    "ComponentType",
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "ContextLogger",
    "get_logger",
    "configure_logging",
    "log_context",
    "get_current_context",
    "log_checkpoint",
]
