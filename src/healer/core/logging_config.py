"""
Logging configuration for the step self-healing plugin.

This module provides structured logging configuration with different loggers
for the components of the healing workflow, plus the scoped output mute used
while page HTML is captured.
"""

import logging
import logging.handlers
import json
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Iterator
from dataclasses import asdict, is_dataclass


HEALING_COMPONENTS = ("orchestrator", "completion", "interpreter", "rewriter", "helpers")

EXTERNAL_LOGGERS = {
    "crewai": "WARNING",
    "litellm": "WARNING",
    "LiteLLM": "WARNING",
    "langchain": "WARNING",
    "selenium": "WARNING",
    "urllib3": "WARNING",
}


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    CONTEXT_FIELDS = ('session_id', 'test_case', 'operation', 'duration',
                      'success', 'error_code', 'metadata')

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        for name in self.CONTEXT_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        if record.exc_info:
            log_data['exception'] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info)
            }

        return json.dumps(log_data, default=self._json_serializer)

    def _json_serializer(self, obj):
        """Custom JSON serializer for complex objects."""
        if is_dataclass(obj):
            return asdict(obj)
        elif hasattr(obj, 'isoformat'):  # datetime objects
            return obj.isoformat()
        elif hasattr(obj, '__dict__'):
            return obj.__dict__
        else:
            return str(obj)


class HealingLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter for healing operations with contextual information."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        """Process log message and add contextual information."""
        extra = dict(self.extra)
        extra.update(kwargs.get('extra') or {})
        kwargs['extra'] = extra
        return msg, kwargs

    def log_operation_start(self, operation: str, **metadata):
        """Log the start of a healing operation."""
        self.info(f"Starting {operation}", extra={
            'operation': operation,
            'phase': 'start',
            'metadata': metadata
        })

    def log_operation_success(self, operation: str, duration: float, **metadata):
        """Log successful completion of a healing operation."""
        self.info(f"Completed {operation} successfully", extra={
            'operation': operation,
            'phase': 'complete',
            'success': True,
            'duration': duration,
            'metadata': metadata
        })

    def log_operation_failure(self, operation: str, duration: float, error: str, error_code: str = None, **metadata):
        """Log failure of a healing operation."""
        self.warning(f"Failed {operation}: {error}", extra={
            'operation': operation,
            'phase': 'complete',
            'success': False,
            'duration': duration,
            'error_code': error_code,
            'metadata': metadata
        })

    def log_progress(self, operation: str, message: str, **metadata):
        """Log progress of a healing operation."""
        self.debug(f"{operation}: {message}", extra={
            'operation': operation,
            'phase': 'progress',
            'metadata': metadata
        })


def setup_healing_logging(log_level: str = "INFO", log_dir: str = "logs") -> Dict[str, logging.Logger]:
    """
    Set up structured logging for the healing plugin.

    Args:
        log_level: Console logging level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory to store log files

    Returns:
        Dictionary of configured component loggers
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    structured_formatter = StructuredFormatter()
    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(console_formatter)
    console_handler.setLevel(level)

    all_logs_handler = logging.handlers.RotatingFileHandler(
        log_path / "healing_all.log",
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding="utf-8"
    )
    all_logs_handler.setFormatter(structured_formatter)
    all_logs_handler.setLevel(logging.DEBUG)

    healing_handler = logging.handlers.RotatingFileHandler(
        log_path / "healing_operations.log",
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=10,
        encoding="utf-8"
    )
    healing_handler.setFormatter(structured_formatter)
    healing_handler.setLevel(logging.INFO)

    error_handler = logging.handlers.RotatingFileHandler(
        log_path / "healing_errors.log",
        maxBytes=5 * 1024 * 1024,  # 5MB
        backupCount=10,
        encoding="utf-8"
    )
    error_handler.setFormatter(structured_formatter)
    error_handler.setLevel(logging.ERROR)

    root_logger.addHandler(console_handler)
    root_logger.addHandler(all_logs_handler)

    loggers = {}
    for component in HEALING_COMPONENTS:
        component_logger = logging.getLogger(f"healing.{component}")
        component_logger.addHandler(healing_handler)
        component_logger.addHandler(error_handler)
        loggers[component] = component_logger

    for name, default_level in EXTERNAL_LOGGERS.items():
        logging.getLogger(name).setLevel(getattr(logging, default_level))

    return loggers


@contextmanager
def muted_output(level: int = logging.CRITICAL) -> Iterator[None]:
    """Silence logging at or below ``level`` for the duration of the block.

    The previous global disable level is restored on every exit path.
    """
    previous = logging.root.manager.disable
    logging.disable(max(level, previous))
    try:
        yield
    finally:
        logging.disable(previous)


def get_healing_logger(component: str, session_id: str = None, test_case: str = None) -> HealingLoggerAdapter:
    """
    Get a healing logger adapter with contextual information.

    Args:
        component: Component name (orchestrator, completion, etc.)
        session_id: Optional healing session ID
        test_case: Optional test case name

    Returns:
        HealingLoggerAdapter instance
    """
    logger = logging.getLogger(f"healing.{component}")

    extra = {}
    if session_id:
        extra['session_id'] = session_id
    if test_case:
        extra['test_case'] = test_case

    return HealingLoggerAdapter(logger, extra)
