# teiedit/schema/utils/logger.py

import logging
import traceback
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..models.types import ProcessingPhase, ProcessingError


class SchemaLogger:
    """Centralized logging for the schema pipeline."""

    def __init__(
        self,
        name: str = "teiedit",
        level: Union[int, str] = logging.INFO,
        log_file: Optional[Union[str, Path]] = None
    ):
        self.logger = logging.getLogger(name)
        self._setup_logger(level, log_file)

    def _setup_logger(self, level: Union[int, str], log_file: Optional[Union[str, Path]]) -> None:
        """Configure logging with proper formatters."""
        self.logger.setLevel(logging.DEBUG)

        # Handlers are attached once per logger name
        if self.logger.handlers:
            return

        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s'
        ))
        self.logger.addHandler(console)

        if log_file:
            file_handler = logging.FileHandler(str(log_file))
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            ))
            self.logger.addHandler(file_handler)

    def debug(self, message: str) -> None:
        self.logger.debug(message)

    def info(self, message: str) -> None:
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)

    def log_phase_start(self, phase: ProcessingPhase, schema_id: Optional[str] = None) -> None:
        """Log the start of a processing phase."""
        self.logger.info(f"Starting {phase.value} phase - Schema: {schema_id or 'N/A'}")

    def log_phase_end(self, phase: ProcessingPhase, schema_id: Optional[str] = None) -> None:
        """Log the end of a processing phase."""
        self.logger.info(f"Completed {phase.value} phase - Schema: {schema_id or 'N/A'}")

    def log_error(self, error: ProcessingError, phase: Optional[ProcessingPhase] = None) -> None:
        """Log processing error with context."""
        self.logger.error(
            f"Error during {phase.value if phase else 'processing'}: "
            f"{error.message}\n"
            f"Context: {error.context}\n"
            f"Element: {error.element_id or 'N/A'}"
        )

    def log_stats(self, title: str, stats: Dict[str, Any]) -> None:
        """Log a block of counters."""
        lines = [f"{title}:"]
        for key, value in stats.items():
            lines.append(f"  {key}: {value}")
        self.logger.info("\n".join(lines))

    def create_error_log(self, e: Exception, context: Dict[str, Any]) -> None:
        """Create comprehensive error log entry."""
        self.logger.error(
            "Error Details:\n"
            f"Timestamp: {datetime.now().isoformat()}\n"
            f"Error Type: {type(e).__name__}\n"
            f"Message: {str(e)}\n"
            f"Context: {context}\n"
            f"Stacktrace:\n{traceback.format_exc()}"
        )


def log_processing_phase(phase: ProcessingPhase):
    """Decorator for logging processing phases on objects with a ``logger``."""
    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            schema_id = getattr(self, 'schema_id', None)
            self.logger.log_phase_start(phase, schema_id)
            try:
                result = func(self, *args, **kwargs)
                self.logger.log_phase_end(phase, schema_id)
                return result
            except Exception as e:
                if isinstance(e, ProcessingError):
                    self.logger.log_error(e, phase)
                else:
                    self.logger.create_error_log(e, {
                        'phase': phase.value,
                        'function': func.__name__,
                    })
                raise
        return wrapper
    return decorator
