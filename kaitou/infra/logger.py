# kaitou/infra/logger.py
"""
Logging for thaw calculations and reference data loading.

Configures one file logger per concern. Everything is disabled unless
``ENABLE_LOGGING`` or ``ENABLE_OUTPUT`` is switched on (the environment
variable ``KAITOU_LOGGING=1`` switches on ``ENABLE_LOGGING`` at import).
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional


# Global flag to enable/disable logging
ENABLE_LOGGING = os.environ.get("KAITOU_LOGGING", "").strip().lower() in {"1", "true", "yes"}
# Global flag that also switches the loggers on (console runs)
ENABLE_OUTPUT = False

# Base logger configuration
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configure a logger writing to ``log_file``.

    The file is opened on the first record, so importing this module does
    not create any file.

    Args:
        name: Logger name
        log_file: Log file path
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Drop handlers from a previous setup
    while logger.handlers:
        old = logger.handlers[0]
        logger.removeHandler(old)
        old.close()

    file_handler = _LazyDirFileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger


class _LazyDirFileHandler(logging.FileHandler):
    """FileHandler that creates the log directory when the file is opened."""

    def _open(self):
        Path(self.baseFilename).parent.mkdir(parents=True, exist_ok=True)
        return super()._open()


# Log directory (inside the package unless overridden)
BASE_DIR = Path(__file__).parent.parent
LOGS_DIR = Path(os.environ.get("KAITOU_LOGS_DIR", str(BASE_DIR / "logs")))

calculation_logger = setup_logger(
    'kaitou.calculations',
    str(LOGS_DIR / 'calculations.log')
)

data_logger = setup_logger(
    'kaitou.data',
    str(LOGS_DIR / 'data.log')
)

system_logger = setup_logger(
    'kaitou.system',
    str(LOGS_DIR / 'system.log')
)

def log_calculation(policy: str, inputs: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Record one calculation run.

    Args:
        policy: Need policy used (peak, carry_forward, intraday)
        inputs: Calculation inputs
        result: Summary of the result (optional)
        error: Error message (optional)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    if error:
        calculation_logger.error(f"CALCULATION_FAILED: {policy} - {error} - Inputs: {inputs}")
    else:
        calculation_logger.info(f"CALCULATION_OK: {policy} - Result: {result} - Inputs: {inputs}")

def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, level: str = "info", **kwargs) -> None:
    """
    Record a reference data file operation (usage table, holidays).

    Args:
        operation: Operation type (load_usage, load_holidays)
        file_path: File path
        rows_processed: Number of rows read
        level: Log level (info, warning, error)
        **kwargs: Extra data
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "operation": operation,
        "file_path": file_path,
        "rows_processed": rows_processed,
        **kwargs
    }
    log_method = getattr(data_logger, level.lower(), data_logger.info)
    log_method(f"FILE_{operation.upper()}: {log_data}")

def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Record a system event.

    Args:
        event: Event description
        details: Extra details (optional)
        level: Log level (info, warning, error)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "event": event,
        "details": details or {},
        "at": datetime.now().isoformat(),
    }
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")

def get_log_summary(log_type: str = "calculations", lines: int = 100) -> Optional[str]:
    """
    Return the most recent lines of a log.

    Args:
        log_type: Log type (calculations, data, system)
        lines: Number of lines to return

    Returns:
        Log content as a string
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return None

    log_files = {
        "calculations": LOGS_DIR / "calculations.log",
        "data": LOGS_DIR / "data.log",
        "system": LOGS_DIR / "system.log"
    }

    log_file = log_files.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} not found."

    try:
        with open(log_file, 'r', encoding='utf-8') as f:
            all_lines = f.readlines()
            recent_lines = all_lines[-lines:] if lines > 0 else []
            return ''.join(recent_lines)
    except OSError as e:
        return f"Error reading log {log_type}: {str(e)}"
