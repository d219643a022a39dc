"""
Centralized logging configuration for Logifin.

Library modules log through ``logging.getLogger(__name__)``; entry points
configure the ``logifin`` parent logger once with :func:`get_logger`.

Features:
- JSON and text format support
- Rotating file handler plus optional console handler
- Automatic log directory creation
- Structured events through :func:`log_event`
"""

import json
import logging
import sys
from datetime import datetime, UTC
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Mapping, Optional

DEFAULT_LOG_DIR = 'logs'

_RESERVED_ATTRS = frozenset({
    'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
    'levelno', 'lineno', 'module', 'msecs', 'message', 'pathname', 'process',
    'processName', 'relativeCreated', 'thread', 'threadName', 'exc_info',
    'exc_text', 'stack_info', 'taskName',
})


class JSONFormatter(logging.Formatter):
    """Format log records as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.now(UTC).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        # Extra fields passed through log_event
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def configure_logger(
    name: str,
    log_dir: Optional[str] = None,
    level: str = 'INFO',
    log_format: str = 'json',
    console_output: bool = True,
    max_bytes: Optional[int] = None,
    backup_count: Optional[int] = None,
) -> logging.Logger:
    """
    Configure logger with consistent settings.

    Args:
        name: Logger name (usually ``logifin``)
        log_dir: Directory for log files (default: 'logs')
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Format type ('json' or 'text')
        console_output: Whether to output to stderr (default: True)
        max_bytes: Rotation threshold in bytes (default: 10 MB)
        backup_count: Rotated files to keep (default: 5)

    Returns:
        Configured logger instance

    Example:
        >>> logger = configure_logger('logifin', level='DEBUG')
        >>> log_event(logger, phase='aggregate.summary', partial=False)
    """
    logger = logging.getLogger(name)

    # Return existing logger if already configured
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    log_path = Path(log_dir or DEFAULT_LOG_DIR)
    log_path.mkdir(parents=True, exist_ok=True)

    max_bytes_value = max_bytes if max_bytes and max_bytes > 0 else 10 * 1024 * 1024
    backup_count_value = backup_count if backup_count is not None else 5

    log_file = log_path / f"{name.replace('.', '_')}.log"
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes_value,
        backupCount=max(backup_count_value, 1),
        encoding='utf-8',
    )

    if log_format == 'json':
        file_handler.setFormatter(JSONFormatter())
    else:
        file_handler.setFormatter(
            logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
        )

    logger.addHandler(file_handler)

    # stdout carries command output, so console logs go to stderr
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter('%(levelname)s %(message)s'))
        logger.addHandler(console_handler)

    return logger


def log_event(
    logger: logging.Logger,
    level: str = 'info',
    **kwargs: Any,
) -> None:
    """
    Log an event with structured data.

    Args:
        logger: Logger instance
        level: Log level ('debug', 'info', 'warning', 'error', 'critical')
        **kwargs: Key-value pairs to log; ``message`` becomes the log message

    Example:
        >>> log_event(logger, 'warning', phase='source.failed', source='express')
    """
    message = kwargs.pop('message', None) or kwargs.pop('msg', '')
    extra = {key: value for key, value in kwargs.items() if key not in _RESERVED_ATTRS}

    log_method = getattr(logger, level.lower(), logger.info)
    log_method(message, extra=extra)


def get_logger(name: str, config: Optional[Mapping[str, Any]] = None) -> logging.Logger:
    """
    Get or create logger from a configuration mapping.

    Args:
        name: Logger name
        config: Optional mapping holding a ``logging`` section

    Returns:
        Configured logger instance
    """
    if config is None:
        config = {}

    log_config = config.get('logging', {}) or {}

    max_bytes = None
    if 'max_file_size_mb' in log_config:
        try:
            max_bytes = int(float(log_config['max_file_size_mb']) * 1024 * 1024)
        except (ValueError, TypeError):
            max_bytes = None

    backup_count = log_config.get('backup_count')
    if backup_count is not None:
        try:
            backup_count = int(backup_count)
        except (ValueError, TypeError):
            backup_count = None

    return configure_logger(
        name=name,
        log_dir=log_config.get('directory', DEFAULT_LOG_DIR),
        level=log_config.get('level', 'INFO'),
        log_format=log_config.get('format', 'json'),
        console_output=log_config.get('console_output', True),
        max_bytes=max_bytes,
        backup_count=backup_count,
    )
