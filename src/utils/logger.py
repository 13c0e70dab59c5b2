"""
Logging Module for the Polymarket trading tools

Provides structured logging with:
- Plain text console output on stderr (stdout carries tool responses)
- Optional rotating JSON file handler
- Contextual extras passed through to JSON records

Usage:
    logger = get_logger(__name__)
    logger.info("Order posted", extra={'order_id': '0xabc', 'side': 'BUY'})
"""

import logging
import logging.handlers
import os
import sys
import json
from datetime import datetime, timezone
from typing import Optional

from config.constants import (
    LOG_LEVEL,
    MAX_LOG_FILE_SIZE,
    LOG_BACKUP_COUNT,
    STRUCTURED_LOGGING,
    SECRET_KEYS,
)


_RESERVED_ATTRS = frozenset({
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'message', 'pathname', 'process', 'processName', 'relativeCreated',
    'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
    'getMessage', 'taskName', 'asctime',
})


class JSONFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per record"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line_number': record.lineno,
            'process_id': record.process,
        }

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info)
            }

        # Extras passed via logger.info(..., extra={...})
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key.upper() in SECRET_KEYS:
                continue
            if isinstance(value, (str, int, float, bool, type(None), dict, list)):
                log_data[key] = value

        return json.dumps(log_data, default=str)


class PlainTextFormatter(logging.Formatter):
    """Simple text formatter for readable console output"""

    def format(self, record: logging.LogRecord) -> str:
        record.asctime = self.formatTime(record, self.datefmt)
        line = (
            f"{record.asctime} | {record.levelname:8} | "
            f"{record.name}:{record.funcName}:{record.lineno} | "
            f"{record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    structured: Optional[bool] = None
) -> None:
    """
    Configure logging for the tool server.

    Sets up:
    - Console handler on stderr, plain text
    - File handler (only when log_file is given): rotating, JSON by default

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (default LOG_LEVEL)
        log_file: Rotating log file path; no file logging when None
        structured: JSON formatting for the file handler

    Raises:
        ValueError: If invalid log level specified
    """
    level = (log_level or LOG_LEVEL).upper()
    use_json = structured if structured is not None else STRUCTURED_LOGGING

    valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
    if level not in valid_levels:
        raise ValueError(f"Invalid log level: {level}. Must be one of {valid_levels}")

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, level))
    console_handler.setFormatter(PlainTextFormatter(datefmt='%Y-%m-%d %H:%M:%S'))
    root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=MAX_LOG_FILE_SIZE,
            backupCount=LOG_BACKUP_COUNT
        )
        file_handler.setLevel(getattr(logging, level))
        if use_json:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(PlainTextFormatter(datefmt='%Y-%m-%d %H:%M:%S'))
        root_logger.addHandler(file_handler)

    # Third-party HTTP/RPC libraries are chatty at DEBUG
    for noisy in ('urllib3', 'web3', 'httpx'):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    get_logger(__name__).info(
        "Logging initialized",
        extra={
            'log_level': level,
            'log_file': log_file,
            'structured_logging': use_json,
        }
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Example:
        logger = get_logger(__name__)
        logger.error("Order failed", exc_info=True)
    """
    return logging.getLogger(name)


def log_order_event(
    logger: logging.Logger,
    event_type: str,
    **details
) -> None:
    """
    Log an order lifecycle event with structured information.

    Example:
        log_order_event(
            logger, 'ORDER_POSTED',
            order_id='0x83..', token_id='7132..', side='BUY', order_type='FOK'
        )
    """
    details['event_type'] = event_type
    logger.info(f"Order event: {event_type}", extra=details)


def log_error_with_context(
    logger: logging.Logger,
    message: str,
    error: Exception,
    **context
) -> None:
    """
    Log an error with full context and exception details.

    Example:
        except UpstreamError as e:
            log_error_with_context(logger, "Tool failed", e, tool='getOrder')
    """
    context['error_type'] = type(error).__name__
    context['error_message'] = str(error)
    logger.error(message, exc_info=error, extra=context)
