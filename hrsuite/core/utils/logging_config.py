"""
Structured logging configuration for the HR Suite.

JSON lines in production, coloured single-line output in development.
Claim and workflow identifiers travel as extra fields (see LogContext).
"""

import sys
import json
import logging
from datetime import datetime, timezone
from typing import Optional

ROOT_LOGGER = 'hrsuite'


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'line': record.lineno,
        }
        entry.update(getattr(record, 'extra', None) or {})
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, '')
        reset = self.RESET if color else ''
        timestamp = datetime.now().strftime('%H:%M:%S')
        location = f'{record.module}:{record.lineno}'

        line = f'{color}[{timestamp}] {record.levelname:8}{reset} {location:28} {record.getMessage()}'

        extra = getattr(record, 'extra', None)
        if extra:
            line += ' | ' + ' '.join(f'{k}={v}' for k, v in extra.items())
        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


def setup_logging(level: str = 'INFO', json_format: Optional[bool] = None,
                  logger_name: str = ROOT_LOGGER) -> logging.Logger:
    """Configure and return the application logger.

    Args:
        level: Log level name (DEBUG, INFO, ...).
        json_format: Force JSON output. None reads LOG_JSON from config.
        logger_name: Logger to configure; children inherit its handler.
    """
    if json_format is None:
        from hrsuite.config import config
        json_format = config.LOG_JSON

    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logger.level)
    handler.setFormatter(JSONFormatter() if json_format else DevelopmentFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Get a logger, e.g. get_logger('hrsuite.claims.engine')."""
    return logging.getLogger(name)


class LogContext:
    """Context manager attaching extra fields to every record created inside it.

    Usage:
        with LogContext(logger, claim_id=12, workflow_id=4):
            logger.info('Step processed')
    """

    def __init__(self, logger: logging.Logger, **fields):
        self.logger = logger
        self.fields = fields
        self._old_factory = None

    def __enter__(self):
        self._old_factory = logging.getLogRecordFactory()
        old_factory = self._old_factory
        fields = self.fields

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            record.extra = {**(getattr(record, 'extra', None) or {}), **fields}
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logging.setLogRecordFactory(self._old_factory)
        return False
