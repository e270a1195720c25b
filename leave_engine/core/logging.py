"""
Logging Configuration and Utilities

Structured logging for the engine with console/file handlers,
optional JSON output and structlog integration.
"""

import sys
import logging
import logging.handlers
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
from pythonjsonlogger import jsonlogger

from leave_engine.config.settings import Settings, get_settings

# Context variables for request tracking
request_id: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
actor_id: ContextVar[Optional[str]] = ContextVar('actor_id', default=None)


class RequestContextProcessor:
    """Add request context to structlog event dicts"""

    def __init__(self, environment: str = "development"):
        self.environment = environment

    def __call__(self, logger, method_name, event_dict):
        req_id = request_id.get()
        if req_id:
            event_dict['request_id'] = req_id

        uid = actor_id.get()
        if uid:
            event_dict['actor_id'] = uid

        event_dict['timestamp'] = datetime.now(timezone.utc).isoformat()
        event_dict['service'] = 'leave-engine'
        event_dict['environment'] = self.environment

        return event_dict


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter for structured logging"""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['module'] = record.module
        log_record['line'] = record.lineno

        req_id = request_id.get()
        if req_id:
            log_record['request_id'] = req_id
        uid = actor_id.get()
        if uid:
            log_record['actor_id'] = uid

        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)


class LoggingConfig:
    """Centralized logging configuration"""

    @staticmethod
    def build_formatter(config: Settings) -> logging.Formatter:
        if config.LOG_FORMAT == "json":
            return CustomJsonFormatter('%(asctime)s %(name)s %(levelname)s %(message)s')
        return logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    @staticmethod
    def configure_structured_logging(config: Settings):
        """Configure structured logging with structlog"""

        processors = [
            RequestContextProcessor(config.ENVIRONMENT),
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
        ]

        if config.LOG_FORMAT == "json":
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.processors.KeyValueRenderer())

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            context_class=dict,
            cache_logger_on_first_use=True,
        )

    @staticmethod
    def configure_standard_logging(config: Settings):
        """Configure standard Python logging"""

        level = getattr(logging, config.LOG_LEVEL)
        root_logger = logging.getLogger()
        root_logger.setLevel(level)

        # Only replace handlers installed by a previous call
        for handler in list(root_logger.handlers):
            if getattr(handler, "_leave_engine_handler", False):
                root_logger.removeHandler(handler)

        formatter = LoggingConfig.build_formatter(config)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        console_handler._leave_engine_handler = True
        root_logger.addHandler(console_handler)

        if config.LOG_FILE:
            log_path = Path(config.LOG_FILE)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.TimedRotatingFileHandler(
                log_path,
                when='midnight',
                interval=1,
                backupCount=config.LOG_RETENTION
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            file_handler._leave_engine_handler = True
            root_logger.addHandler(file_handler)

        if config.DB_ECHO:
            logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
        else:
            logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


class LoggerAdapter:
    """Enhanced logger adapter with context management"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self._context: Dict[str, Any] = {}

    def add_context(self, **kwargs):
        """Add context to all log messages"""
        self._context.update(kwargs)
        return self

    def remove_context(self, *keys):
        """Remove context keys"""
        for key in keys:
            self._context.pop(key, None)
        return self

    def clear_context(self):
        """Clear all context"""
        self._context.clear()
        return self

    def _log(self, level: int, message: str, *args, **kwargs):
        """Internal log method with context"""
        extra = dict(kwargs.get('extra') or {})
        extra.update(self._context)
        kwargs['extra'] = extra

        self.logger.log(level, message, *args, **kwargs)

    def debug(self, message: str, *args, **kwargs):
        self._log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs):
        self._log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs):
        self._log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs):
        self._log(logging.ERROR, message, *args, **kwargs)

    def critical(self, message: str, *args, **kwargs):
        self._log(logging.CRITICAL, message, *args, **kwargs)


def get_logger(name: Optional[str] = None) -> LoggerAdapter:
    """
    Get configured logger instance.

    Args:
        name: Logger name (defaults to the engine root logger)

    Returns:
        Enhanced logger adapter
    """
    return LoggerAdapter(logging.getLogger(name or 'leave_engine'))


def setup_logging(config: Optional[Settings] = None):
    """Initialize logging configuration"""
    config = config or get_settings()

    if config.ENABLE_STRUCTURED_LOGGING:
        LoggingConfig.configure_structured_logging(config)

    LoggingConfig.configure_standard_logging(config)

    logger = get_logger(__name__)
    logger.info("Logging system initialized", extra={
        'log_level': config.LOG_LEVEL,
        'log_format': config.LOG_FORMAT,
        'structured_logging': config.ENABLE_STRUCTURED_LOGGING
    })


__all__ = [
    'get_logger',
    'setup_logging',
    'LoggerAdapter',
    'LoggingConfig',
    'CustomJsonFormatter',
    'request_id',
    'actor_id',
]
