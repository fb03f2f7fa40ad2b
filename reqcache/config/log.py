import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

import orjson
import structlog
from structlog.types import EventDict, FilteringBoundLogger

from reqcache.common.request_context import get_correlation_id
from reqcache.config.models import LoggingConfig

LOG_FILE_NAME = 'reqcache.log'
DEFAULT_MAX_BYTES = 10 * 1024**2

_SIZE_PATTERN = re.compile(r'^(\d+)\s*([KMGT]?)(B?)$')


def parse_file_size(value: str) -> int:
    """Bytes for sizes such as ``10MB``, ``512K`` or ``100B``; a bare number means megabytes."""
    match = _SIZE_PATTERN.match(value.strip().upper())
    if not match:
        return DEFAULT_MAX_BYTES

    number, prefix, byte_suffix = match.groups()
    if prefix:
        unit = 1024 ** ('KMGT'.index(prefix) + 1)
    else:
        unit = 1 if byte_suffix else 1024**2
    return int(number) * unit


def _dumps(obj, **kwargs) -> str:
    return orjson.dumps(obj, **kwargs).decode('utf-8')


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, structlog.dev.ConsoleRenderer()],
        )
    )
    return handler


def _file_handler(log_config: LoggingConfig) -> logging.Handler:
    if not log_config.log_file_dir:
        raise ValueError('log_file_dir is required when file logging is enabled')

    log_dir = Path(log_config.log_file_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=parse_file_size(log_config.max_file_size),
        backupCount=log_config.backup_count,
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, structlog.processors.JSONRenderer(serializer=_dumps)],
        )
    )
    return handler


def add_correlation_id(logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag events emitted while a request action is orchestrated."""
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict.setdefault('correlation_id', correlation_id)
    return event_dict


def get_logger(name: str) -> FilteringBoundLogger:
    return structlog.get_logger(name)


def configure_structlog(log_config: Optional[LoggingConfig] = None) -> None:
    """Route structlog through stdlib logging with console and/or rotating JSON file output."""
    log_config = log_config or LoggingConfig()
    level = logging.getLevelName(log_config.level)

    handlers: List[logging.Handler] = []
    if log_config.console_enabled:
        handlers.append(_console_handler())
    if log_config.file_enabled:
        handlers.append(_file_handler(log_config))

    logging.basicConfig(level=level, handlers=handlers, format='%(message)s', force=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt='iso', utc=True),
            add_correlation_id,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
