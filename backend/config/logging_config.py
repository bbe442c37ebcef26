import logging
import logging.handlers
import os
import sys
import uuid
import json
from .settings import settings


class RequestIdFilter(logging.Filter):
    """Filter that adds request_id to log records."""
    def __init__(self, name=''):
        super().__init__(name)
        self.request_id = None

    def filter(self, record):
        record.request_id = getattr(record, 'request_id', self.request_id or '-')
        return True


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""
    def format(self, record):
        log_record = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'request_id': getattr(record, 'request_id', '-'),
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_record)


def rotated_log_name(default_name: str) -> str:
    """
    Rename rotated files so they still end in .log.

    app.log.2025-11-02 -> app_2025-11-02.log
    """
    base_filename = default_name.replace('.log', '')
    parts = base_filename.rsplit('.', 1)
    if len(parts) == 2:
        return f"{parts[0]}_{parts[1]}.log"
    return default_name


def setup_logging():
    """Configure root logging: rotating file + stdout, both tagged with request ids."""
    os.makedirs(settings.LOG_DIR, exist_ok=True)

    # TimedRotatingFileHandler appends the date on rollover
    log_filename = os.path.join(settings.LOG_DIR, f"{settings.LOG_FILENAME_PREFIX}.log")

    if settings.LOG_FORMAT == 'json':
        file_formatter = JsonFormatter()
    else:
        file_formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - [%(request_id)s] - %(name)s - %(message)s'
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    request_id_filter = RequestIdFilter()

    file_handler = logging.handlers.TimedRotatingFileHandler(
        log_filename,
        when='midnight',
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(file_formatter)
    file_handler.addFilter(request_id_filter)
    file_handler.namer = rotated_log_name

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter('%(levelname)s - [%(request_id)s] - %(message)s'))
    console_handler.addFilter(request_id_filter)

    # Remove existing handlers to avoid duplicates on reload
    root_logger.handlers = []
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging setup complete. Writing to {log_filename}", extra={"request_id": "startup"})

    return logger, request_id_filter


def get_request_id():
    """Generate a unique request ID."""
    return str(uuid.uuid4())
