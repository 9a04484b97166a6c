"""
app/utils/logging.py
───────────────────
Configures structured logging for the counter app.
"""
import os
import logging
from logging.handlers import RotatingFileHandler
from flask import request, has_request_context


class RequestFormatter(logging.Formatter):
    """
    Custom formatter that injects request info (URL, client IP)
    into logs if context is available.
    """
    def format(self, record):
        if has_request_context():
            record.url = request.url
            record.remote_addr = request.remote_addr
        else:
            record.url = None
            record.remote_addr = None
        return super().format(record)


def _already_configured(app) -> bool:
    # app.logger is shared by every app built in this process (tests build many)
    return any(getattr(h, '_counter_billing', False) for h in app.logger.handlers)


def setup_logging(app):
    """
    Configure rotating file logging: <LOG_DIR or project>/logs/app.log
    Max size: 5MB
    Backup count: 5 files
    Format: timestamp | level | module | client | url | message

    The file handler is skipped under TESTING.
    """
    if _already_configured(app):
        return

    # 1. File Logger (Try/Except for permissions)
    if not app.config.get('TESTING'):
        log_dir = app.config.get('LOG_DIR') or os.path.join(app.root_path, '..', 'logs')
        try:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                os.path.join(log_dir, 'app.log'),
                maxBytes=5 * 1024 * 1024,
                backupCount=5
            )
        except OSError:
            file_handler = None  # read-only filesystem: stdout only
        if file_handler is not None:
            file_handler.setFormatter(RequestFormatter(
                '%(asctime)s | %(levelname)s | %(name)s | %(remote_addr)s | %(url)s | %(message)s'
            ))
            file_handler.setLevel(logging.INFO)
            file_handler._counter_billing = True
            app.logger.addHandler(file_handler)

    # 2. Stdout Logger (Critical for container/cloud logs)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)s | %(message)s'
    ))
    stream_handler.setLevel(logging.INFO)
    stream_handler._counter_billing = True
    app.logger.addHandler(stream_handler)

    app.logger.setLevel(logging.INFO)
    app.logger.info("Counter Billing startup")
