"""
Helpdesk logging.

One JSON-lines tree rooted at "helpdesk": every module asks for a dotted child
(helpdesk.routes.tickets, helpdesk.disposals, ...) and shares the handlers
configured here once per process:

    logs/helpdesk.log   INFO and above
    logs/errors.log     ERROR and above
    console             LOG_LEVEL (default INFO)

Records logged inside a request carry the acting username and the request
path. Ticket, asset, disposal and inspection ids passed through ``extra=``
are written as their own JSON keys so the files can be grepped by record.
"""

import json
import logging
import os
import threading
from pathlib import Path

from flask import has_request_context, request


ROOT_LOGGER_NAME = "helpdesk"

RECORD_FIELDS = ("ticket_id", "asset_id", "disposal_id", "inspection_id", "user_id")


class RequestContextFilter(logging.Filter):
    """Attach `username` and `path` when a Flask request is active."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.username = None
        record.path = None
        if has_request_context():
            record.path = request.path
            # Imported lazily; flask_login needs the app to be set up
            from flask_login import current_user
            if getattr(current_user, "is_authenticated", False):
                record.username = current_user.username
        return True


class JsonFormatter(logging.Formatter):
    """
    Format each record as one JSON object.

    @param dict fmt_dict: output key -> LogRecord attribute
    @param str time_format: time.strftime() format for asctime
    @param str msec_format: appended milliseconds format
    """
    def __init__(self, fmt_dict: dict = None, time_format: str = "%Y-%m-%dT%H:%M:%S", msec_format: str = "%s.%03dZ"):
        super().__init__()
        self.fmt_dict = fmt_dict if fmt_dict is not None else {"message": "message"}
        self.default_time_format = time_format
        self.default_msec_format = msec_format
        self.datefmt = None

    def usesTime(self) -> bool:
        return "asctime" in self.fmt_dict.values()

    def formatMessage(self, record) -> dict:
        payload = {key: record.__dict__[attr] for key, attr in self.fmt_dict.items()}
        for attr in ("username", "path") + RECORD_FIELDS:
            value = getattr(record, attr, None)
            if value is not None:
                payload[attr] = value
        return payload

    def format(self, record) -> str:
        record.message = record.getMessage()
        if self.usesTime():
            record.asctime = self.formatTime(record, self.datefmt)

        payload = self.formatMessage(record)

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            payload["exc_info"] = record.exc_text
        if record.stack_info:
            payload["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(payload, default=str, ensure_ascii=False)


class SingletonLogger:
    """Configures the "helpdesk" logger tree exactly once per process."""
    _instance = None
    _lock = threading.Lock()
    _logger = None

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SingletonLogger, cls).__new__(cls)
        return cls._instance

    def get_logger(self, name: str = ROOT_LOGGER_NAME) -> logging.Logger:
        if self._logger is None:
            with self._lock:
                if self._logger is None:
                    self._logger = self._create_logger()

        if not name or name == ROOT_LOGGER_NAME:
            return self._logger
        if not name.startswith(ROOT_LOGGER_NAME + "."):
            name = f"{ROOT_LOGGER_NAME}.{name}"
        return logging.getLogger(name)

    def _create_logger(self) -> logging.Logger:
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
        logger.handlers.clear()

        formatter = JsonFormatter({
            "timestamp": "asctime",
            "level": "levelname",
            "logger": "name",
            "function": "funcName",
            "line": "lineno",
            "message": "message",
        })
        context_filter = RequestContextFilter()

        logs_dir = Path(os.environ.get("LOG_DIR", "logs"))
        logs_dir.mkdir(parents=True, exist_ok=True)

        handlers = [
            (logging.FileHandler(logs_dir / "helpdesk.log", mode='a', encoding='utf-8'), logging.INFO),
            (logging.FileHandler(logs_dir / "errors.log", mode='a', encoding='utf-8'), logging.ERROR),
            (logging.StreamHandler(), logging.getLevelName(os.environ.get("LOG_LEVEL", "INFO").upper())),
        ]
        for handler, level in handlers:
            handler.setLevel(level)
            handler.setFormatter(formatter)
            handler.addFilter(context_filter)
            logger.addHandler(handler)

        return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger from the "helpdesk" tree.

    Names outside the tree are re-rooted under it, so get_logger("build")
    and get_logger("helpdesk.build") return the same logger.
    """
    return SingletonLogger().get_logger(name)
