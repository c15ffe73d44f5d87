"""
Logging configuration: plain text or structured JSON, with secret masking
"""
import json
import logging
import re
import sys
from typing import Optional

# Attributes every LogRecord carries; anything else came in through extra=
_RESERVED = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
    'levelno', 'lineno', 'module', 'msecs', 'message', 'pathname', 'process',
    'processName', 'relativeCreated', 'thread', 'threadName', 'exc_info',
    'exc_text', 'stack_info', 'taskName',
}


class SensitiveDataFilter(logging.Filter):
    """Mask API keys and bearer tokens in log messages"""

    SENSITIVE_PATTERNS = [
        (r'Bearer\s+([^\s"]+)', r'Bearer ***'),
        (r'api[_-]?key["\']?\s*[:=]\s*["\']?([^"\'\s&]+)', r'api_key=***'),
        (r'token["\']?\s*[:=]\s*["\']?([^"\'\s&]+)', r'token=***'),
        (r'sk-[A-Za-z0-9_\-]{8,}', r'sk-***'),
    ]

    def _mask(self, text: str) -> str:
        for pattern, replacement in self.SENSITIVE_PATTERNS:
            text = re.sub(pattern, replacement, text, flags=re.IGNORECASE)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self._mask(record.msg)
        if record.args and isinstance(record.args, tuple):
            record.args = tuple(self._mask(a) if isinstance(a, str) else a for a in record.args)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line"""

    def format(self, record: logging.LogRecord) -> str:
        log_dict = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        if record.exc_info:
            log_dict['exception'] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key not in _RESERVED and key not in log_dict:
                log_dict[key] = value
        return json.dumps(log_dict, ensure_ascii=False, default=str)


class LoggingConfig:
    """Centralized logging configuration"""

    _configured = False

    @classmethod
    def configure(cls, level: str = "INFO", fmt: str = "text", force: bool = False):
        if cls._configured and not force:
            return

        handler = logging.StreamHandler(sys.stdout)
        if fmt == "json":
            handler.setFormatter(JsonFormatter())
        else:
            handler.setFormatter(logging.Formatter(
                "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
            ))
        handler.addFilter(SensitiveDataFilter())

        root_logger = logging.getLogger("matchup_parser")
        root_logger.handlers = [handler]
        root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        root_logger.propagate = False

        # quiet the per-request lines from the OpenAI transport
        logging.getLogger("httpx").setLevel(logging.WARNING)
        cls._configured = True

    @classmethod
    def get_logger(cls, name: Optional[str] = None) -> logging.Logger:
        return logging.getLogger(name or "matchup_parser")
