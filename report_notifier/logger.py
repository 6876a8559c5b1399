"""
Structured Logging для Report Notifier.

JSON-логи для продакшена и человекочитаемый формат для локальной разработки.
URL запросов к Bot API содержат токен, поэтому все handlers получают
фильтр, вырезающий токены из сообщений.
"""

import logging
import json
import re
import sys
import os
from datetime import datetime, timezone
from typing import Optional
from pathlib import Path

# <bot_id>:<hash> - формат токена от @BotFather
BOT_TOKEN_RE = re.compile(r'\d{5,}:[A-Za-z0-9_-]{30,}')
FILTERED = '[FILTERED]'

_STANDARD_ATTRS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'message', 'pathname', 'process', 'processName', 'relativeCreated',
    'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info', 'taskName'
}


def redact_tokens(text: str) -> str:
    """Замена всех bot-токенов в строке на [FILTERED]."""
    return BOT_TOKEN_RE.sub(FILTERED, text)


class TokenRedactingFilter(logging.Filter):
    """
    Вырезает bot-токены из записи лога.

    Сообщение форматируется заранее (msg % args), чтобы токен не пролез
    через аргументы. Исключения aiohttp тоже содержат URL с токеном,
    поэтому текст traceback'а чистится отдельно.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # Битый формат сообщения - пусть его покажет handler
            return True

        redacted = redact_tokens(message)
        if redacted != message or record.args:
            record.msg = redacted
            record.args = None

        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = redact_tokens(record.exc_text)

        return True


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter для структурированных логов.

    Output format:
    {
        "timestamp": "2026-10-17T12:34:56.789Z",
        "level": "INFO",
        "logger": "report_notifier.notifications.telegram_notifier",
        "message": "Message sent",
        "extra": {...}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        """Форматирование лога в JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_text:
            log_data["exception"] = record.exc_text
        elif record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_info"] = self.formatStack(record.stack_info)

        extra_fields = {
            key: value for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        log_data["source"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName
        }

        return json.dumps(log_data, ensure_ascii=False, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Human-readable formatter для локальной разработки.

    Output format:
    2026-10-17 12:34:56 INFO     report_notifier.config: Config loaded
    """

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s %(levelname)-8s %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


def setup_logging(
    level: str = "INFO",
    use_json: bool = True,
    log_file: Optional[Path] = None
) -> None:
    """
    Настройка logging для всего приложения.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        use_json: Использовать JSON формат (True для production)
        log_file: Путь к файлу логов (опционально)

    Example:
        # Production
        setup_logging(level="INFO", use_json=True)

        # Development
        setup_logging(level="DEBUG", use_json=False, log_file=Path("notifier.log"))
    """
    if use_json:
        formatter = StructuredFormatter()
    else:
        formatter = HumanReadableFormatter()

    redacting_filter = TokenRedactingFilter()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(redacting_filter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        file_handler.addFilter(redacting_filter)
        root_logger.addHandler(file_handler)

    # Уменьшаем verbosity сторонних библиотек
    logging.getLogger("aiogram").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def auto_setup_logging():
    """
    Настройка логирования на основе переменных окружения.

    Environment variables:
        LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
        LOG_FORMAT: json или human (default: json)
        LOG_FILE: Путь к файлу логов (опционально)
    """
    log_level = os.getenv("LOG_LEVEL", "INFO")
    log_format = os.getenv("LOG_FORMAT", "json")
    log_file_path = os.getenv("LOG_FILE")

    use_json = log_format.lower() == "json"
    log_file = Path(log_file_path) if log_file_path else None

    setup_logging(level=log_level, use_json=use_json, log_file=log_file)


__all__ = [
    'setup_logging',
    'StructuredFormatter',
    'HumanReadableFormatter',
    'TokenRedactingFilter',
    'redact_tokens',
    'auto_setup_logging'
]
