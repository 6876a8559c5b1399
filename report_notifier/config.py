"""
Конфигурация Report Notifier.

Источники настроек (по убыванию приоритета):
1. Явно переданные аргументы
2. YAML файл (по умолчанию config/notifier.yaml, секция telegram)
3. Переменные окружения (TELEGRAM_BOT_TOKEN, TELEGRAM_CHAT_ID, ...)
"""

import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from aiogram.enums import ParseMode
from dotenv import load_dotenv

from report_notifier.env_validator import EnvValidator
from report_notifier.formatter import resolve_parse_mode

logger = logging.getLogger(__name__)

# Загружаем переменные окружения из .env (только для локального запуска)
env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / 'config' / 'notifier.yaml'
DEFAULT_API_HOST = 'api.telegram.org'
DEFAULT_TIMEOUT = 10.0


def _parse_bool(value: Any, default: bool) -> bool:
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


class NotifierConfig:
    """Настройки подключения к Telegram Bot API."""

    def __init__(
        self,
        bot_token: str = '',
        chat_id: Optional[Union[int, str]] = None,
        api_host: str = DEFAULT_API_HOST,
        parse_mode: Union[ParseMode, str] = ParseMode.HTML,
        timeout: float = DEFAULT_TIMEOUT,
        disable_web_page_preview: bool = True
    ):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.api_host = api_host
        self.parse_mode = parse_mode
        self.timeout = timeout
        self.disable_web_page_preview = disable_web_page_preview

    @classmethod
    def from_env(cls) -> 'NotifierConfig':
        """Настройки из переменных окружения."""
        return cls._from_mapping(cls._read_env_values())

    @classmethod
    def load(cls, config_path: Optional[Path] = None, **overrides) -> 'NotifierConfig':
        """
        Сборка настроек из аргументов, YAML файла и окружения.

        Args:
            config_path: Путь к YAML файлу (по умолчанию config/notifier.yaml)
            **overrides: Явные значения полей (None игнорируется)

        Returns:
            NotifierConfig
        """
        values = cls._read_env_values()

        file_values = cls._read_yaml(Path(config_path) if config_path else DEFAULT_CONFIG_PATH)
        values.update({k: v for k, v in file_values.items() if v not in (None, '')})

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls._from_mapping(values)

    @staticmethod
    def _read_env_values() -> Dict[str, Any]:
        return {
            'bot_token': os.getenv('TELEGRAM_BOT_TOKEN'),
            'chat_id': os.getenv('TELEGRAM_CHAT_ID'),
            'api_host': os.getenv('TELEGRAM_API_HOST'),
            'parse_mode': os.getenv('TELEGRAM_PARSE_MODE'),
            'timeout': os.getenv('TELEGRAM_TIMEOUT'),
            'disable_web_page_preview': os.getenv('TELEGRAM_DISABLE_PREVIEW'),
        }

    @staticmethod
    def _read_yaml(config_path: Path) -> Dict[str, Any]:
        """Секция telegram из YAML файла; пустой dict если файла нет."""
        if not config_path.exists():
            return {}

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"⚠️ Не удалось прочитать {config_path}: {e}")
            return {}

        section = data.get('telegram') if isinstance(data, dict) else None
        if not isinstance(section, dict):
            return {}

        # В YAML допускаем короткое имя token
        if 'token' in section and 'bot_token' not in section:
            section['bot_token'] = section.pop('token')
        return section

    @classmethod
    def _from_mapping(cls, values: Dict[str, Any]) -> 'NotifierConfig':
        timeout = values.get('timeout')
        try:
            timeout = float(timeout) if timeout not in (None, '') else DEFAULT_TIMEOUT
        except (TypeError, ValueError):
            logger.warning(f"⚠️ Некорректный timeout {timeout!r}, используем {DEFAULT_TIMEOUT}")
            timeout = DEFAULT_TIMEOUT

        chat_id = values.get('chat_id')
        return cls(
            bot_token=values.get('bot_token') or '',
            chat_id=chat_id if chat_id not in (None, '') else None,
            api_host=values.get('api_host') or DEFAULT_API_HOST,
            parse_mode=values.get('parse_mode') or ParseMode.HTML,
            timeout=timeout,
            disable_web_page_preview=_parse_bool(values.get('disable_web_page_preview'), True),
        )

    def validate(self) -> bool:
        """Проверяет, что все необходимые настройки заданы."""
        errors = []

        if not self.bot_token:
            errors.append("TELEGRAM_BOT_TOKEN не задан")
        else:
            is_valid, error_msg = EnvValidator.validate_bot_token(self.bot_token)
            if not is_valid:
                errors.append(f"TELEGRAM_BOT_TOKEN некорректен: {error_msg}")

        if self.chat_id in (None, ''):
            errors.append("TELEGRAM_CHAT_ID не задан")
        else:
            is_valid, error_msg = EnvValidator.validate_chat_id(str(self.chat_id))
            if not is_valid:
                errors.append(f"TELEGRAM_CHAT_ID некорректен: {error_msg}")

        is_valid, error_msg = EnvValidator.validate_api_host(self.api_host)
        if not is_valid:
            errors.append(f"TELEGRAM_API_HOST некорректен: {error_msg}")

        try:
            resolve_parse_mode(self.parse_mode)
        except ValueError as e:
            errors.append(str(e))

        if self.timeout <= 0:
            errors.append(f"TELEGRAM_TIMEOUT должен быть больше нуля (получено {self.timeout})")

        if errors:
            raise ValueError("Ошибки конфигурации:\n" + "\n".join(f"  - {e}" for e in errors))

        return True

    def as_env_values(self) -> Dict[str, Any]:
        """Значения в виде TELEGRAM_* переменных (для EnvValidator)."""
        return {
            'TELEGRAM_BOT_TOKEN': self.bot_token,
            'TELEGRAM_CHAT_ID': self.chat_id,
            'TELEGRAM_API_HOST': self.api_host,
            'TELEGRAM_PARSE_MODE': getattr(self.parse_mode, 'value', self.parse_mode),
            'TELEGRAM_TIMEOUT': self.timeout,
        }

    def __repr__(self) -> str:
        # Токен в repr не выводим
        return (
            f"NotifierConfig(chat_id={self.chat_id!r}, api_host={self.api_host!r}, "
            f"parse_mode={self.parse_mode!r}, timeout={self.timeout})"
        )
