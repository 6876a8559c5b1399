"""
Environment Variables Validator.

Проверяет наличие и валидность переменных окружения notifier'а перед запуском.
"""

import os
import re
import sys
import logging
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

# @channelusername: 5-32 символа, латиница, цифры и подчёркивание
CHANNEL_USERNAME_RE = re.compile(r'^@[A-Za-z][A-Za-z0-9_]{4,31}$')
HOSTNAME_RE = re.compile(r'^[A-Za-z0-9.-]+(:\d{1,5})?$')


class EnvValidator:
    """Валидатор переменных окружения."""

    # Обязательные переменные
    REQUIRED_VARS = {
        'TELEGRAM_BOT_TOKEN': 'Telegram Bot Token from @BotFather',
        'TELEGRAM_CHAT_ID': 'Chat ID или @channel, куда отправляются отчёты',
    }

    # Опциональные переменные
    OPTIONAL_VARS = {
        'TELEGRAM_API_HOST': 'Хост Bot API (default: api.telegram.org)',
        'TELEGRAM_PARSE_MODE': 'HTML или MarkdownV2 (default: HTML)',
        'TELEGRAM_TIMEOUT': 'Таймаут запроса в секундах (default: 10)',
        'LOG_LEVEL': 'Logging level (DEBUG, INFO, WARNING, ERROR)',
        'LOG_FORMAT': 'json или human',
    }

    @staticmethod
    def validate_bot_token(token: str) -> Tuple[bool, Optional[str]]:
        """
        Валидация Telegram Bot Token.

        Returns:
            (is_valid, error_message)
        """
        if not token:
            return False, "token is empty"

        if ':' not in token:
            return False, "token has invalid format (should contain ':')"

        parts = token.split(':')
        if len(parts) != 2:
            return False, "token has invalid format"

        bot_id, hash_part = parts

        if not bot_id.isdigit():
            return False, "token bot ID part should be numeric"

        if len(hash_part) < 30:
            return False, "token hash part seems too short"

        return True, None

    @staticmethod
    def validate_chat_id(chat_id: str) -> Tuple[bool, Optional[str]]:
        """
        Валидация chat_id: число (для групп и каналов - отрицательное) или @username.

        Returns:
            (is_valid, error_message)
        """
        chat_id = (chat_id or '').strip()
        if not chat_id:
            return False, "chat_id is empty"

        if chat_id.lstrip('-').isdigit():
            return True, None

        if chat_id.startswith('@'):
            if CHANNEL_USERNAME_RE.match(chat_id):
                return True, None
            return False, "channel username should be 5-32 chars of [A-Za-z0-9_]"

        return False, "chat_id should be numeric or start with @"

    @staticmethod
    def validate_api_host(host: str) -> Tuple[bool, Optional[str]]:
        """
        Валидация хоста Bot API (без схемы и пути).

        Returns:
            (is_valid, error_message)
        """
        if not host:
            return False, "api host is empty"

        if '://' in host or '/' in host:
            return False, "api host should not contain scheme or path"

        if not HOSTNAME_RE.match(host):
            return False, f"invalid hostname: {host}"

        return True, None

    @classmethod
    def validate_all(
        cls,
        strict: bool = False,
        values: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Валидация всех переменных окружения.

        Args:
            strict: Если True, warnings тоже считаются ошибками
            values: Уже собранные значения (например, из YAML конфига);
                для пустых значений берется переменная окружения

        Returns:
            Dict с результатами валидации:
            {
                'valid': bool,
                'errors': List[str],
                'warnings': List[str],
                'info': Dict[str, str]
            }
        """
        values = values or {}
        errors = []
        warnings = []
        info = {}

        validators = {
            'TELEGRAM_BOT_TOKEN': cls.validate_bot_token,
            'TELEGRAM_CHAT_ID': cls.validate_chat_id,
            'TELEGRAM_API_HOST': cls.validate_api_host,
        }

        def lookup(var_name: str) -> str:
            value = values.get(var_name)
            if value is None or value == '':
                return os.getenv(var_name, '')
            return str(value)

        # Проверяем обязательные переменные
        for var_name, description in cls.REQUIRED_VARS.items():
            value = lookup(var_name)

            if not value:
                errors.append(f"❌ Missing required: {var_name} - {description}")
                continue

            is_valid, error_msg = validators[var_name](value)
            if not is_valid:
                errors.append(f"❌ Invalid {var_name}: {error_msg}")
            else:
                info[var_name] = "✅ Valid"

        # Проверяем опциональные переменные
        for var_name, description in cls.OPTIONAL_VARS.items():
            value = lookup(var_name)
            if not value:
                continue

            validator = validators.get(var_name)
            if validator is None:
                info[var_name] = "✅ Present"
                continue

            is_valid, error_msg = validator(value)
            if is_valid:
                info[var_name] = "✅ Valid"
            else:
                message = f"⚠️  Invalid {var_name}: {error_msg}"
                if strict:
                    errors.append(message)
                else:
                    warnings.append(message)

        valid = len(errors) == 0

        return {
            'valid': valid,
            'errors': errors,
            'warnings': warnings,
            'info': info
        }

    @classmethod
    def validate_and_exit_if_invalid(
        cls,
        strict: bool = False,
        values: Optional[Dict[str, Any]] = None
    ):
        """
        Валидация с автоматическим выходом при ошибках.

        Args:
            strict: Если True, warnings тоже приводят к выходу
            values: Уже собранные значения (см. validate_all)
        """
        result = cls.validate_all(strict=strict, values=values)

        logger.info("=" * 60)
        logger.info("Environment Variables Validation")
        logger.info("=" * 60)

        for key, value in result['info'].items():
            logger.info(f"  {key}: {value}")

        for warning in result['warnings']:
            logger.warning(f"  {warning}")

        for error in result['errors']:
            logger.error(f"  {error}")

        logger.info("=" * 60)

        if not result['valid']:
            logger.error("❌ Environment validation failed! Fix errors above.")
            sys.exit(1)

        logger.info("✅ Environment validation passed!")


__all__ = ['EnvValidator']
