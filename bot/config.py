"""
Конфигурация демо-бота.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Загружаем переменные окружения из .env (только для локального запуска)
env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)

from report_notifier.env_validator import EnvValidator


class BotConfig:
    """Конфигурация бота."""

    # Токен бота, который принимает нажатия кнопок.
    # Если не задан - используется токен notifier'а (env или config/notifier.yaml).
    BOT_TOKEN = os.getenv('DEMO_BOT_TOKEN', '')

    # Имя сервера в тестовом отчёте об ошибке
    SERVER_NAME = os.getenv('SERVER_NAME', 'report-notifier-demo')

    # Белый список пользователей, которым доступны кнопки
    # Формат: список Telegram User ID через запятую
    # Если не задано - бот доступен всем
    ALLOWED_USERS_STR = os.getenv('ALLOWED_USERS', '')
    ALLOWED_USERS = set(int(uid.strip()) for uid in ALLOWED_USERS_STR.split(',') if uid.strip()) if ALLOWED_USERS_STR else None

    @classmethod
    def is_allowed(cls, user_id: int) -> bool:
        return cls.ALLOWED_USERS is None or user_id in cls.ALLOWED_USERS

    @classmethod
    def get_bot_token(cls, notifier_token: str = '') -> str:
        """DEMO_BOT_TOKEN или, если он не задан, токен notifier'а."""
        return cls.BOT_TOKEN or notifier_token

    @classmethod
    def validate(cls, bot_token: str):
        """Проверяет, что все необходимые настройки заданы."""
        errors = []

        if not bot_token:
            errors.append("DEMO_BOT_TOKEN / TELEGRAM_BOT_TOKEN не задан")
        else:
            is_valid, error_msg = EnvValidator.validate_bot_token(bot_token)
            if not is_valid:
                errors.append(f"Токен демо-бота некорректен: {error_msg}")

        if errors:
            raise ValueError("Ошибки конфигурации:\n" + "\n".join(f"  - {e}" for e in errors))

        return True
