"""
Демо-бот: кнопки в Telegram, отправляющие сообщения через TelegramNotifier.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from aiogram import Bot, Dispatcher
from aiogram.types import BotCommand

from bot.config import BotConfig
from bot.handlers import start
from report_notifier.config import NotifierConfig
from report_notifier.env_validator import EnvValidator
from report_notifier.logger import auto_setup_logging
from report_notifier.notifications import TelegramNotifier

logger = logging.getLogger(__name__)


async def main(config_path: Optional[Path] = None):
    """
    Главная функция запуска бота.

    Args:
        config_path: YAML конфиг notifier'а (по умолчанию config/notifier.yaml)
    """
    auto_setup_logging()

    notifier_config = NotifierConfig.load(config_path=config_path)

    logger.info("🔍 Проверка настроек...")
    EnvValidator.validate_and_exit_if_invalid(strict=False, values=notifier_config.as_env_values())

    bot_token = BotConfig.get_bot_token(notifier_config.bot_token)
    try:
        BotConfig.validate(bot_token)
        notifier_config.validate()
        logger.info(f"✅ Конфигурация валидна: {notifier_config!r}")
    except ValueError as e:
        logger.error(f"❌ Ошибка конфигурации: {e}")
        return

    notifier = TelegramNotifier.from_config(notifier_config)

    bot = Bot(token=bot_token)
    # notifier попадает в handlers через workflow data
    dp = Dispatcher(notifier=notifier)
    dp.include_router(start.router)

    try:
        await bot.delete_webhook(drop_pending_updates=True)
        await bot.set_my_commands([
            BotCommand(command="start", description="📤 Демо отправки отчётов"),
        ])

        logger.info("✅ Бот успешно запущен!")
        await dp.start_polling(bot)

    except Exception as e:
        logger.error(f"❌ Ошибка при запуске бота: {e}", exc_info=True)
    finally:
        await notifier.close()
        await bot.session.close()


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("🛑 Бот остановлен пользователем")


if __name__ == "__main__":
    run()
