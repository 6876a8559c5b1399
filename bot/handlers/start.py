"""
Обработчики команды /start и демо-кнопок отправки.
"""

import logging
from aiogram import Router, F
from aiogram.filters import CommandStart
from aiogram.types import Message, CallbackQuery

from bot.config import BotConfig
from bot.keyboards import get_demo_keyboard, SEND_MESSAGE_CALLBACK, SEND_ERROR_REPORT_CALLBACK
from report_notifier.formatter import escape_text
from report_notifier.notifications import TelegramNotifier

logger = logging.getLogger(__name__)
router = Router()

TEST_MESSAGE = "Hi, Telegram!"

WELCOME_MESSAGE = (
    "👋 <b>Report Notifier Demo</b>\n\n"
    "Кнопки ниже отправляют тестовое сообщение и тестовый отчёт об ошибке "
    "в настроенный чат (TELEGRAM_CHAT_ID)."
)

ACCESS_DENIED_MESSAGE = "⛔ Нет доступа"

SAMPLE_DEVICE_INFO = {
    "Brand": "Samsung",
    "Model": "S24",
    "OS": {"name": "Android", "version": "14"},
}

SAMPLE_REQUEST_DATA = {
    "endpoint": "/api/login",
    "method": "POST",
    "body": '{"username": "test", "remember_me": true}',
    "messages": "Invalid credentials",
}


@router.message(CommandStart())
async def cmd_start(message: Message):
    """Приветствие и демо-клавиатура."""
    await message.answer(WELCOME_MESSAGE, reply_markup=get_demo_keyboard(), parse_mode='HTML')


@router.callback_query(F.data == SEND_MESSAGE_CALLBACK)
async def send_test_message(callback: CallbackQuery, notifier: TelegramNotifier):
    """Отправка тестового сообщения через notifier."""
    if not BotConfig.is_allowed(callback.from_user.id):
        await callback.answer(ACCESS_DENIED_MESSAGE, show_alert=True)
        return

    sent = await notifier.send_message(escape_text(TEST_MESSAGE, notifier.parse_mode))
    logger.info(f"Тестовое сообщение от {callback.from_user.id}: sent={sent}")

    await callback.answer("✅ Сообщение отправлено" if sent else "❌ Не удалось отправить сообщение")


@router.callback_query(F.data == SEND_ERROR_REPORT_CALLBACK)
async def send_test_error_report(callback: CallbackQuery, notifier: TelegramNotifier):
    """Отправка тестового отчёта об ошибке через notifier."""
    if not BotConfig.is_allowed(callback.from_user.id):
        await callback.answer(ACCESS_DENIED_MESSAGE, show_alert=True)
        return

    sent = await notifier.send_error_report(
        username=callback.from_user.username or str(callback.from_user.id),
        server_name=BotConfig.SERVER_NAME,
        device_info=SAMPLE_DEVICE_INFO,
        request_data=SAMPLE_REQUEST_DATA
    )
    logger.info(f"Тестовый отчёт об ошибке от {callback.from_user.id}: sent={sent}")

    await callback.answer("✅ Отчёт отправлен" if sent else "❌ Не удалось отправить отчёт")
