"""
Клавиатуры для демо-бота.
"""

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

SEND_MESSAGE_CALLBACK = "demo_send_message"
SEND_ERROR_REPORT_CALLBACK = "demo_send_error_report"


def get_demo_keyboard() -> InlineKeyboardMarkup:
    """Кнопки отправки тестового сообщения и тестового отчёта об ошибке."""
    builder = InlineKeyboardBuilder()

    builder.button(text="📤 Отправить тестовое сообщение", callback_data=SEND_MESSAGE_CALLBACK)
    builder.button(text="🚨 Отправить тестовый отчёт об ошибке", callback_data=SEND_ERROR_REPORT_CALLBACK)
    builder.adjust(1)

    return builder.as_markup()


__all__ = [
    'get_demo_keyboard',
    'SEND_MESSAGE_CALLBACK',
    'SEND_ERROR_REPORT_CALLBACK'
]
