"""
Notification Service.

Отправка отчётов в Telegram через Bot API.
"""

from report_notifier.notifications.telegram_notifier import TelegramNotifier

__all__ = ['TelegramNotifier']
