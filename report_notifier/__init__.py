"""
Report Notifier - отправка отчётов и ошибок в Telegram.

Example:
    async with TelegramNotifier(bot_token, "@alerts") as notifier:
        await notifier.send_report({"event": "deploy", "status": "ok"}, title="Deploy")
"""

from report_notifier.config import NotifierConfig
from report_notifier.formatter import bold, escape_text, format_report
from report_notifier.notifications import TelegramNotifier

__version__ = '1.0.0'

__all__ = [
    'NotifierConfig',
    'TelegramNotifier',
    'format_report',
    'escape_text',
    'bold',
]
