"""
Модуль обработчиков команд и callback'ов демо-бота.
"""

from . import start

__all__ = ['start']
