"""
Демо-бот Report Notifier.
"""
