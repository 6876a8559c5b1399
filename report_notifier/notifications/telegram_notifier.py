"""
Telegram Notification Service для Report Notifier.

Отправляет отчёты (в том числе отчёты об ошибках) в чат или канал Telegram
через метод Bot API sendMessage. Политика ошибок - best-effort: любые сбои
логируются, наружу возвращается только True/False.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Union

import aiohttp
from aiogram.enums import ParseMode

from report_notifier.config import DEFAULT_API_HOST, DEFAULT_TIMEOUT, NotifierConfig
from report_notifier.formatter import bold, format_report, resolve_parse_mode, truncate_message

logger = logging.getLogger(__name__)

ChatId = Union[int, str]


class TelegramNotifier:
    """
    Клиент отправки сообщений в Telegram.

    Особенности:
    - Одна HTTP-сессия aiohttp на экземпляр (своя или переданная снаружи)
    - Форматирование отчётов из вложенных словарей
    - Никогда не бросает исключений при отправке
    - Счётчики отправленных и неудачных сообщений
    """

    def __init__(
        self,
        bot_token: str,
        default_chat_id: Optional[ChatId] = None,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        api_host: str = DEFAULT_API_HOST,
        parse_mode: Union[ParseMode, str] = ParseMode.HTML,
        timeout: float = DEFAULT_TIMEOUT,
        disable_web_page_preview: bool = True
    ):
        """
        Инициализация Telegram Notifier.

        Args:
            bot_token: Telegram Bot Token
            default_chat_id: Чат по умолчанию (ID или @channel)
            session: Готовая aiohttp сессия; если None - создается при первой отправке
            api_host: Хост Bot API
            parse_mode: Режим разметки по умолчанию (HTML или MarkdownV2)
            timeout: Таймаут одного запроса в секундах
            disable_web_page_preview: Отключить превью ссылок
        """
        self.bot_token = bot_token
        self.default_chat_id = default_chat_id
        self.api_host = api_host
        self.parse_mode = resolve_parse_mode(parse_mode)
        self.timeout = timeout
        self.disable_web_page_preview = disable_web_page_preview

        self._http_session = session
        # Чужую сессию не закрываем
        self._owns_session = session is None

        self.stats = {
            'messages_sent': 0,
            'messages_failed': 0,
            'network_errors': 0
        }

    @classmethod
    def from_config(
        cls,
        config: NotifierConfig,
        session: Optional[aiohttp.ClientSession] = None
    ) -> 'TelegramNotifier':
        """Создание notifier'а из NotifierConfig."""
        return cls(
            config.bot_token,
            config.chat_id,
            session=session,
            api_host=config.api_host,
            parse_mode=config.parse_mode,
            timeout=config.timeout,
            disable_web_page_preview=config.disable_web_page_preview
        )

    @property
    def api_url(self) -> str:
        return f"https://{self.api_host}/bot{self.bot_token}/sendMessage"

    async def get_session(self) -> aiohttp.ClientSession:
        """Получить HTTP сессию."""
        if self._http_session is None or self._http_session.closed:
            self._http_session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._http_session

    async def send_message(
        self,
        text: str,
        chat_id: Optional[ChatId] = None,
        parse_mode: Optional[Union[ParseMode, str]] = None
    ) -> bool:
        """
        Отправка текста в чат.

        Args:
            text: Готовый (уже экранированный) текст сообщения
            chat_id: Чат назначения; если None - default_chat_id
            parse_mode: Режим разметки; если None - режим notifier'а

        Returns:
            True если Bot API ответил 2xx, False иначе
        """
        target = chat_id if chat_id is not None else self.default_chat_id
        if target is None or target == '':
            self.stats['messages_failed'] += 1
            logger.error("❌ chat_id не задан, сообщение не отправлено")
            return False

        try:
            mode = resolve_parse_mode(parse_mode) if parse_mode is not None else self.parse_mode
            payload = {
                "chat_id": target,
                "text": truncate_message(text, mode),
                "parse_mode": mode.value,
                "disable_web_page_preview": self.disable_web_page_preview
            }

            session = await self.get_session()
            async with session.post(
                self.api_url,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as resp:
                if 200 <= resp.status < 300:
                    self.stats['messages_sent'] += 1
                    logger.info(f"✅ Сообщение отправлено в чат {target}")
                    return True

                description = await self._read_error_description(resp)
                self.stats['messages_failed'] += 1
                logger.error(f"❌ Telegram API вернул {resp.status} для чата {target}: {description}")
                return False

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.stats['network_errors'] += 1
            logger.error(f"❌ Сетевая ошибка при отправке в чат {target}: {e!r}")
            return False

        except Exception as e:
            self.stats['messages_failed'] += 1
            logger.error(f"❌ Неожиданная ошибка при отправке сообщения: {e}", exc_info=True)
            return False

    async def send_report(
        self,
        data: Any,
        chat_id: Optional[ChatId] = None,
        title: Optional[str] = None,
        parse_mode: Optional[Union[ParseMode, str]] = None
    ) -> bool:
        """
        Форматирование и отправка отчёта.

        Args:
            data: Данные отчёта (вложенный словарь)
            chat_id: Чат назначения
            title: Заголовок (выводится жирным первой строкой)
            parse_mode: Режим разметки

        Returns:
            True если успешно отправлено, False иначе
        """
        try:
            mode = resolve_parse_mode(parse_mode) if parse_mode is not None else self.parse_mode
            text = format_report(data, mode)
            if title:
                text = f"{bold(title, mode)}\n\n{text}"
        except Exception as e:
            self.stats['messages_failed'] += 1
            logger.error(f"❌ Ошибка форматирования отчёта: {e}", exc_info=True)
            return False

        return await self.send_message(text, chat_id=chat_id, parse_mode=mode)

    async def send_error_report(
        self,
        username: str,
        server_name: str,
        device_info: Dict[str, Any],
        request_data: Dict[str, Any],
        chat_id: Optional[ChatId] = None,
        parse_mode: Optional[Union[ParseMode, str]] = None
    ) -> bool:
        """
        Отправка отчёта об ошибке запроса.

        Args:
            username: Пользователь, у которого произошла ошибка
            server_name: Имя сервера или приложения
            device_info: Информация об устройстве
            request_data: Данные запроса (endpoint, method, body, messages, status_code)
            chat_id: Чат назначения
            parse_mode: Режим разметки

        Returns:
            True если успешно отправлено, False иначе
        """
        try:
            mode = resolve_parse_mode(parse_mode) if parse_mode is not None else self.parse_mode
            text = self._format_error_report(username, server_name, device_info, request_data, mode)
        except Exception as e:
            self.stats['messages_failed'] += 1
            logger.error(f"❌ Ошибка форматирования отчёта об ошибке: {e}", exc_info=True)
            return False

        return await self.send_message(text, chat_id=chat_id, parse_mode=mode)

    def _format_error_report(
        self,
        username: str,
        server_name: str,
        device_info: Dict[str, Any],
        request_data: Dict[str, Any],
        parse_mode: ParseMode
    ) -> str:
        """
        Форматирование отчёта об ошибке.

        Returns:
            Отформатированное сообщение
        """
        request_data = request_data or {}
        status_code = request_data.get('status_code', 500)

        def section(name: str) -> str:
            return f"➡➡➡ {bold(name, parse_mode)} ⬅⬅⬅"

        general = {'Server': server_name, 'User': username}
        request = {
            'End Point': request_data.get('endpoint'),
            'Method': request_data.get('method'),
            'Body Data': request_data.get('body'),
        }

        parts = [
            f"🚫 {bold(f'ERROR {status_code}', parse_mode)} 🚫",
            format_report(request_data.get('messages'), parse_mode),
            "",
            section('GENERAL'),
            format_report(general, parse_mode),
            "",
            section('DEVICE INFO'),
            format_report(device_info or {}, parse_mode),
            "",
            section('REQUEST'),
            format_report(request, parse_mode),
        ]
        return "\n".join(parts)

    def get_stats(self) -> Dict[str, Any]:
        """Получение статистики отправки."""
        return self.stats.copy()

    async def close(self):
        """Закрыть сессию (только если notifier создал её сам)."""
        if self._owns_session and self._http_session and not self._http_session.closed:
            await self._http_session.close()

    async def __aenter__(self) -> 'TelegramNotifier':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @staticmethod
    async def _read_error_description(resp: aiohttp.ClientResponse) -> str:
        """Описание ошибки из ответа Bot API ({"ok": false, "description": ...})."""
        try:
            data = await resp.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError):
            text = await resp.text()
            return text[:200]

        if isinstance(data, dict):
            return str(data.get('description') or data)
        return str(data)[:200]
