"""
Форматирование отчётов для Telegram.

Превращает вложенные JSON-подобные структуры в читаемый текст:
- вложенные словари выводятся с увеличивающимся отступом
- списки выводятся маркированными строками
- строки, внутри которых лежит JSON, разбираются и выводятся как структура

Поддерживаются два режима разметки Telegram: HTML и MarkdownV2.
"""

import json
import re
from typing import Any, List, Union

from aiogram.enums import ParseMode
from aiogram.utils.text_decorations import TextDecoration, html_decoration, markdown_decoration

INDENT = "  "
BULLET = "•"
ELLIPSIS = "…"

# Глубже этого уровня вложенность не раскрывается
MAX_DEPTH = 32

# Лимит длины сообщения в Telegram Bot API
MAX_MESSAGE_LENGTH = 4096

SUPPORTED_MODES = (ParseMode.HTML, ParseMode.MARKDOWN_V2)

HTML_TAG_RE = re.compile(r'<(/?)([A-Za-z][A-Za-z0-9-]*)[^>]*>')
MARKDOWN_MARKERS = ("*", "_", "__", "~", "||", "`")

_MODES_BY_NAME = {mode.value.lower(): mode for mode in SUPPORTED_MODES}

_DECORATIONS = {
    ParseMode.HTML: html_decoration,
    ParseMode.MARKDOWN_V2: markdown_decoration,
}


def resolve_parse_mode(parse_mode: Union[ParseMode, str]) -> ParseMode:
    """
    Приводит parse_mode к ParseMode.

    Принимает ParseMode или строку ("HTML", "MarkdownV2", регистр не важен).

    Raises:
        ValueError: если режим не поддерживается
    """
    name = getattr(parse_mode, 'value', parse_mode)
    mode = _MODES_BY_NAME.get(str(name).lower())
    if mode is None:
        supported = ', '.join(m.value for m in SUPPORTED_MODES)
        raise ValueError(f"Неподдерживаемый parse_mode: {parse_mode!r} (доступны: {supported})")
    return mode


def get_decoration(parse_mode: Union[ParseMode, str]) -> TextDecoration:
    return _DECORATIONS[resolve_parse_mode(parse_mode)]


def escape_text(text: Any, parse_mode: Union[ParseMode, str] = ParseMode.HTML) -> str:
    """
    Экранирование спецсимволов выбранного режима разметки.

    HTML: & < >
    MarkdownV2: _ * [ ] ( ) ~ ` > # + - = | { } . ! и обратный слэш
    """
    return get_decoration(parse_mode).quote(str(text))


def bold(text: Any, parse_mode: Union[ParseMode, str] = ParseMode.HTML) -> str:
    """Экранирует текст и выделяет его жирным."""
    decoration = get_decoration(parse_mode)
    return decoration.bold(decoration.quote(str(text)))


def format_report(data: Any, parse_mode: Union[ParseMode, str] = ParseMode.HTML) -> str:
    """
    Форматирование отчёта в текст сообщения.

    Args:
        data: Словарь с данными отчёта (допускаются списки и скаляры)
        parse_mode: Режим разметки Telegram (HTML или MarkdownV2)

    Returns:
        Текст, в котором все ключи и значения экранированы для parse_mode

    Example:
        >>> format_report({"user": "john", "device": {"model": "S24"}})
        'user: john\\ndevice:\\n  model: S24'
    """
    renderer = _ReportRenderer(get_decoration(parse_mode))
    return "\n".join(renderer.render(data))


def truncate_message(
    text: str,
    parse_mode: Union[ParseMode, str] = ParseMode.HTML,
    limit: int = MAX_MESSAGE_LENGTH
) -> str:
    """
    Обрезка текста под лимит Telegram.

    Режет по последнему переводу строки, который помещается в лимит, и
    добавляет "…". Если первая же строка длиннее лимита, режет внутри неё,
    не оставляя оборванных HTML-сущностей, висящих экранирующих слэшей и
    незакрытых тегов (маркеров MarkdownV2): такой текст Telegram не примет.
    """
    if len(text) <= limit:
        return text

    budget = limit - len(ELLIPSIS) - 1
    cut = text.rfind("\n", 0, budget + 1)
    if cut > 0:
        return text[:cut].rstrip() + "\n" + ELLIPSIS

    head = text[:budget + 1]
    mode = resolve_parse_mode(parse_mode)
    if mode == ParseMode.HTML:
        amp = head.rfind("&")
        if amp != -1 and ";" not in head[amp:]:
            head = head[:amp]
        lt = head.rfind("<")
        if lt != -1 and ">" not in head[lt:]:
            head = head[:lt]
        head = _drop_open_html_tags(head)
    else:
        trailing = len(head) - len(head.rstrip("\\"))
        if trailing % 2:
            head = head[:-1]
        head = _drop_open_markdown_markers(head)
    return head + ELLIPSIS


def _drop_open_html_tags(text: str) -> str:
    """Убирает открывающие теги, чей закрывающий тег остался за обрезкой."""
    open_tags = []
    for match in HTML_TAG_RE.finditer(text):
        closing, name = match.group(1), match.group(2).lower()
        if not closing:
            open_tags.append((name, match.start(), match.end()))
            continue
        for i in range(len(open_tags) - 1, -1, -1):
            if open_tags[i][0] == name:
                del open_tags[i]
                break

    for _, start, end in reversed(open_tags):
        text = text[:start] + text[end:]
    return text


def _drop_open_markdown_markers(text: str) -> str:
    """Убирает неэкранированные маркеры MarkdownV2 без парного закрывающего."""
    open_markers = {}
    i = 0
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        pair = text[i:i + 2]
        marker = pair if pair in ("||", "__") else text[i]
        if marker in MARKDOWN_MARKERS:
            if marker in open_markers:
                del open_markers[marker]
            else:
                open_markers[marker] = i
        i += len(marker)

    for marker, start in sorted(open_markers.items(), key=lambda item: item[1], reverse=True):
        text = text[:start] + text[start + len(marker):]
    return text


class _ReportRenderer:
    """Рекурсивный обход структуры отчёта с построчным выводом."""

    def __init__(self, decoration: TextDecoration):
        self.decoration = decoration
        # id контейнеров на текущем пути обхода (защита от циклов)
        self._path = set()

    def render(self, data: Any) -> List[str]:
        data = _unpack(data)
        if isinstance(data, dict) and data:
            return self._render_mapping(data, 0)
        if isinstance(data, (list, tuple)) and data:
            return self._render_sequence(data, 0)
        return self._scalar_lines("", data, 0)

    def _render_mapping(self, mapping: dict, level: int) -> List[str]:
        if level > MAX_DEPTH or id(mapping) in self._path:
            return [INDENT * level + ELLIPSIS]

        self._path.add(id(mapping))
        try:
            lines = []
            for key, value in mapping.items():
                lines.extend(self._render_entry(self._quote(key), value, level))
            return lines
        finally:
            self._path.discard(id(mapping))

    def _render_entry(self, label: str, value: Any, level: int) -> List[str]:
        pad = INDENT * level
        value = _unpack(value)

        if isinstance(value, dict) and value:
            return [f"{pad}{label}:"] + self._render_mapping(value, level + 1)
        if isinstance(value, (list, tuple)) and value:
            return [f"{pad}{label}:"] + self._render_sequence(value, level + 1)

        return self._scalar_lines(f"{pad}{label}: ", value, level)

    def _render_sequence(self, items: Union[list, tuple], level: int) -> List[str]:
        pad = INDENT * level
        if level > MAX_DEPTH or id(items) in self._path:
            return [pad + ELLIPSIS]

        self._path.add(id(items))
        try:
            lines = []
            for item in items:
                item = _unpack(item)
                if isinstance(item, dict) and item:
                    lines.append(pad + BULLET)
                    lines.extend(self._render_mapping(item, level + 1))
                elif isinstance(item, (list, tuple)) and item:
                    lines.append(pad + BULLET)
                    lines.extend(self._render_sequence(item, level + 1))
                else:
                    lines.extend(self._scalar_lines(f"{pad}{BULLET} ", item, level))
            return lines
        finally:
            self._path.discard(id(items))

    def _scalar_lines(self, prefix: str, value: Any, level: int) -> List[str]:
        first, *rest = self._quote(_scalar_text(value)).split("\n")
        continuation = INDENT * (level + 1)
        return [prefix + first] + [continuation + line if line else line for line in rest]

    def _quote(self, value: Any) -> str:
        return self.decoration.quote(str(value))


def _unpack(value: Any) -> Any:
    """Разбирает JSON внутри строки; если не вышло - возвращает строку как есть."""
    if not isinstance(value, str):
        return value

    stripped = value.strip()
    if not stripped.startswith(('{', '[')):
        return value

    try:
        parsed = json.loads(stripped)
    except (ValueError, RecursionError):
        return value

    if isinstance(parsed, (dict, list)):
        return parsed
    return value


def _scalar_text(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dict):
        return "{}"
    if isinstance(value, (list, tuple)):
        return "[]"
    return str(value)


__all__ = [
    'format_report',
    'escape_text',
    'bold',
    'truncate_message',
    'resolve_parse_mode',
    'get_decoration',
    'MAX_DEPTH',
    'MAX_MESSAGE_LENGTH',
    'SUPPORTED_MODES',
]
