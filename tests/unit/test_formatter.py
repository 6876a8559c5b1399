"""
Unit тесты для report_notifier.formatter

Тестируем:
- Вывод вложенных словарей с отступами
- Маркированные списки
- Разбор JSON внутри строковых значений
- Экранирование HTML и MarkdownV2
- Защиту от циклов и слишком глубокой вложенности
- Обрезку длинных сообщений
"""

import pytest
from aiogram.enums import ParseMode

from report_notifier.formatter import (
    bold,
    escape_text,
    format_report,
    resolve_parse_mode,
    truncate_message,
    MAX_DEPTH,
    MAX_MESSAGE_LENGTH,
)


@pytest.mark.unit
class TestFormatStructure:
    """Тесты структуры вывода."""

    def test_flat_mapping(self):
        assert format_report({"user": "john", "server": "prod"}) == "user: john\nserver: prod"

    def test_nested_mapping_is_indented(self):
        data = {"user": "john", "device": {"model": "S24", "os": {"name": "Android"}}}
        expected = (
            "user: john\n"
            "device:\n"
            "  model: S24\n"
            "  os:\n"
            "    name: Android"
        )
        assert format_report(data) == expected

    def test_sequence_renders_bullets(self):
        data = {"device": {"tags": ["a", "b"]}}
        assert format_report(data) == "device:\n  tags:\n    • a\n    • b"

    def test_mapping_inside_sequence(self):
        data = {"items": [{"id": 1, "name": "x"}, "plain"]}
        expected = (
            "items:\n"
            "  •\n"
            "    id: 1\n"
            "    name: x\n"
            "  • plain"
        )
        assert format_report(data) == expected

    def test_nested_sequence(self):
        assert format_report({"matrix": [[1, 2], 3]}) == "matrix:\n  •\n    • 1\n    • 2\n  • 3"

    def test_empty_containers(self):
        assert format_report({"a": {}, "b": [], "c": ()}) == "a: {}\nb: []\nc: []"

    def test_scalars(self):
        data = {"ok": True, "failed": False, "error": None, "count": 3, "ratio": 0.5}
        assert format_report(data) == "ok: true\nfailed: false\nerror: null\ncount: 3\nratio: 0.5"

    def test_non_string_keys(self):
        assert format_report({1: "one", None: "none"}) == "1: one\nNone: none"

    def test_multiline_string_keeps_lines(self):
        assert format_report({"trace": "line1\nline2"}) == "trace: line1\n  line2"

    def test_top_level_sequence_and_scalar(self):
        assert format_report(["a", "b"]) == "• a\n• b"
        assert format_report("plain text") == "plain text"
        assert format_report(None) == "null"
        assert format_report({}) == "{}"

    def test_deterministic(self):
        data = {"b": [1, {"c": "d"}], "a": '{"x": [1, 2]}'}
        assert format_report(data) == format_report(data)
        assert format_report(data, ParseMode.MARKDOWN_V2) == format_report(data, ParseMode.MARKDOWN_V2)


@pytest.mark.unit
class TestEmbeddedJson:
    """Тесты разбора JSON внутри строк."""

    def test_json_object_string(self):
        assert format_report({"body": '{"username": "test", "id": 5}'}) == "body:\n  username: test\n  id: 5"

    def test_json_array_string(self):
        assert format_report({"ids": " [1, 2] "}) == "ids:\n  • 1\n  • 2"

    def test_json_inside_sequence(self):
        assert format_report({"events": ['{"type": "click"}']}) == "events:\n  •\n    type: click"

    def test_invalid_json_falls_back_to_text(self):
        assert format_report({"body": "{not json"}) == "body: {not json"

    def test_json_scalars_stay_literal(self):
        assert format_report({"code": "123", "flag": "true", "quoted": '"x"'}) == 'code: 123\nflag: true\nquoted: "x"'

    def test_empty_json_object(self):
        assert format_report({"body": "{}"}) == "body: {}"


@pytest.mark.unit
class TestEscaping:
    """Тесты экранирования спецсимволов."""

    def test_html_escapes_three_characters(self):
        data = {"a<b": "x & y > z", "quote": "\"it's\""}
        assert format_report(data, ParseMode.HTML) == "a&lt;b: x &amp; y &gt; z\nquote: \"it's\""

    def test_html_leaves_markdown_characters(self):
        assert format_report({"file_name": "report.txt"}, ParseMode.HTML) == "file_name: report.txt"

    def test_markdown_v2_escapes_special_characters(self):
        data = {"file_name": "report.txt", "delta": -1.5}
        assert format_report(data, ParseMode.MARKDOWN_V2) == "file\\_name: report\\.txt\ndelta: \\-1\\.5"

    def test_markdown_v2_escapes_empty_containers(self):
        assert format_report({"a": {}, "b": []}, "MarkdownV2") == "a: \\{\\}\nb: \\[\\]"

    def test_markdown_v2_escapes_full_set(self):
        special = "_*[]()~`>#+-=|{}.!\\"
        escaped = escape_text(special, ParseMode.MARKDOWN_V2)
        assert escaped == "".join("\\" + ch for ch in special)

    def test_markdown_v2_leaves_html_characters(self):
        assert escape_text("a & b < c", ParseMode.MARKDOWN_V2) == "a & b < c"

    def test_escape_applies_once(self):
        assert format_report({"k": "a&b"}) == "k: a&amp;b"

    def test_bold(self):
        assert bold("<x>", ParseMode.HTML) == "<b>&lt;x&gt;</b>"
        assert bold("a_b", ParseMode.MARKDOWN_V2) == "*a\\_b*"


@pytest.mark.unit
class TestParseMode:
    """Тесты выбора режима разметки."""

    def test_accepts_enum_and_strings(self):
        assert resolve_parse_mode(ParseMode.HTML) == ParseMode.HTML
        assert resolve_parse_mode("html") == ParseMode.HTML
        assert resolve_parse_mode("MARKDOWNV2") == ParseMode.MARKDOWN_V2

    def test_rejects_unsupported(self):
        with pytest.raises(ValueError):
            resolve_parse_mode("Markdown")
        with pytest.raises(ValueError):
            format_report({"a": 1}, "plain")


@pytest.mark.unit
class TestMalformedInput:
    """Плохие данные не должны ронять форматирование."""

    def test_self_reference(self):
        data = {"a": 1}
        data["self"] = data
        assert format_report(data) == "a: 1\nself:\n  …"

    def test_self_reference_in_list(self):
        items = [1]
        items.append(items)
        assert format_report({"items": items}) == "items:\n  • 1\n  •\n    …"

    def test_deep_nesting_is_cut(self):
        data = current = {}
        for _ in range(MAX_DEPTH * 3):
            current["n"] = {}
            current = current["n"]
        current["leaf"] = "value"

        result = format_report(data)
        assert "…" in result
        assert "leaf" not in result

    def test_arbitrary_objects_use_str(self):
        class Point:
            def __str__(self):
                return "Point(1, 2)"

        assert format_report({"p": Point()}) == "p: Point(1, 2)"


@pytest.mark.unit
class TestTruncateMessage:
    """Тесты обрезки под лимит Telegram."""

    def test_short_text_unchanged(self):
        assert truncate_message("hello") == "hello"

    def test_cuts_on_line_boundary(self):
        text = "\n".join(["x" * 10] * 1000)
        result = truncate_message(text)

        assert len(result) <= MAX_MESSAGE_LENGTH
        assert result.endswith("\n…")
        assert all(line == "x" * 10 for line in result.split("\n")[:-1])

    def test_single_long_html_line_keeps_entities_whole(self):
        result = truncate_message("a&amp;" * 1000, ParseMode.HTML)

        assert len(result) <= MAX_MESSAGE_LENGTH
        body = result[:-1]
        assert body.rfind("&") < body.rfind(";")

    def test_single_long_markdown_line_has_no_dangling_backslash(self):
        result = truncate_message("\\." * 3000, ParseMode.MARKDOWN_V2)

        assert len(result) <= MAX_MESSAGE_LENGTH
        body = result[:-1]
        trailing = len(body) - len(body.rstrip("\\"))
        assert trailing % 2 == 0

    def test_long_bold_line_drops_unclosed_tag(self):
        result = truncate_message("<b>" + "x" * 5000 + "</b>", ParseMode.HTML)

        assert len(result) <= MAX_MESSAGE_LENGTH
        assert "<b>" not in result
        assert result.startswith("xxx")

    def test_long_line_keeps_closed_tags(self):
        result = truncate_message("<b>Title</b> " + "y" * 5000, ParseMode.HTML)

        assert result.startswith("<b>Title</b> yyy")

    def test_long_markdown_bold_drops_unclosed_marker(self):
        result = truncate_message("*" + "x" * 5000 + "*", ParseMode.MARKDOWN_V2)

        assert len(result) <= MAX_MESSAGE_LENGTH
        assert "*" not in result

    def test_long_markdown_line_keeps_escaped_markers(self):
        result = truncate_message("\\*a\\_" + "x" * 5000, ParseMode.MARKDOWN_V2)

        assert result.startswith("\\*a\\_xxx")
