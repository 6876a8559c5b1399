"""
Общие фикстуры: подменная aiohttp-сессия и тестовый токен.
"""

import pytest

TEST_TOKEN = "123456789:" + "A" * 35
TEST_CHAT_ID = "@report_channel"

TELEGRAM_ENV_VARS = (
    'TELEGRAM_BOT_TOKEN',
    'TELEGRAM_CHAT_ID',
    'TELEGRAM_API_HOST',
    'TELEGRAM_PARSE_MODE',
    'TELEGRAM_TIMEOUT',
    'TELEGRAM_DISABLE_PREVIEW',
)


class FakeResponse:
    """Ответ в стиле aiohttp.ClientResponse (async context manager)."""

    def __init__(self, status=200, payload=None, text=''):
        self.status = status
        self._payload = payload
        self._text = text

    async def json(self, content_type='application/json'):
        if self._payload is None:
            raise ValueError("response body is not JSON")
        return self._payload

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Сессия, которая запоминает запросы и отдает заранее заданный ответ или ошибку."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse(200, {"ok": True, "result": {}})
        self.error = error
        self.calls = []
        self.closed = False

    def post(self, url, json=None, **kwargs):
        self.calls.append({'url': url, 'json': json, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_session():
    """Сессия, отвечающая 200 OK."""
    return FakeSession()


@pytest.fixture
def clean_env(monkeypatch):
    """Убирает TELEGRAM_* переменные окружения."""
    for name in TELEGRAM_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
