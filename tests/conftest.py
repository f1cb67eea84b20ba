"""
Configuración de pytest y fixtures compartidas.
"""

import pytest
from fastapi.testclient import TestClient

from fifa_penalty.config import settings
from fifa_penalty.main import app
from fifa_penalty.services import live_feed, llm_client
from fifa_penalty.utils.cache import clear_cache
from tests.fixtures.sample_feed import sample_payload


@pytest.fixture(autouse=True)
def isolated_state(monkeypatch):
    """Caché vacía, limitador a cero y ningún servicio externo configurado."""
    clear_cache()
    app.state.chat_limiter.reset()
    monkeypatch.setattr(settings, "telegram_bot_token", None)
    monkeypatch.setattr(settings, "telegram_chat_id", None)
    monkeypatch.setattr(settings, "llm_provider", None)
    monkeypatch.setattr(settings, "anthropic_api_key", None)
    monkeypatch.setattr(settings, "openai_api_key", None)
    yield
    clear_cache()


@pytest.fixture
def payload():
    return sample_payload()


@pytest.fixture
def feed(monkeypatch, payload):
    """Sustituye la descarga del feed por `payload`. Devuelve la lista de llamadas."""
    calls = []

    def fake_fetch(use_cache=True):
        calls.append(use_cache)
        return payload

    monkeypatch.setattr(live_feed, "fetch_live_feed", fake_fetch)
    return calls


@pytest.fixture
def no_llm(monkeypatch):
    monkeypatch.setattr(llm_client, "complete", lambda system, messages: None)


@pytest.fixture
def client(feed):
    with TestClient(app) as c:
        yield c
