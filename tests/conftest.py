# tests/conftest.py

import pytest

import ai_client
import config
import conversations
import gog_cli
import google_auth
import google_tasks

from fakes import FakeAI, FakeGog


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    """No real accounts, no leftover caches, no ~/.gog_env."""
    monkeypatch.setattr(config, 'GOG_ACCOUNT', '')
    monkeypatch.setattr(config, 'GOG_ACCOUNTS', [])
    monkeypatch.setattr(config, 'GOG_ENV_FILE', str(tmp_path / 'missing_gog_env'))
    monkeypatch.setattr(config, 'AI_BACKEND', 'cli')
    monkeypatch.setitem(google_tasks._default_list, 'id', None)
    google_auth.clear_cache()
    conversations.clear_all()
    yield
    conversations.clear_all()


@pytest.fixture()
def gog(monkeypatch):
    fake = FakeGog()
    monkeypatch.setattr(gog_cli.subprocess, 'run', fake)
    return fake


@pytest.fixture()
def ai(monkeypatch):
    """Install a FakeAI; tests queue replies with ai.replies.append(...)."""
    fake = FakeAI()
    monkeypatch.setattr(ai_client, 'complete', fake)
    return fake


@pytest.fixture()
def client():
    import dashboard

    dashboard.app.config['TESTING'] = True
    with dashboard.app.test_client() as c:
        yield c
