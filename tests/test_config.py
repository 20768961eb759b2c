from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import AppSettings, get_user_env_file, parse_env_text, read_user_env_vars, write_user_env_vars


def test_defaults(monkeypatch):
    for name in ("HORIZON_SERVER", "HORIZON_PAGE_SIZE", "HORIZON_HTTP_TIMEOUT_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    settings = AppSettings(_env_file=None)
    assert settings.server == "public"
    assert settings.page_size == 10
    assert settings.http_timeout_seconds > 0


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("HORIZON_SERVER", "testnet")
    monkeypatch.setenv("HORIZON_PAGE_SIZE", "50")
    settings = AppSettings(_env_file=None)
    assert settings.server == "testnet"
    assert settings.page_size == 50


def test_page_size_is_bounded(monkeypatch):
    monkeypatch.setenv("HORIZON_PAGE_SIZE", "500")
    with pytest.raises(ValidationError):
        AppSettings(_env_file=None)


def test_env_file_is_read(tmp_path, monkeypatch):
    monkeypatch.delenv("HORIZON_SERVER", raising=False)
    env_path = write_user_env_vars({"HORIZON_SERVER": "http://localhost:8000"}, env_path=tmp_path / "cfg" / ".env")
    settings = AppSettings(_env_file=env_path)
    assert settings.server == "http://localhost:8000"


def test_write_user_env_vars_merges(tmp_path):
    env_path = tmp_path / ".env"
    env_path.write_text("# comment\nHORIZON_PAGE_SIZE=20\nHORIZON_SERVER='public'\n", encoding="utf-8")

    write_user_env_vars({"HORIZON_SERVER": "testnet"}, env_path=env_path)

    text = env_path.read_text(encoding="utf-8")
    assert "HORIZON_SERVER=testnet" in text
    assert "HORIZON_PAGE_SIZE=20" in text
    assert "public" not in text


def test_write_none_removes_key(tmp_path):
    env_path = write_user_env_vars({"HORIZON_SERVER": "testnet", "HORIZON_PAGE_SIZE": "5"}, env_path=tmp_path / ".env")
    write_user_env_vars({"HORIZON_PAGE_SIZE": None}, env_path=env_path)
    assert read_user_env_vars(env_path=env_path) == {"HORIZON_SERVER": "testnet"}


def test_parse_env_text_accepts_export_and_quotes():
    text = 'export HORIZON_SERVER="https://example.org"\n# ignored=1\nBROKEN\nHORIZON_USER_AGENT=\'tests/1\'\n'
    assert parse_env_text(text) == {
        "HORIZON_SERVER": "https://example.org",
        "HORIZON_USER_AGENT": "tests/1",
    }


def test_config_dir_override(tmp_path, monkeypatch):
    monkeypatch.setenv("HORIZON_CONFIG_DIR", str(tmp_path))
    assert get_user_env_file() == tmp_path / ".env"
    assert read_user_env_vars() == {}
