from pathlib import Path

import httpx
import pytest

import client as client_module
from webtrace_client import env


def _clear_env(monkeypatch) -> None:
    for key in (
        "WTA_BASE_URL",
        "WTA_TIMEOUT",
        "WTA_REFRESH_TIMEOUT",
        "WTA_REFRESH_PATH",
        "WTA_LOGIN_PATH",
        "WTA_STORAGE_DIR",
        "WTA_DEBUG",
    ):
        monkeypatch.delenv(key, raising=False)


def test_default_settings(monkeypatch) -> None:
    _clear_env(monkeypatch)

    settings = env.load_settings()

    assert settings.base_url == "http://localhost:17001"
    assert settings.timeout == 10.0
    assert settings.refresh_timeout == 10.0
    assert settings.refresh_path == "/api/auth/refresh"
    assert settings.login_path == "/login"
    assert settings.storage_dir == Path(".webtrace")
    assert settings.debug is False


def test_settings_read_from_env(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("WTA_BASE_URL", "https://trace.example.com")
    monkeypatch.setenv("WTA_TIMEOUT", "2.5")
    monkeypatch.setenv("WTA_REFRESH_TIMEOUT", "4")
    monkeypatch.setenv("WTA_LOGIN_PATH", "/sso/login")
    monkeypatch.setenv("WTA_DEBUG", "yes")

    settings = env.load_settings()

    assert settings.base_url == "https://trace.example.com"
    assert settings.timeout == 2.5
    assert settings.refresh_timeout == 4.0
    assert settings.login_path == "/sso/login"
    assert settings.debug is True


@pytest.mark.parametrize("raw", ["soon", "0", "-1"])
def test_invalid_timeout_rejected(monkeypatch, raw) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("WTA_TIMEOUT", raw)

    with pytest.raises(RuntimeError, match="WTA_TIMEOUT"):
        env.load_settings()


@pytest.mark.parametrize("url", ["not a url", "ftp://trace.example.com", ""])
def test_validate_env_rejects_bad_base_url(monkeypatch, url) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("WTA_BASE_URL", url)

    with pytest.raises(RuntimeError, match="WTA_BASE_URL"):
        env.validate_env()


def test_validate_env_rejects_relative_paths(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("WTA_REFRESH_PATH", "api/auth/refresh")

    with pytest.raises(RuntimeError, match="WTA_REFRESH_PATH"):
        env.validate_env()


def test_validate_env_accepts_defaults(monkeypatch) -> None:
    _clear_env(monkeypatch)

    env.validate_env()


@pytest.mark.parametrize(
    ("value", "expected"),
    [("1", True), ("TRUE", True), (" on ", True), ("0", False), ("", False), (None, False)],
)
def test_is_truthy(value, expected) -> None:
    assert env.is_truthy(value) is expected


@pytest.mark.asyncio
async def test_create_client_from_env(monkeypatch, tmp_path) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setattr(client_module, "load_env", lambda: None)
    monkeypatch.setenv("WTA_BASE_URL", "http://trace.test:8080")
    monkeypatch.setenv("WTA_STORAGE_DIR", str(tmp_path))
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"code": 200, "data": []})

    api = client_module.create_client(transport=httpx.MockTransport(handler))
    envelope = await api.get("/getMenuList")
    await api.aclose()

    assert envelope.ok
    assert str(seen[0].url) == "http://trace.test:8080/getMenuList"
    assert (tmp_path / "http_trace.test_8080.json").exists()
