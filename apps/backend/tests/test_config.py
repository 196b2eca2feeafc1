"""Verify collector settings load from the environment."""

from app.core.config import Settings
from app.request_context import client_ip


def test_settings_load(monkeypatch):
    monkeypatch.delenv("DEDUPE_WINDOW_SECONDS", raising=False)
    monkeypatch.delenv("PORT", raising=False)
    s = Settings()
    assert s.database_url.startswith("sqlite:///")
    assert s.dedupe_window_seconds == 60.0
    assert s.cors_origins == ["*"]
    assert s.port == 3001


def test_settings_override(monkeypatch):
    monkeypatch.setenv("DEDUPE_WINDOW_SECONDS", "5")
    monkeypatch.setenv("CORS_ORIGINS", '["https://shop.example"]')
    s = Settings()
    assert s.dedupe_window_seconds == 5.0
    assert s.cors_origins == ["https://shop.example"]


def test_client_ip_prefers_forwarded_for():
    assert client_ip({"x-forwarded-for": " 198.51.100.4 , 10.0.0.1"}, "10.0.0.9") == "198.51.100.4"
    assert client_ip({}, "10.0.0.9") == "10.0.0.9"
    assert client_ip({"x-forwarded-for": ""}, None) is None


def test_run_serves_app_with_configured_bind(monkeypatch):
    import uvicorn

    import main

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kw: calls.append((app, kw)))
    monkeypatch.setattr(main.settings, "port", 8080)
    main.run()

    host, level = main.settings.host, main.settings.log_level
    assert calls == [(main.app, {"host": host, "port": 8080, "log_level": level})]
