"""
AJK CRM - Configuration loading tests
"""

from datetime import date

import pytest
from fastapi.testclient import TestClient

import server
from config import Clock, ConfigError, FixedClock, load_settings
from server import create_app
from tests.conftest import make_settings

BASE_ENV = {
    "MONGO_URL": "mongodb://localhost:27017",
    "ADMIN_USER": "admin",
    "ADMIN_PASS": "secret",
    "SENDGRID_API_KEY": "SG.test",
}


class TestLoadSettings:
    """load_settings(env)"""

    def test_defaults(self):
        settings = load_settings(dict(BASE_ENV))
        assert settings.db_name == "ajk_crm"
        assert settings.business_timezone == "Europe/Berlin"
        assert settings.digest_hour == 7
        assert settings.digest_enabled is True
        assert settings.ai_enabled is False
        assert settings.is_production is False

    def test_all_missing_names_reported(self):
        with pytest.raises(ConfigError) as exc:
            load_settings({"MONGO_URL": "mongodb://x"})
        message = str(exc.value)
        for name in ("ADMIN_USER", "ADMIN_PASS", "SENDGRID_API_KEY"):
            assert name in message
        assert "MONGO_URL" not in message

    def test_bad_integer(self):
        with pytest.raises(ConfigError):
            load_settings({**BASE_ENV, "DIGEST_HOUR": "seven"})

    def test_unknown_timezone(self):
        with pytest.raises(ConfigError):
            load_settings({**BASE_ENV, "BUSINESS_TIMEZONE": "Mars/Olympus"})

    def test_overrides(self):
        settings = load_settings({
            **BASE_ENV,
            "DIGEST_ENABLED": "false",
            "DIGEST_MINUTE": "30",
            "AI_API_KEY": "key",
            "ENVIRONMENT": "production",
            "CORS_ORIGINS": "https://a.example, https://b.example",
        })
        assert settings.digest_enabled is False
        assert settings.digest_minute == 30
        assert settings.ai_enabled is True
        assert settings.is_production is True
        assert settings.cors_origins == ("https://a.example", "https://b.example")


class TestClock:
    """Business-day resolution"""

    def test_fixed_clock(self):
        assert FixedClock(date(2025, 1, 1)).today() == date(2025, 1, 1)

    def test_clock_uses_business_timezone(self):
        clock = Clock("Pacific/Kiritimati")
        assert clock.now().utcoffset().total_seconds() == 14 * 3600
        assert clock.today() == clock.now().date()


class TestCors:
    """CORS origins come from the loaded settings"""

    def preflight(self, client, origin):
        return client.options("/api/customers", headers={
            "Origin": origin,
            "Access-Control-Request-Method": "GET",
        })

    def test_configured_origin_allowed(self):
        app = create_app(make_settings(cors_origins=("https://crm.example",)))
        r = self.preflight(TestClient(app), "https://crm.example")
        assert r.status_code == 200
        assert r.headers["access-control-allow-origin"] == "https://crm.example"

    def test_other_origin_rejected(self):
        app = create_app(make_settings(cors_origins=("https://crm.example",)))
        r = self.preflight(TestClient(app), "https://elsewhere.example")
        assert r.status_code == 400
        assert "access-control-allow-origin" not in r.headers

    def test_env_file_value_reaches_the_app(self, monkeypatch):
        env = {**BASE_ENV, "CORS_ORIGINS": "https://crm.example"}
        monkeypatch.setattr(server, "load_settings", lambda: load_settings(env))
        app = server.create_app()
        assert app.state.settings.cors_origins == ("https://crm.example",)
        r = self.preflight(TestClient(app), "https://crm.example")
        assert r.headers["access-control-allow-origin"] == "https://crm.example"
