"""
Configuration and shared helpers

Settings are read once at startup (``load_settings``) and handed to the
components that need them through ``app.state``.
"""

import os
import secrets
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional

import pytz
from dotenv import load_dotenv
from motor.motor_asyncio import AsyncIOMotorClient

ROOT_DIR = Path(__file__).parent
STATIC_DIR = ROOT_DIR / "static"

REQUIRED_VARS = ["MONGO_URL", "ADMIN_USER", "ADMIN_PASS", "SENDGRID_API_KEY"]


class ConfigError(RuntimeError):
    """Raised at boot when the environment is missing required values"""
    pass


def _safe_int(env: dict, name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid integer for {name}: {raw!r}") from None


def _flag(env: dict, name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    mongo_url: str
    admin_user: str
    admin_pass: str
    sendgrid_api_key: str
    db_name: str = "ajk_crm"

    # Mail
    sender_email: str = "info@ajkcleaners.de"
    sender_name: str = "AJK Cleaners"
    reply_to: str = "info@ajkcleaners.de"
    admin_email: str = "info@ajkcleaners.de"

    # Company details used in email footers
    company_name: str = "AJK Cleaners"
    company_phone: str = "+49 176 61852286"
    company_website: str = "https://ajkcleaners.de/"

    # Scheduling
    business_timezone: str = "Europe/Berlin"
    digest_enabled: bool = True
    digest_hour: int = 7
    digest_minute: int = 0

    # AI agenda summary (OpenAI-compatible endpoint)
    ai_api_url: str = "https://api.openai.com/v1/chat/completions"
    ai_api_key: str = ""
    ai_model: str = "gpt-4o-mini"

    cors_origins: tuple = ("*",)
    environment: str = "development"
    reconcile_concurrency: int = 8

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def ai_enabled(self) -> bool:
        return bool(self.ai_api_key)


def load_settings(env: Optional[dict] = None) -> Settings:
    """
    Build the settings struct from the environment.

    Missing required variables are fatal: every missing name is reported in
    a single ConfigError so the operator can fix them in one go.
    """
    if env is None:
        load_dotenv(ROOT_DIR / ".env")
        env = dict(os.environ)

    missing = [name for name in REQUIRED_VARS if not env.get(name)]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    timezone_name = env.get("BUSINESS_TIMEZONE") or Settings.business_timezone
    try:
        pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        raise ConfigError(f"Unknown BUSINESS_TIMEZONE: {timezone_name!r}") from None

    defaults = Settings.__dataclass_fields__
    return Settings(
        mongo_url=env["MONGO_URL"],
        admin_user=env["ADMIN_USER"],
        admin_pass=env["ADMIN_PASS"],
        sendgrid_api_key=env["SENDGRID_API_KEY"],
        db_name=env.get("DB_NAME") or defaults["db_name"].default,
        sender_email=env.get("SENDER_EMAIL") or defaults["sender_email"].default,
        sender_name=env.get("SENDER_NAME") or defaults["sender_name"].default,
        reply_to=env.get("REPLY_TO") or defaults["reply_to"].default,
        admin_email=env.get("ADMIN_EMAIL") or defaults["admin_email"].default,
        company_name=env.get("COMPANY_NAME") or defaults["company_name"].default,
        company_phone=env.get("COMPANY_PHONE") or defaults["company_phone"].default,
        company_website=env.get("COMPANY_WEBSITE") or defaults["company_website"].default,
        business_timezone=timezone_name,
        digest_enabled=_flag(env, "DIGEST_ENABLED", True),
        digest_hour=_safe_int(env, "DIGEST_HOUR", 7),
        digest_minute=_safe_int(env, "DIGEST_MINUTE", 0),
        ai_api_url=env.get("AI_API_URL") or defaults["ai_api_url"].default,
        ai_api_key=env.get("AI_API_KEY", ""),
        ai_model=env.get("AI_MODEL") or defaults["ai_model"].default,
        cors_origins=tuple(o.strip() for o in env.get("CORS_ORIGINS", "*").split(",") if o.strip()),
        environment=env.get("ENVIRONMENT") or defaults["environment"].default,
        reconcile_concurrency=_safe_int(env, "RECONCILE_CONCURRENCY", 8),
    )


def create_db(settings: Settings):
    """Open the Motor client; returns (client, database)"""
    client = AsyncIOMotorClient(settings.mongo_url)
    return client, client[settings.db_name]


class Clock:
    """Resolves "today" as a calendar date in the business time zone"""

    def __init__(self, timezone_name: str = "Europe/Berlin"):
        self.tz = pytz.timezone(timezone_name)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock(Clock):
    """Clock pinned to a single date (scripts and tests)"""

    def __init__(self, today: date, timezone_name: str = "Europe/Berlin"):
        super().__init__(timezone_name)
        self._today = today

    def today(self) -> date:
        return self._today


# ==================== HELPERS ====================

def generate_token() -> str:
    """Secure session token"""
    return secrets.token_urlsafe(32)


def now_iso() -> str:
    """Current UTC time in ISO format"""
    return datetime.now(timezone.utc).isoformat()
