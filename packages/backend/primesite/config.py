from __future__ import annotations

from dataclasses import dataclass, field
import os

from dotenv import find_dotenv, load_dotenv


def _load_env() -> None:
    env_path = find_dotenv(usecwd=True)
    if env_path:
        load_dotenv(env_path, override=False)


_load_env()


def _get_env(key: str, default: str | None = None) -> str | None:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return value


def _get_bool(key: str, default: bool = False) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def _get_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_list(key: str) -> list[str]:
    value = os.getenv(key)
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    database_url: str = field(default_factory=lambda: _get_env("DATABASE_URL", "sqlite:///./primesite.db"))
    local_drafts_url: str = field(
        default_factory=lambda: _get_env("LOCAL_DRAFTS_URL", "sqlite:///~/.primesite/drafts.db")
    )
    session_file: str = field(default_factory=lambda: _get_env("SESSION_FILE", "~/.primesite/session.json"))

    vercel_token: str | None = field(default_factory=lambda: _get_env("VERCEL_TOKEN"))
    vercel_team_id: str | None = field(
        default_factory=lambda: _get_env("VERCEL_TEAM_ID") or _get_env("VERCEL_ORG_ID")
    )
    vercel_api_base: str = field(default_factory=lambda: _get_env("VERCEL_API_BASE", "https://api.vercel.com"))
    deploy_timeout_seconds: float = field(default_factory=lambda: _get_float("DEPLOY_TIMEOUT_SECONDS", 120.0))
    deploy_payload_limit_mb: float = field(default_factory=lambda: _get_float("DEPLOY_PAYLOAD_LIMIT_MB", 4.5))

    storage_bucket: str | None = field(default_factory=lambda: _get_env("GCS_BUCKET_NAME"))
    storage_endpoint_url: str = field(
        default_factory=lambda: _get_env("STORAGE_ENDPOINT_URL", "https://storage.googleapis.com")
    )
    storage_access_key_id: str | None = field(default_factory=lambda: _get_env("STORAGE_ACCESS_KEY_ID"))
    storage_secret_access_key: str | None = field(default_factory=lambda: _get_env("STORAGE_SECRET_ACCESS_KEY"))
    storage_region: str = field(default_factory=lambda: _get_env("STORAGE_REGION", "auto"))
    storage_public_base_url: str = field(
        default_factory=lambda: _get_env("STORAGE_PUBLIC_BASE_URL", "https://storage.googleapis.com")
    )
    signed_url_ttl_seconds: int = field(default_factory=lambda: _get_int("SIGNED_URL_TTL_SECONDS", 900))

    stripe_secret_key: str | None = field(default_factory=lambda: _get_env("STRIPE_SECRET_KEY"))
    stripe_api_base: str = field(default_factory=lambda: _get_env("STRIPE_API_BASE", "https://api.stripe.com"))
    stripe_timeout_seconds: float = field(default_factory=lambda: _get_float("STRIPE_TIMEOUT_SECONDS", 30.0))
    hosting_price_cents: int = field(default_factory=lambda: _get_int("HOSTING_PRICE_CENTS", 1000))
    hosting_product_name: str = field(
        default_factory=lambda: _get_env("HOSTING_PRODUCT_NAME", "Prime Barber AI - Monthly Hosting")
    )
    domain_markup_usd: float = field(default_factory=lambda: _get_float("DOMAIN_MARKUP_USD", 5.0))
    default_origin: str = field(default_factory=lambda: _get_env("DEFAULT_ORIGIN", "http://localhost:3000"))

    fb_access_token: str | None = field(default_factory=lambda: _get_env("FB_ACCESS_TOKEN"))
    fb_pixel_id: str | None = field(default_factory=lambda: _get_env("FB_PIXEL_ID"))
    fb_api_base: str = field(default_factory=lambda: _get_env("FB_API_BASE", "https://graph.facebook.com/v21.0"))
    purchase_value: float = field(default_factory=lambda: _get_float("PURCHASE_VALUE", 10.0))
    purchase_currency: str = field(default_factory=lambda: _get_env("PURCHASE_CURRENCY", "USD"))
    purchase_event_source_url: str = field(
        default_factory=lambda: _get_env("PURCHASE_EVENT_SOURCE_URL", "https://www.aibarber.org/")
    )

    publish_countdown_ticks: int = field(default_factory=lambda: _get_int("PUBLISH_COUNTDOWN_TICKS", 15))
    republish_countdown_ticks: int = field(default_factory=lambda: _get_int("REPUBLISH_COUNTDOWN_TICKS", 3))
    publish_tick_seconds: float = field(default_factory=lambda: _get_float("PUBLISH_TICK_SECONDS", 1.0))
    publish_run_ttl_seconds: float = field(default_factory=lambda: _get_float("PUBLISH_RUN_TTL_SECONDS", 3600.0))

    cors_allow_origins: list[str] = field(default_factory=lambda: _get_list("CORS_ALLOW_ORIGINS"))
    cors_allow_credentials: bool = field(default_factory=lambda: _get_bool("CORS_ALLOW_CREDENTIALS", False))
    rate_limit_enabled: bool = field(default_factory=lambda: _get_bool("RATE_LIMIT_ENABLED", True))

    log_level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO") or "INFO")
    log_dir: str | None = field(default_factory=lambda: _get_env("LOG_DIR"))
    shutdown_drain_seconds: float = field(default_factory=lambda: _get_float("SHUTDOWN_DRAIN_SECONDS", 10.0))


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def refresh_settings() -> Settings:
    """Rebuild settings from environment variables."""
    global _settings
    _settings = Settings()
    return _settings


__all__ = ["Settings", "get_settings", "refresh_settings"]
