"""
Centralized configuration with environment variable overrides.

Business copy, resolver settings, session lifetimes and channel credentials
are configurable here. Nothing is hardcoded in handler or relay logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from medrelay.logging_context import SenderIdFilter

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class BusinessConfig:
    """Business-specific settings loaded from environment or defaults."""

    name: str = os.getenv("BUSINESS_NAME", "Drugs.ng")
    currency_symbol: str = os.getenv("CURRENCY_SYMBOL", "₦")
    default_doctor_location: str = os.getenv("DEFAULT_DOCTOR_LOCATION", "Lagos")


@dataclass(frozen=True)
class ResolverConfig:
    """Intent resolution settings, including the optional primary provider."""

    provider: str = os.getenv("INTENT_PROVIDER", "none")
    llm_model: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
    llm_temperature: float = _safe_float("LLM_TEMPERATURE", "0.0")
    timeout_sec: float = _safe_float("INTENT_PROVIDER_TIMEOUT", "3.0")
    min_confidence: float = _safe_float("INTENT_MIN_CONFIDENCE", "0.6")


@dataclass(frozen=True)
class SessionConfig:
    """Session lifetime, housekeeping, verification codes and cache sizes."""

    idle_ttl_minutes: int = _safe_int("SESSION_IDLE_TTL_MINUTES", "1440")
    purge_every_turns: int = _safe_int("SESSION_PURGE_EVERY_TURNS", "100")
    otp_ttl_minutes: int = _safe_int("OTP_TTL_MINUTES", "5")
    otp_max_attempts: int = _safe_int("OTP_MAX_ATTEMPTS", "3")
    max_cached_results: int = _safe_int("MAX_CACHED_RESULTS", "5")


@dataclass(frozen=True)
class NotifierConfig:
    """Outbound WhatsApp Cloud API settings."""

    api_base: str = os.getenv("WHATSAPP_API_BASE", "https://graph.facebook.com/v18.0")
    phone_number_id: str = os.getenv("WHATSAPP_PHONE_NUMBER_ID", "")
    access_token: str = os.getenv("WHATSAPP_ACCESS_TOKEN", "")
    timeout_sec: float = _safe_float("NOTIFIER_TIMEOUT", "10.0")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    notifier: NotifierConfig = field(default_factory=NotifierConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "medrelay")


VALID_PROVIDERS = ("none", "openai")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.resolver.provider not in VALID_PROVIDERS:
        raise ValueError(
            f"INTENT_PROVIDER must be one of {VALID_PROVIDERS}, got {config.resolver.provider!r}"
        )
    if not 0.0 <= config.resolver.llm_temperature <= 2.0:
        raise ValueError(
            f"LLM_TEMPERATURE must be between 0.0 and 2.0, got {config.resolver.llm_temperature}"
        )
    if config.resolver.timeout_sec <= 0:
        raise ValueError(
            f"INTENT_PROVIDER_TIMEOUT must be > 0, got {config.resolver.timeout_sec}"
        )
    if not 0.0 <= config.resolver.min_confidence <= 1.0:
        raise ValueError(
            f"INTENT_MIN_CONFIDENCE must be between 0.0 and 1.0, got {config.resolver.min_confidence}"
        )
    if config.session.idle_ttl_minutes < 1:
        raise ValueError(
            f"SESSION_IDLE_TTL_MINUTES must be >= 1, got {config.session.idle_ttl_minutes}"
        )
    if config.session.purge_every_turns < 1:
        raise ValueError(
            f"SESSION_PURGE_EVERY_TURNS must be >= 1, got {config.session.purge_every_turns}"
        )
    if config.session.otp_ttl_minutes < 1:
        raise ValueError(
            f"OTP_TTL_MINUTES must be >= 1, got {config.session.otp_ttl_minutes}"
        )
    if config.session.otp_max_attempts < 1:
        raise ValueError(
            f"OTP_MAX_ATTEMPTS must be >= 1, got {config.session.otp_max_attempts}"
        )
    if config.session.max_cached_results < 1:
        raise ValueError(
            f"MAX_CACHED_RESULTS must be >= 1, got {config.session.max_cached_results}"
        )
    if config.notifier.timeout_sec <= 0:
        raise ValueError(
            f"NOTIFIER_TIMEOUT must be > 0, got {config.notifier.timeout_sec}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] [%(sender_id)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, SenderIdFilter) for f in handler.filters):
            handler.addFilter(SenderIdFilter())
    logger.info("Configuration loaded for '%s'", config.business.name)
    return config


# Singleton instance
settings = load_config()
