"""Application configuration loading utilities for PressAudit."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError

from .core import (
    APIConfig,
    AppConfig,
    AuditConfig,
    ConfigurationError,
)

PLACEHOLDER_VALUES = {
    "your_serper_api_key_here",
    "your_gemini_api_key_here",
    "changeme",
    "",
}


def _load_env_file(env_file: Optional[str]) -> None:
    """Populate os.environ from a .env file; existing variables win."""

    candidate = Path(env_file or ".env")
    if candidate.exists():
        load_dotenv(candidate, override=False)


def _require(env: Mapping[str, str], key: str) -> str:
    value = env.get(key, "").strip()
    if not value:
        raise ConfigurationError(
            f"Missing required configuration value: {key}",
            config_key=key,
        )
    return value


def _optional(env: Mapping[str, str], key: str) -> Optional[str]:
    value = env.get(key)
    if value is None or not value.strip():
        return None
    return value.strip()


def _parse_int(env: Mapping[str, str], key: str) -> Optional[int]:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"Configuration value for {key} must be an integer",
            config_key=key,
            expected_type="int",
            provided_value=raw,
        ) from exc


def _parse_float(env: Mapping[str, str], key: str) -> Optional[float]:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"Configuration value for {key} must be a float",
            config_key=key,
            expected_type="float",
            provided_value=raw,
        ) from exc


def _build_api_config(env: Mapping[str, str]) -> APIConfig:
    config_kwargs: MutableMapping[str, object] = {
        "serper_api_key": _require(env, "SERPER_API_KEY"),
        "gemini_api_key": _require(env, "GEMINI_API_KEY"),
    }

    model = _optional(env, "GEMINI_MODEL")
    if model:
        config_kwargs["gemini_model"] = model

    max_tokens = _parse_int(env, "GEMINI_MAX_TOKENS")
    if max_tokens is not None:
        config_kwargs["gemini_max_tokens"] = max_tokens

    classifier_temperature = _parse_float(env, "CLASSIFIER_TEMPERATURE")
    if classifier_temperature is not None:
        config_kwargs["classifier_temperature"] = classifier_temperature

    strategy_temperature = _parse_float(env, "STRATEGY_TEMPERATURE")
    if strategy_temperature is not None:
        config_kwargs["strategy_temperature"] = strategy_temperature

    locale = _optional(env, "SEARCH_LOCALE")
    if locale:
        config_kwargs["search_locale"] = locale.lower()

    language = _optional(env, "SEARCH_LANGUAGE")
    if language:
        config_kwargs["search_language"] = language.lower()

    timeout = _parse_float(env, "SEARCH_TIMEOUT")
    if timeout is not None:
        config_kwargs["search_timeout"] = timeout

    return _validated(APIConfig, config_kwargs)


def _build_audit_config(env: Mapping[str, str]) -> AuditConfig:
    config_kwargs: MutableMapping[str, object] = {}

    batch_size = _parse_int(env, "AUDIT_BATCH_SIZE")
    if batch_size is not None:
        config_kwargs["batch_size"] = batch_size

    batch_delay = _parse_float(env, "AUDIT_BATCH_DELAY")
    if batch_delay is not None:
        config_kwargs["batch_delay_seconds"] = batch_delay

    base_url = _optional(env, "BASE_URL")
    if base_url:
        config_kwargs["base_url"] = base_url.rstrip("/")

    return _validated(AuditConfig, config_kwargs)


def _build_app_kwargs(env: Mapping[str, str]) -> MutableMapping[str, object]:
    kwargs: MutableMapping[str, object] = {}

    log_level = _optional(env, "LOG_LEVEL")
    if log_level:
        kwargs["log_level"] = log_level.upper()

    log_file = _optional(env, "LOG_FILE")
    if log_file:
        kwargs["log_file"] = log_file

    return kwargs


def _validated(model, kwargs: Mapping[str, object]):
    try:
        return model(**kwargs)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        key = ".".join(str(part) for part in first.get("loc", ()))
        raise ConfigurationError(
            f"Invalid configuration value for {key}: {first.get('msg')}",
            config_key=key,
            provided_value=first.get("input"),
            cause=exc,
        ) from exc


def validate_app_config(config: AppConfig) -> None:
    """Reject API keys still set to the .env.example placeholders."""

    if config.api.serper_api_key.strip().lower() in PLACEHOLDER_VALUES:
        raise ConfigurationError(
            "Serper API key is using a placeholder value",
            config_key="SERPER_API_KEY",
            provided_value=config.api.serper_api_key,
        )
    if config.api.gemini_api_key.strip().lower() in PLACEHOLDER_VALUES:
        raise ConfigurationError(
            "Gemini API key is using a placeholder value",
            config_key="GEMINI_API_KEY",
            provided_value=config.api.gemini_api_key,
        )


def load_app_config(
    env: Optional[Mapping[str, str]] = None,
    *,
    env_file: Optional[str] = None,
) -> AppConfig:
    """Build an :class:`AppConfig` from ``env`` (defaults to os.environ plus .env)."""

    if env is None:
        _load_env_file(env_file)
        env_mapping = dict(os.environ)
    else:
        env_mapping = dict(env)

    api_config = _build_api_config(env_mapping)
    audit_config = _build_audit_config(env_mapping)
    app_kwargs = _build_app_kwargs(env_mapping)

    config = AppConfig(api=api_config, audit=audit_config, **app_kwargs)
    validate_app_config(config)
    return config


@lru_cache()
def get_app_config(env_file: Optional[str] = None) -> AppConfig:
    """Process-wide config, loaded once per ``env_file``."""

    return load_app_config(env_file=env_file)


def reload_app_config(env_file: Optional[str] = None) -> AppConfig:
    """Drop the cached config and load it again."""

    get_app_config.cache_clear()
    return get_app_config(env_file=env_file)


__all__ = [
    "get_app_config",
    "load_app_config",
    "reload_app_config",
    "validate_app_config",
]
