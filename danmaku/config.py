"""Configuration loader — reads config.yaml, validates with Pydantic.

Sections: processing limits, the chat model, the image backend and the
speech backend. Backend names must exist in the registry in danmaku/tools.
Secrets stay in the environment; the config only names the variables.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"


class ProcessingConfig(BaseModel):
    max_danmaku_length: int = Field(default=200, ge=1)  # characters


class LLMConfig(BaseModel):
    """Chat model used for both intent analysis and replies."""

    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 1024
    streamer_name: str = "小助手"


class ImageConfig(BaseModel):
    backend: str = "openai"
    base_url: str = "https://api.openai.com/v1"
    api_key_env: str = "IMAGE_API_KEY"
    model: str = "dall-e-3"
    size: str = "1024x1024"
    timeout: float = 120.0
    style_keywords: list[str] = ["high quality", "detailed", "vibrant colors"]

    @property
    def api_key(self) -> str | None:
        return os.environ.get(self.api_key_env)


class TTSConfig(BaseModel):
    backend: str = "openai"
    base_url: str = "https://api.openai.com/v1"
    api_key_env: str = "TTS_API_KEY"
    model: str = "tts-1"
    voice: str = "alloy"
    response_format: str = "mp3"
    timeout: float = 60.0
    max_chars: int = Field(default=500, ge=1)

    @property
    def api_key(self) -> str | None:
        return os.environ.get(self.api_key_env)


class Settings(BaseModel):
    """Top-level service configuration."""

    processing: ProcessingConfig = ProcessingConfig()
    llm: LLMConfig = LLMConfig()
    image: ImageConfig = ImageConfig()
    tts: TTSConfig = TTSConfig()

    # Auth & CORS
    api_key: str | None = None
    allowed_origins: list[str] = ["*"]

    @model_validator(mode="after")
    def validate_backends(self) -> Settings:
        from danmaku.tools import list_image_backends, list_speech_backends

        if self.image.backend not in list_image_backends():
            raise ValueError(
                f"Unknown image backend '{self.image.backend}'. "
                f"Available: {sorted(list_image_backends())}"
            )
        if self.tts.backend not in list_speech_backends():
            raise ValueError(
                f"Unknown tts backend '{self.tts.backend}'. "
                f"Available: {sorted(list_speech_backends())}"
            )
        return self

    def redacted(self) -> dict:
        """Config as JSON-safe dict with the API key masked."""
        data = self.model_dump()
        if data.get("api_key"):
            data["api_key"] = "***"
        return data


# ---------------------------------------------------------------------------
# Module-level config cache
# ---------------------------------------------------------------------------

_settings: Settings | None = None
_config_path: str = DEFAULT_CONFIG_PATH


def load_config(path: str | None = None) -> Settings:
    """Read the config file from disk, validate, and cache.

    Without ``path`` the DANMAKU_CONFIG environment variable is used,
    falling back to ./config.yaml. A missing file yields the defaults.
    """
    global _settings, _config_path
    _config_path = path or os.environ.get("DANMAKU_CONFIG", DEFAULT_CONFIG_PATH)

    config_file = Path(_config_path)
    if config_file.exists():
        raw = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
        _settings = Settings(**raw)
    else:
        logger.warning(f"Config file not found: {config_file.resolve()}, using defaults")
        _settings = Settings()

    logger.info(
        f"Loaded config: max_danmaku_length={_settings.processing.max_danmaku_length}, "
        f"image={_settings.image.backend}, tts={_settings.tts.backend}"
    )
    return _settings


def get_config() -> Settings:
    """Return cached config. Raises if not yet loaded."""
    if _settings is None:
        raise RuntimeError("Config not loaded — call load_config() first")
    return _settings


def reload_config() -> Settings:
    """Re-read config from disk. Called by the /reload endpoint."""
    logger.info(f"Reloading config from {_config_path}")
    return load_config(_config_path)
