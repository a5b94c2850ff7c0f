"""Inference configuration with environment variable loading.

Pydantic-based configuration for the Gemini inference client and the relay.
"""

import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from doclink.inference.roster import DEFAULT_FALLBACK_MODELS, DEFAULT_PRIMARY_MODEL

# Load environment variables from .env file
load_dotenv()

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_SPEECH_MODEL = "gemini-2.5-flash-preview-tts"


def _env_api_key() -> str:
    # The relay reads GEMINI_API_KEY; direct-call clients may ship their own key.
    return os.getenv("GEMINI_API_KEY") or os.getenv("DOCLINK_CLIENT_API_KEY", "")


def _split_csv(raw: str) -> list[str]:
    return [name.strip() for name in raw.split(",") if name.strip()]


def _env_fallback_models() -> list[str]:
    raw = os.getenv("GEMINI_FALLBACK_MODELS")
    if raw is None:
        return list(DEFAULT_FALLBACK_MODELS)
    return _split_csv(raw)


class InferenceConfig(BaseModel):
    """Configuration for the inference client.

    An empty API key is allowed here so the relay can still start and report
    the missing credential per request.

    Attributes:
        api_key: Gemini API key.
        base_url: Provider host.
        api_version: REST API version path segment.
        primary_model: First model tried for chat and analysis.
        fallback_models: Models tried in order when the previous one is rate limited.
        temperature: Sampling temperature for chat answers.
        timeout: HTTP timeout in seconds.
        speech_model: Model used for speech synthesis.
        speech_voice: Prebuilt voice name for speech synthesis.
        transport_mode: ``direct`` calls Gemini, ``relay`` calls a doclink relay.
        relay_url: Base URL of the relay when ``transport_mode`` is ``relay``.
        max_document_bytes: Upload size limit.
        cors_origins: Browser origins allowed to call the relay.
    """

    model_config = ConfigDict(validate_default=True)

    api_key: str = Field(
        default_factory=_env_api_key,
        description="API key for the Gemini API",
    )
    base_url: str = Field(
        default_factory=lambda: os.getenv("GEMINI_BASE_URL", DEFAULT_BASE_URL),
        description="Provider host",
    )
    api_version: str = Field(default="v1beta", min_length=1)
    primary_model: str = Field(
        default_factory=lambda: os.getenv("GEMINI_MODEL", DEFAULT_PRIMARY_MODEL),
        min_length=1,
        description="Primary model identifier",
    )
    fallback_models: list[str] = Field(
        default_factory=_env_fallback_models,
        description="Fallback model identifiers, in order",
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for chat answers",
    )
    timeout: float = Field(
        default_factory=lambda: float(os.getenv("DOCLINK_HTTP_TIMEOUT", "120")),
        gt=0,
        description="HTTP timeout in seconds",
    )
    speech_model: str = Field(
        default_factory=lambda: os.getenv("GEMINI_SPEECH_MODEL", DEFAULT_SPEECH_MODEL),
        min_length=1,
    )
    speech_voice: str = Field(default="Kore", min_length=1)
    transport_mode: Literal["direct", "relay"] = Field(
        default_factory=lambda: os.getenv("DOCLINK_TRANSPORT", "direct"),
        description="Where requests go: the provider directly or a relay",
    )
    relay_url: str = Field(
        default_factory=lambda: os.getenv("DOCLINK_RELAY_URL", "http://localhost:8000"),
        description="Relay base URL",
    )
    max_document_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=1,
        description="Maximum accepted document size",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: _split_csv(os.getenv("DOCLINK_CORS_ORIGINS", "*")),
        description="Origins allowed by the relay CORS policy",
    )

    @field_validator("api_key")
    @classmethod
    def strip_api_key(cls, v: str) -> str:
        """Strip surrounding whitespace from the API key."""
        return v.strip()

    @field_validator("transport_mode", mode="before")
    @classmethod
    def normalize_transport_mode(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("fallback_models", "cors_origins", mode="before")
    @classmethod
    def split_comma_separated(cls, v: str | list[str]) -> list[str]:
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            return _split_csv(v)
        return v

    @field_validator("base_url", "relay_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)


def get_inference_config() -> InferenceConfig:
    """Create inference configuration from environment.

    Returns:
        Configured InferenceConfig instance.
    """
    return InferenceConfig()
