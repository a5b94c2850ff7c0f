"""Resilient streaming inference against the Gemini API.

Responsibilities:
    - Model roster with ordered fallbacks
    - Pure request construction for chat, analysis, and speech
    - Direct and relayed HTTP transports with outcome classification
    - Fallback orchestration on rate limits
    - SSE decoding into incremental text deltas

Maintains clean separation from the HTTP layer of the relay.
"""

from doclink.inference.config import InferenceConfig, get_inference_config
from doclink.inference.errors import (
    AllModelsRateLimitedError,
    EmptyResponseError,
    InferenceError,
    MissingCredentialError,
    StreamInterruptedError,
    TransportFailureError,
)
from doclink.inference.fallback import FallbackOrchestrator
from doclink.inference.roster import ModelRoster
from doclink.inference.service import (
    InferenceService,
    build_inference_service,
    get_inference_service,
)
from doclink.inference.transport import GeminiTransport, RelayTransport, Transport

__all__ = [
    "AllModelsRateLimitedError",
    "EmptyResponseError",
    "FallbackOrchestrator",
    "GeminiTransport",
    "InferenceConfig",
    "InferenceError",
    "InferenceService",
    "MissingCredentialError",
    "ModelRoster",
    "RelayTransport",
    "StreamInterruptedError",
    "Transport",
    "TransportFailureError",
    "build_inference_service",
    "get_inference_config",
    "get_inference_service",
]
