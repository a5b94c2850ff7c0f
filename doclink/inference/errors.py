"""Inference error taxonomy.

Every failure the pipeline surfaces derives from InferenceError so the relay
and other callers can catch one type and map it to a response. Each class
carries a machine-readable ``code`` (sent in relay error frames) and the HTTP
status the relay uses for non-streaming endpoints.

Rate limiting on a single model is not an exception: it is an outcome the
fallback orchestrator handles. Malformed stream frames are skipped and logged.
"""


class InferenceError(Exception):
    """Base class for inference failures.

    Attributes:
        code: Machine-readable error code.
        message: User-facing message.
        http_status: Status code used when the error is returned as JSON.
        extra: Diagnostic fields (model, upstream status, ...).
    """

    code = "INFERENCE_ERROR"
    http_status = 500
    default_message = "Inference request failed."

    def __init__(self, message: str | None = None, **extra: object) -> None:
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)


class MissingCredentialError(InferenceError):
    """No API key is configured; raised before any network call."""

    code = "MISSING_CREDENTIAL"
    default_message = "API key not configured"


class AllModelsRateLimitedError(InferenceError):
    """Every model in the roster answered HTTP 429."""

    code = "ALL_MODELS_RATE_LIMITED"
    http_status = 429
    default_message = "All models rate limited. Please wait and try again."


class TransportFailureError(InferenceError):
    """Network error or non-429 HTTP error from the upstream API."""

    code = "TRANSPORT_FAILURE"
    http_status = 502
    default_message = "Upstream request failed."

    def __init__(
        self,
        message: str | None = None,
        *,
        upstream_text: str | None = None,
        status_code: int | None = None,
        **extra: object,
    ) -> None:
        super().__init__(message, **extra)
        self.upstream_text = upstream_text
        self.status_code = status_code


class StreamInterruptedError(InferenceError):
    """The connection dropped after the stream had started."""

    code = "STREAM_INTERRUPTED"
    default_message = "Neural link interrupted."


class EmptyResponseError(InferenceError):
    """The upstream call succeeded but carried nothing usable."""

    code = "EMPTY_RESPONSE"
    default_message = "No data received"


_ERRORS_BY_CODE: dict[str, type[InferenceError]] = {
    cls.code: cls
    for cls in (
        InferenceError,
        MissingCredentialError,
        AllModelsRateLimitedError,
        TransportFailureError,
        StreamInterruptedError,
        EmptyResponseError,
    )
}


def error_from_code(code: str | None, message: str | None = None) -> InferenceError:
    """Rebuild an error received over the relay from its code."""
    error_cls = _ERRORS_BY_CODE.get(code or "", InferenceError)
    return error_cls(message)
