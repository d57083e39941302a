"""Provider error taxonomy.

Adapters map SDK-specific exceptions onto these classes so the agents can
handle provider failures without knowing which vendor is configured.
"""

from types import ModuleType

__all__ = [
    "classify_sdk_error",
    "ProviderError",
    "RateLimitError",
    "AuthenticationError",
    "ModelNotFoundError",
    "ContentFilterError",
    "ContextLengthError",
    "TransientError",
]


class ProviderError(Exception):
    """A model call failed for a reason other than bad output."""


class RateLimitError(ProviderError):
    """The vendor throttled us.

    Attributes:
        retry_after_seconds: Delay the vendor asked for, when it sent one.
    """

    def __init__(self, message: str, retry_after_seconds: float | None = None):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class AuthenticationError(ProviderError):
    """The vendor rejected the API key. Retrying cannot help."""


class ModelNotFoundError(ProviderError):
    """A routed model name is unknown to the vendor or to this key."""


class ContentFilterError(ProviderError):
    """The vendor's safety filter refused the prompt."""


class ContextLengthError(ProviderError):
    """Prompt plus requested output exceeds the model's window."""


class TransientError(ProviderError):
    """Connection failure or vendor 5xx (timeouts included). Worth another attempt."""


# =============================================================================
# SDK error mapping
# =============================================================================


def _retry_after(error: Exception) -> float | None:
    response = getattr(error, "response", None)
    if response is None:
        return None
    header = response.headers.get("retry-after")
    try:
        return float(header) if header is not None else None
    except ValueError:
        return None


def classify_sdk_error(
    error: Exception,
    sdk: ModuleType,
    context_markers: tuple[str, ...] = ("context_length",),
) -> ProviderError:
    """Map a vendor SDK exception onto the taxonomy above.

    The OpenAI and Anthropic SDKs expose the same exception names, so one
    mapping serves both; ``sdk`` is the imported SDK module.

    Args:
        error: Exception raised by the SDK.
        sdk: The ``openai`` or ``anthropic`` module.
        context_markers: Lower-case fragments that identify a context-window
            overflow in a bad-request message.

    Returns:
        A ProviderError instance. The caller raises it.
    """
    message = str(error)

    if isinstance(error, sdk.RateLimitError):
        return RateLimitError(message, retry_after_seconds=_retry_after(error))
    if isinstance(error, sdk.AuthenticationError):
        return AuthenticationError(message)
    if isinstance(error, sdk.NotFoundError):
        return ModelNotFoundError(message)
    if isinstance(error, sdk.BadRequestError):
        lowered = message.lower()
        if any(marker in lowered for marker in context_markers):
            return ContextLengthError(message)
        if "content_policy" in lowered:
            return ContentFilterError(message)
        return ProviderError(message)
    # Timeouts subclass APIConnectionError in both SDKs
    if isinstance(error, (sdk.APIConnectionError, sdk.InternalServerError)):
        return TransientError(message)
    return ProviderError(message)
