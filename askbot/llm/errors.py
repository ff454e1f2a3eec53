from __future__ import annotations

from typing import Tuple

import httpx
from ollama import ResponseError


class LLMError(Exception):
    """Base error for LLM-related failures."""


class LLMRateLimitError(LLMError):
    pass


class LLMAuthError(LLMError):
    pass


class LLMNotFoundError(LLMError):
    pass


class LLMForbiddenError(LLMError):
    pass


class LLMConnectionError(LLMError):
    pass


class LLMToolError(LLMError):
    pass


class InvalidToolError(LLMToolError):
    """Raised when a tool without a name, schema or execute method is registered."""


_STATUS_ERRORS: dict[int, type[LLMError]] = {
    401: LLMAuthError,
    403: LLMForbiddenError,
    404: LLMNotFoundError,
    429: LLMRateLimitError,
}


def wrap_ollama_error(error: Exception) -> LLMError:
    """
    Translate an exception raised by the ollama client into the LLMError hierarchy.
    The original exception is kept as __cause__ by the caller (`raise ... from error`).
    """
    if isinstance(error, LLMError):
        return error
    if isinstance(error, ResponseError):
        cls = _STATUS_ERRORS.get(error.status_code, LLMError)
        return cls(f"{error.status_code}: {error.error}")
    if isinstance(error, (ConnectionError, TimeoutError, httpx.TransportError)):
        return LLMConnectionError(str(error) or type(error).__name__)
    return LLMError(str(error) or type(error).__name__)


def parse_error_message(error: Exception) -> str:
    """
    Map raw exceptions into short, human-readable messages.
    Used for admin notifications and logs.
    """
    s, t = str(error), type(error).__name__
    if "429" in s or isinstance(error, LLMRateLimitError):
        return "⚠️ Rate Limited: the model server is temporarily overloaded. Please retry shortly."
    if "401" in s or "Unauthorized" in s or isinstance(error, LLMAuthError):
        return "❌ Authentication Error: Invalid API key or credentials."
    if "404" in s or isinstance(error, LLMNotFoundError):
        return "❌ Not Found: The requested model or resource was not found."
    if "403" in s or isinstance(error, LLMForbiddenError):
        return "❌ Forbidden: You don't have permission to access this resource."
    if "Connection" in t or "Timeout" in t or "ECONNREFUSED" in s or "ETIMEDOUT" in s:
        return "❌ Connection Error: Unable to connect to the Ollama server."
    return f"❌ {t}: {s.split(chr(10))[0][:100]}"


def format_user_friendly_error(error: Exception) -> str:
    """
    Short, safe error message suitable for end users.
    """
    s, t = str(error), type(error).__name__
    if "429" in s or isinstance(error, LLMRateLimitError):
        return "The AI service is busy right now. Please try again in a moment."
    if "404" in s or isinstance(error, LLMNotFoundError):
        return "The configured AI model could not be found."
    if "Connection" in t or "Timeout" in t or "ECONNREFUSED" in s or "ETIMEDOUT" in s:
        return "AI service is currently unavailable. Please try again later."
    return "Failed to get AI response. Please try again later."


def error_messages(error: Exception) -> Tuple[str, str]:
    """
    Convenience helper returning (admin_message, user_message).
    """
    return parse_error_message(error), format_user_friendly_error(error)
