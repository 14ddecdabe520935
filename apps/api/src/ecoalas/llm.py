from __future__ import annotations

from enum import Enum
import logging
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)

VALID_MODELS = (
    "llama3-8b-8192",
    "llama3-70b-8192",
    "gemma2-9b-it",
    "llama-3.2-90b-vision-preview",
)

_UNKNOWN_MODEL_CODES = {"model_decommissioned", "model_not_found"}


class LLMErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    UNKNOWN_MODEL = "unknown_model"
    OTHER = "other"


class LLMClientError(RuntimeError):
    def __init__(self, message: str, *, kind: LLMErrorKind = LLMErrorKind.OTHER) -> None:
        super().__init__(message)
        self.kind = kind


class LLMClient(Protocol):
    def complete(
        self,
        *,
        messages: list[dict[str, str]],
        model: str,
        temperature: float,
        max_tokens: int,
        top_p: float,
    ) -> str: ...


def classify_error_message(message: str) -> LLMErrorKind:
    """Best-effort classification for errors that carry no structured code."""
    lowered = message.lower()
    if "model_decommissioned" in lowered or "model_not_found" in lowered:
        return LLMErrorKind.UNKNOWN_MODEL
    if "401" in lowered or "unauthorized" in lowered or "invalid api key" in lowered:
        return LLMErrorKind.UNAUTHORIZED
    if "rate limit" in lowered or "rate_limit" in lowered or "429" in lowered:
        return LLMErrorKind.RATE_LIMITED
    return LLMErrorKind.OTHER


def _error_details(response: httpx.Response) -> tuple[str | None, str]:
    try:
        payload = response.json()
    except ValueError:
        return None, response.text

    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        return None, response.text

    code = error.get("code")
    message = error.get("message")
    return (
        code if isinstance(code, str) else None,
        message if isinstance(message, str) else response.text,
    )


def _classify_status_error(exc: httpx.HTTPStatusError) -> LLMClientError:
    response = exc.response
    code, message = _error_details(response)
    detail = f"{response.status_code} {message}".strip()

    if code in _UNKNOWN_MODEL_CODES or response.status_code == 404:
        kind = LLMErrorKind.UNKNOWN_MODEL
    elif response.status_code in (401, 403):
        kind = LLMErrorKind.UNAUTHORIZED
    elif response.status_code == 429:
        kind = LLMErrorKind.RATE_LIMITED
    else:
        kind = classify_error_message(f"{code or ''} {detail}")

    return LLMClientError(detail, kind=kind)


class GroqChatClient:
    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds

    def complete(
        self,
        *,
        messages: list[dict[str, str]],
        model: str,
        temperature: float,
        max_tokens: int,
        top_p: float,
    ) -> str:
        try:
            response = httpx.post(
                f"{self._base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self._api_key}"},
                json={
                    "model": model,
                    "messages": messages,
                    "temperature": temperature,
                    "max_tokens": max_tokens,
                    "top_p": top_p,
                },
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise _classify_status_error(exc) from exc
        except httpx.HTTPError as exc:
            raise LLMClientError(str(exc), kind=classify_error_message(str(exc))) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise LLMClientError(f"Invalid chat completion payload: {exc}") from exc

        choices = payload.get("choices") if isinstance(payload, dict) else None
        if not isinstance(choices, list) or not choices:
            raise LLMClientError("Invalid chat completion payload: missing choices")

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if content is None:
            return ""
        if not isinstance(content, str):
            raise LLMClientError("Invalid chat completion payload: content must be a string")

        return content


def build_llm_client(
    *,
    api_key: str | None,
    base_url: str,
    model: str,
    timeout_seconds: float,
) -> LLMClient | None:
    if model not in VALID_MODELS:
        logger.error(
            "Configured model %r is not a known Groq model (valid: %s)",
            model,
            ", ".join(VALID_MODELS),
        )
    if not api_key:
        logger.error("GROQ_API_KEY is not configured; answers will report a configuration error")
        return None
    return GroqChatClient(base_url=base_url, api_key=api_key, timeout_seconds=timeout_seconds)
