"""Gemini API client utilities for PressAudit."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from ..core.exceptions import (
    ConfigurationError,
    InvalidCredentialsError,
    LLMAPIError,
    PressAuditError,
    QuotaExceededError,
    RateLimitError,
)
from ..core.models import APIConfig, LLMResponse

LOGGER = logging.getLogger(__name__)


@dataclass
class GeminiClientSettings:
    """Runtime configuration for the Gemini client."""

    api_key: str
    model: str
    temperature: float = 0.7
    top_p: float = 0.95
    top_k: int = 32
    max_output_tokens: int = 1500
    candidate_count: int = 1

    @classmethod
    def from_api_config(cls, config: APIConfig) -> "GeminiClientSettings":
        return cls(
            api_key=config.gemini_api_key,
            model=config.gemini_model,
            max_output_tokens=config.gemini_max_tokens,
        )


class GeminiClient:
    """Thin async wrapper around the Google Generative AI client with error mapping."""

    def __init__(self, settings: GeminiClientSettings) -> None:
        if not settings.api_key or not settings.api_key.strip():
            raise ConfigurationError(
                "Gemini API key is required",
                config_key="GEMINI_API_KEY",
            )
        self._settings = settings
        genai.configure(api_key=settings.api_key)
        self._models: Dict[Optional[str], Any] = {}

    @classmethod
    def from_config(cls, config: APIConfig) -> "GeminiClient":
        return cls(GeminiClientSettings.from_api_config(config))

    @property
    def settings(self) -> GeminiClientSettings:
        return self._settings

    async def generate(
        self,
        prompt: str,
        *,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        json_output: bool = False,
    ) -> LLMResponse:
        if not prompt or not prompt.strip():
            raise ValueError("Prompt cannot be empty")

        contents = [{"role": "user", "parts": [prompt]}]
        generation_config = self._build_generation_config(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            json_output=json_output,
        )
        model = self._get_model(system_instruction)

        start_time = time.perf_counter()
        try:
            response = await model.generate_content_async(
                contents,
                generation_config=generation_config,
            )
        except PressAuditError:
            raise
        except Exception as exc:  # pylint: disable=broad-except
            raise self._wrap_error(exc) from exc

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        return self._build_llm_response(response, elapsed_ms, generation_config["temperature"])

    def _get_model(self, system_instruction: Optional[str]) -> Any:
        model = self._models.get(system_instruction)
        if model is None:
            model = genai.GenerativeModel(
                model_name=self._settings.model,
                system_instruction=system_instruction,
            )
            self._models[system_instruction] = model
        return model

    def _build_generation_config(
        self,
        *,
        temperature: Optional[float],
        max_output_tokens: Optional[int],
        json_output: bool,
    ) -> Dict[str, Any]:
        config: Dict[str, Any] = {
            "temperature": temperature if temperature is not None else self._settings.temperature,
            "top_p": self._settings.top_p,
            "top_k": self._settings.top_k,
            "max_output_tokens": max_output_tokens if max_output_tokens is not None else self._settings.max_output_tokens,
            "candidate_count": self._settings.candidate_count,
        }
        if json_output:
            config["response_mime_type"] = "application/json"
        return config

    def _build_llm_response(self, raw_response: Any, elapsed_ms: float, temperature: float) -> LLMResponse:
        try:
            text = raw_response.text or ""
        except ValueError:
            # Blocked or candidate-less responses raise on ``.text``.
            text = ""

        usage = getattr(raw_response, "usage_metadata", None)
        if usage:
            prompt_tokens = int(getattr(usage, "prompt_token_count", 0) or 0)
            completion_tokens = int(getattr(usage, "candidates_token_count", 0) or 0)
            total_tokens = int(getattr(usage, "total_token_count", 0) or prompt_tokens + completion_tokens)
        else:
            prompt_tokens = completion_tokens = total_tokens = 0

        response = LLMResponse(
            text=text,
            model=self._settings.model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens,
            generation_time_ms=elapsed_ms,
            temperature=temperature,
        )

        LOGGER.info(
            "Gemini response generated",
            extra={
                "model": response.model,
                "prompt_tokens": response.prompt_tokens,
                "completion_tokens": response.completion_tokens,
                "generation_time_ms": round(response.generation_time_ms, 1),
            },
        )
        return response

    def _wrap_error(self, error: Exception) -> PressAuditError:
        status_code = getattr(error, "code", None)
        if not isinstance(status_code, int):
            status_code = None
        message = str(error) or error.__class__.__name__
        common: Dict[str, Any] = {
            "service": "gemini",
            "status_code": status_code,
            "cause": error,
        }

        if isinstance(error, (google_exceptions.Unauthorized, google_exceptions.Forbidden)):
            return InvalidCredentialsError(message, **common)
        if isinstance(error, google_exceptions.InvalidArgument) and "api key" in message.lower():
            return InvalidCredentialsError(message, **common)
        if isinstance(error, google_exceptions.ResourceExhausted):
            return QuotaExceededError(message, **common)
        if isinstance(error, google_exceptions.TooManyRequests):
            return RateLimitError(message, **common)
        return LLMAPIError(message, model=self._settings.model, **common)


__all__ = ["GeminiClient", "GeminiClientSettings"]
