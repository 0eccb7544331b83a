# ========================================
# services/gemini_service.py - Gemini integration with retry
# ========================================

import asyncio
from typing import Any, Awaitable, Callable, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from interview_coach.config import get_settings
from interview_coach.utils.errors import (
    NonRetriableUpstreamError,
    RetriesExhaustedError,
    TransientUpstreamError,
)
from interview_coach.utils.logger import get_logger

logger = get_logger("GeminiService")

# Server overload / internal error. Everything else is the caller's fault.
TRANSIENT_STATUS_CODES = frozenset({500, 503})


def classify_error(error: Exception) -> Exception:
    """Map an SDK exception onto the transient / non-retriable split."""
    if isinstance(error, (google_exceptions.ServiceUnavailable, google_exceptions.InternalServerError)):
        return TransientUpstreamError(str(error), status_code=getattr(error, "code", None))
    status = getattr(error, "code", None) or getattr(error, "status", None)
    if status in TRANSIENT_STATUS_CODES:
        return TransientUpstreamError(str(error), status_code=status)
    return NonRetriableUpstreamError(str(error))


def _response_text(response: Any) -> str:
    try:
        text = response.text
    except ValueError:
        # .text raises when the candidate was blocked or empty
        candidates = getattr(response, "candidates", None) or []
        finish = getattr(candidates[0], "finish_reason", None) if candidates else None
        raise NonRetriableUpstreamError(f"Gemini returned no text (finish_reason={finish})")
    if not text or not text.strip():
        raise NonRetriableUpstreamError("Gemini returned an empty response")
    return text


class GeminiService:
    """
    Text generation with bounded exponential backoff.

    Each call to generate_text gets its own retry budget: up to max_retries
    attempts, sleeping backoff_base ** attempt seconds after each transient
    failure (2s, then 4s with the defaults).
    """

    def __init__(
        self,
        model: Any = None,
        max_retries: Optional[int] = None,
        backoff_base: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        settings = get_settings()
        self.max_retries = max_retries if max_retries is not None else settings.llm_max_retries
        self.backoff_base = backoff_base if backoff_base is not None else settings.llm_backoff_base
        self._sleep = sleep
        self.generation_config = {
            "temperature": settings.llm_temperature,
            "max_output_tokens": settings.llm_max_output_tokens,
        }

        if model is not None:
            self.model = model
        elif settings.llm_api_key:
            genai.configure(api_key=settings.llm_api_key)
            self.model = genai.GenerativeModel(settings.llm_model)
            logger.info(f"Gemini service initialized with model {settings.llm_model}")
        else:
            logger.error("Gemini API key not configured")
            self.model = None

    async def generate_text(self, prompt: str) -> str:
        """Generate text, retrying transient failures only."""
        if not self.model:
            raise NonRetriableUpstreamError("LLM service not configured")

        attempt = 0
        while True:
            logger.debug(f"Attempt {attempt + 1} to generate content...")
            try:
                response = await self.model.generate_content_async(
                    prompt, generation_config=self.generation_config
                )
                return _response_text(response)
            except NonRetriableUpstreamError:
                raise
            except Exception as e:
                error = classify_error(e)
                if not isinstance(error, TransientUpstreamError):
                    logger.error(f"Non-retriable Gemini error: {e}")
                    raise error from e

                attempt += 1
                if attempt >= self.max_retries:
                    logger.error(f"Max retries ({self.max_retries}) reached. Failing.")
                    raise RetriesExhaustedError(attempt, e) from e

                delay = self.backoff_base ** attempt
                logger.warning(f"Gemini overloaded ({error.status_code}). Retrying in {delay:g}s...")
                await self._sleep(delay)
