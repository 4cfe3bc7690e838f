"""
OpenAI vision estimator for meal photos.

Async client with JSON output mode and rate limiting. Returns the raw,
untrusted payload; normalization happens in the domain.
"""

from __future__ import annotations

import asyncio
import os
import time
from typing import Any, Dict, List, Optional, TYPE_CHECKING

import openai
import structlog
from openai import AsyncOpenAI

from mealwise.domain.meal.estimate.normalizer import extract_json
from mealwise.domain.shared.errors import (
    EstimationError,
    RateLimitError,
    TimeoutError,
)

if TYPE_CHECKING:
    from openai.types.chat import ChatCompletion

logger = structlog.get_logger(__name__)

MEAL_ESTIMATE_PROMPT = """You estimate the nutrition of a meal from a photo.
Reply with a single JSON object and nothing else, shaped like:
{
  "detected_items": [
    {"name": str, "confidence_0_1": number, "estimated_weight_grams": number, "notes": str}
  ],
  "estimated_ranges": {
    "calories_min": number, "calories_max": number,
    "protein_g_min": number, "protein_g_max": number,
    "carbs_g_min": number, "carbs_g_max": number,
    "fat_g_min": number, "fat_g_max": number
  },
  "micronutrient_signals": [
    {"nutrient": str, "signal": "low_appearance|adequate_appearance|uncertain",
     "rationale_short": str}
  ],
  "confidence_overall_0_1": number,
  "detected_brand": str or null,
  "detected_product": str or null,
  "optional_quick_confirm_options": [str]
}
Give ranges, never single values. Prefer a recognizable dish name over a
list of components. At most 4 micronutrient signals. Only fill brand and
product when packaging text is readable. Only send quick confirm options
when unsure."""


class OpenAIVisionEstimator:
    """
    Vision estimator backed by the OpenAI chat completions API.

    Implements IVisionEstimator. Images are passed as ``image_url`` parts
    (data URLs or https URLs); a clarification hint becomes a text part.

    Example:
        >>> async def example():
        ...     async with OpenAIVisionEstimator(api_key="sk-...") as vision:
        ...         raw = await vision.estimate("data:image/jpeg;base64,...")
        ...         return raw
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        max_retries: int = 2,
        timeout: float = 30,
        rpm_limit: int = 60,
        temperature: float = 0.2,
        max_tokens: int = 700,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize estimator.

        Args:
            api_key: OpenAI API key (reads OPENAI_API_KEY if None)
            model: Vision-capable chat model
            max_retries: SDK-level retry attempts
            timeout: Request timeout in seconds
            rpm_limit: Requests per minute limit
            temperature: Sampling temperature
            max_tokens: Max tokens in the reply
            client: Optional pre-configured AsyncOpenAI client (for testing)
        """
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.model = model
        self.max_retries = max_retries
        self.timeout = timeout
        self.rpm_limit = rpm_limit
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client: Optional[AsyncOpenAI] = client

        self._request_times: List[float] = []
        self._lock = asyncio.Lock()

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(self.api_key)

    async def __aenter__(self) -> OpenAIVisionEstimator:
        """Async context manager entry."""
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        if self._client:
            await self._client.close()
            self._client = None

    def _ensure_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise EstimationError("OPENAI_API_KEY not configured")
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=self.max_retries,
            )
        return self._client

    async def _rate_limit(self) -> None:
        """Keep requests within rpm_limit over a sliding minute."""
        async with self._lock:
            now = time.time()
            cutoff = now - 60.0
            self._request_times = [t for t in self._request_times if t > cutoff]

            if len(self._request_times) >= self.rpm_limit:
                wait_time = 60.0 - (now - self._request_times[0])
                if wait_time > 0:
                    await asyncio.sleep(wait_time)
                    now = time.time()
                    cutoff = now - 60.0
                    self._request_times = [t for t in self._request_times if t > cutoff]

            self._request_times.append(now)

    @staticmethod
    def build_messages(
        image: str,
        secondary_image: Optional[str] = None,
        hint: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Chat messages for one estimate request."""
        content: List[Dict[str, Any]] = [
            {"type": "text", "text": "Estimate this meal."},
        ]
        if hint:
            content.append({"type": "text", "text": f"Clarification: {hint}."})
        content.append({"type": "image_url", "image_url": {"url": image}})
        if secondary_image:
            content.append({"type": "image_url", "image_url": {"url": secondary_image}})

        return [
            {"role": "system", "content": MEAL_ESTIMATE_PROMPT},
            {"role": "user", "content": content},
        ]

    async def estimate(
        self,
        image: str,
        secondary_image: Optional[str] = None,
        hint: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Ask the model for a raw estimate.

        Returns:
            The JSON object found in the reply, or None when the reply has
            no parseable object

        Raises:
            EstimationError: If the key is missing or the API call fails
            RateLimitError: If the provider rate limits the request
            TimeoutError: If the request times out
        """
        client = self._ensure_client()
        await self._rate_limit()

        start_time = time.time()
        try:
            completion: ChatCompletion = await client.chat.completions.create(
                model=self.model,
                messages=self.build_messages(image, secondary_image, hint),  # type: ignore[arg-type]
                response_format={"type": "json_object"},
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except openai.APITimeoutError as e:
            raise TimeoutError("OpenAI vision request timed out") from e
        except openai.RateLimitError as e:
            raise RateLimitError("OpenAI rate limit exceeded") from e
        except openai.APIError as e:
            raise EstimationError(f"OpenAI vision request failed: {e}") from e

        content = completion.choices[0].message.content if completion.choices else None
        logger.info(
            "OpenAI vision completion",
            model=self.model,
            time_ms=round((time.time() - start_time) * 1000, 2),
            total_tokens=completion.usage.total_tokens if completion.usage else 0,
        )

        data = extract_json(content)
        if data is None:
            logger.warning("OpenAI reply had no JSON object", model=self.model)
        return data
