"""Shared Gemini client used as the default upstream transport."""

from __future__ import annotations

import logging
import os

from google import genai
from google.genai import types

from .config import get_config

logger = logging.getLogger(__name__)


class GeminiClient:
    """Process-wide Gemini client pool (one client per API key)."""

    _clients: dict[str, genai.Client] = {}

    @classmethod
    def get(cls, api_key: str | None = None) -> genai.Client:
        """Return (or create) the shared client for *api_key*."""
        key = api_key or get_config().gemini_api_key or os.getenv("GEMINI_API_KEY", "")
        if not key:
            raise ValueError("No Gemini API key — set GEMINI_API_KEY or pass api_key explicitly")
        if key not in cls._clients:
            cls._clients[key] = genai.Client(api_key=key)
            logger.info("Created Gemini client (key …%s)", key[-4:])
        return cls._clients[key]

    @classmethod
    async def generate_json(
        cls,
        user_content: str,
        *,
        system_instruction: str,
        max_output_tokens: int,
        temperature: float,
        model: str | None = None,
    ) -> str:
        """Run one structured-output generation and return the raw response text.

        No retry happens here; the caller owns timeout and backoff.

        Args:
            user_content: Rendered product prompt.
            system_instruction: Analysis instructions for the model.
            max_output_tokens: Output token ceiling (cost control).
            temperature: Sampling temperature.
            model: Override model ID (defaults to config's default_model).

        Returns:
            The concatenated text parts of the first candidate ("" if none).
        """
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            response_mime_type="application/json",
        )
        response = await cls.get().aio.models.generate_content(
            model=model or get_config().default_model,
            contents=user_content,
            config=config,
        )
        content = response.candidates[0].content if response.candidates else None
        parts = (content.parts if content else None) or []
        text_parts = [p.text for p in parts if p.text and not getattr(p, "thought", False)]
        return "\n".join(text_parts) if text_parts else (response.text or "")

    @classmethod
    async def close_all(cls) -> int:
        """Shut down all shared clients. Returns count closed."""
        count = 0
        for client in list(cls._clients.values()):
            try:
                await client.aio.aclose()
            except Exception:
                logger.debug("Async Gemini client close failed", exc_info=True)
            try:
                client.close()
            except Exception:
                logger.debug("Gemini client close failed", exc_info=True)
            count += 1
        cls._clients.clear()
        logger.info("Closed %d Gemini client(s)", count)
        return count
