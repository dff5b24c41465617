"""Upstream analysis call — timeout, bounded retry, and response parsing.

``UpstreamCaller.call`` never raises for upstream problems. It returns an
``UpstreamOutcome`` that holds either the parsed ``AnalysisResult`` or a
``FailureKind`` with the last error.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, Field

from .client import GeminiClient
from .errors import FailureKind
from .models.analysis import AnalysisResult
from .models.content import ReviewContext
from .retry import RetryFailed, with_retry
from .transform import MalformedResponseError, build_analysis

logger = logging.getLogger(__name__)


class UpstreamRequest(BaseModel):
    """Opaque request contract for the analysis model."""

    system_instructions: str
    user_content: str
    max_output_tokens: int = Field(default=4000, ge=1)
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    desired_format: Literal["structured"] = "structured"


Transport = Callable[[UpstreamRequest], Awaitable[str]]


async def gemini_transport(request: UpstreamRequest) -> str:
    """Default transport — one JSON-mode generation on the shared Gemini client."""
    return await GeminiClient.generate_json(
        request.user_content,
        system_instruction=request.system_instructions,
        max_output_tokens=request.max_output_tokens,
        temperature=request.temperature,
    )


@dataclass(frozen=True)
class UpstreamOutcome:
    """Tagged result of an upstream call: ``result`` xor ``failure``."""

    result: AnalysisResult | None = None
    failure: FailureKind | None = None
    error: str = ""
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.result is not None

    @classmethod
    def success(cls, result: AnalysisResult, attempts: int) -> UpstreamOutcome:
        return cls(result=result, attempts=attempts)

    @classmethod
    def failed(cls, kind: FailureKind, error: str, attempts: int) -> UpstreamOutcome:
        return cls(failure=kind, error=error, attempts=attempts)


class UpstreamCaller:
    """Runs the analysis request against the model with retry and parsing.

    Args:
        transport: Async callable that performs one attempt and returns raw text.
        timeout: Seconds per attempt.
        max_attempts: Total attempts including the first.
        base_delay: Backoff base; retry *n* waits ``base_delay * 2**n`` seconds.
        max_delay: Cap on a single backoff delay.
    """

    def __init__(
        self,
        transport: Transport = gemini_transport,
        *,
        timeout: float = 30.0,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
    ) -> None:
        self._transport = transport
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.calls = 0

    async def call(
        self,
        request: UpstreamRequest,
        reviews: ReviewContext | None = None,
    ) -> UpstreamOutcome:
        """Execute *request* and parse the response into an ``AnalysisResult``.

        Malformed output is terminal on first sight; it is never retried.
        """
        attempts = 0

        async def _attempt() -> str:
            nonlocal attempts
            attempts += 1
            self.calls += 1
            return await self._transport(request)

        try:
            raw = await with_retry(
                _attempt,
                max_attempts=self.max_attempts,
                base_delay=self.base_delay,
                max_delay=self.max_delay,
                timeout=self.timeout,
            )
        except RetryFailed as exc:
            logger.error(
                "Upstream call failed (%s) after %d attempt(s): %s",
                exc.kind.value, exc.attempts, exc.last_error,
            )
            return UpstreamOutcome.failed(exc.kind, str(exc.last_error), exc.attempts)

        try:
            if not raw or not raw.strip():
                raise MalformedResponseError("Empty response received")
            result = build_analysis(json.loads(raw), reviews)
        except ValueError as exc:  # JSONDecodeError, MalformedResponseError, pydantic ValidationError
            logger.error("Upstream returned malformed output: %s", exc)
            return UpstreamOutcome.failed(FailureKind.MALFORMED_RESPONSE, str(exc), attempts)

        return UpstreamOutcome.success(result, attempts)
