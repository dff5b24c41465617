"""Analysis request orchestration.

Pipeline per request::

    validate → quota check → enrich → fingerprint → cache lookup
        hit  → done (provenance "cached")
        miss → upstream → transform → cache store → done (provenance "fresh")

Validation failures, quota denials and terminal upstream failures all end in
a fallback result. Quota consumed by a request is never refunded, even when
the request later fails.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from pydantic import ValidationError

from .errors import FailureKind
from .fallback import fallback_analysis
from .fingerprint import fingerprint
from .models.analysis import AnalysisOutcome, QuotaSnapshot
from .models.content import ContentRecord
from .prompts.analysis import build_user_prompt, system_instructions_for
from .quota import QuotaPolicy, QuotaStatus, QuotaTracker
from .result_cache import ResultCache
from .upstream import UpstreamCaller, UpstreamRequest

logger = logging.getLogger(__name__)

Enricher = Callable[[ContentRecord], Awaitable[ContentRecord]]
RecordInput = ContentRecord | Mapping[str, Any]


def _raw_title(record: RecordInput) -> str:
    if isinstance(record, ContentRecord):
        return record.title
    title = record.get("title") if isinstance(record, Mapping) else None
    return title if isinstance(title, str) else ""


class AnalysisOrchestrator:
    """Composes cache, quota trackers and upstream caller into ``analyze``.

    All collaborators are injected so each test (or process) owns its state.

    Args:
        cache: Shared result cache.
        quotas: One tracker per ``QuotaPolicy``.
        upstream: Caller that performs the model request.
        max_output_tokens: Output token ceiling sent upstream.
        temperature: Sampling temperature sent upstream.
        bulk_concurrency: Parallel pipelines inside ``analyze_batch``.
    """

    def __init__(
        self,
        cache: ResultCache,
        quotas: Mapping[QuotaPolicy, QuotaTracker],
        upstream: UpstreamCaller,
        *,
        max_output_tokens: int = 4000,
        temperature: float = 0.1,
        bulk_concurrency: int = 3,
    ) -> None:
        missing = [p.value for p in QuotaPolicy if p not in quotas]
        if missing:
            raise ValueError(f"Missing quota tracker(s) for: {', '.join(missing)}")
        self.cache = cache
        self.quotas = dict(quotas)
        self.upstream = upstream
        self.max_output_tokens = max_output_tokens
        self.temperature = temperature
        self.bulk_concurrency = max(1, bulk_concurrency)

    async def analyze(
        self,
        record: RecordInput,
        tenant_id: str,
        policy: QuotaPolicy | str = QuotaPolicy.STANDARD,
        *,
        enricher: Enricher | None = None,
    ) -> AnalysisOutcome:
        """Analyze one product for *tenant_id* under *policy*.

        Returns:
            A fresh or cached analysis, or a fallback carrying ``error_kind``
            (and ``rate_limited`` / ``quota`` on quota denial).
        """
        policy = QuotaPolicy(policy)
        validated = self._validate(record, tenant_id)
        if isinstance(validated, AnalysisOutcome):
            return validated

        status = self.quotas[policy].check(tenant_id)
        if not status.allowed:
            return self._rate_limited(validated.title, tenant_id, status)

        return await self._run(validated, tenant_id, enricher)

    async def analyze_batch(
        self,
        records: list[RecordInput],
        tenant_id: str,
        *,
        enricher: Enricher | None = None,
    ) -> list[AnalysisOutcome]:
        """Analyze several products as one bulk request.

        Items are validated first; a batch with no valid item returns its
        validation fallbacks without touching quota. Otherwise the whole
        batch consumes a single unit of the bulk policy and standard quota is
        untouched. Valid items run concurrently, bounded by
        ``bulk_concurrency``, and results keep the input order.
        """
        validated = [self._validate(r, tenant_id) for r in records]
        if all(isinstance(v, AnalysisOutcome) for v in validated):
            return validated

        status = self.quotas[QuotaPolicy.BULK].check(tenant_id)
        if not status.allowed:
            return [
                v if isinstance(v, AnalysisOutcome) else self._rate_limited(v.title, tenant_id, status)
                for v in validated
            ]

        semaphore = asyncio.Semaphore(self.bulk_concurrency)

        async def _one(item: ContentRecord | AnalysisOutcome) -> AnalysisOutcome:
            if isinstance(item, AnalysisOutcome):
                return item
            async with semaphore:
                return await self._run(item, tenant_id, enricher)

        return list(await asyncio.gather(*(_one(v) for v in validated)))

    def _validate(self, record: RecordInput, tenant_id: str) -> ContentRecord | AnalysisOutcome:
        if isinstance(record, ContentRecord):
            return record
        try:
            if not isinstance(record, Mapping):
                raise TypeError(f"Product data must be a mapping, got {type(record).__name__}")
            return ContentRecord.model_validate(dict(record))
        except (ValidationError, TypeError) as exc:
            title = _raw_title(record) if isinstance(record, Mapping) else ""
            logger.error(
                "Validation failed for tenant=%s title=%r: %s",
                tenant_id, title, exc,
            )
            return AnalysisOutcome.from_result(
                fallback_analysis(FailureKind.VALIDATION, title),
                error_kind=FailureKind.VALIDATION.value,
            )

    def _rate_limited(self, title: str, tenant_id: str, status: QuotaStatus) -> AnalysisOutcome:
        logger.warning(
            "Rate limit exceeded for tenant=%s title=%r policy=%s remaining=%d",
            tenant_id, title, status.policy.value, status.remaining,
        )
        return AnalysisOutcome.from_result(
            fallback_analysis(FailureKind.QUOTA_EXCEEDED, title),
            rate_limited=True,
            error_kind=FailureKind.QUOTA_EXCEEDED.value,
            quota=QuotaSnapshot(
                policy=status.policy.value,
                remaining=status.remaining,
                reset_at=status.reset_at,
            ),
        )

    async def _enrich(self, record: ContentRecord, enricher: Enricher | None) -> ContentRecord:
        if enricher is None:
            return record
        try:
            return await enricher(record)
        except Exception:
            logger.warning(
                "Review enrichment failed for %r; analyzing without reviews",
                record.title, exc_info=True,
            )
            return record

    async def _run(
        self,
        record: ContentRecord,
        tenant_id: str,
        enricher: Enricher | None,
    ) -> AnalysisOutcome:
        record = await self._enrich(record, enricher)
        key = fingerprint(record)

        cached = self.cache.get(key)
        if cached is not None:
            return AnalysisOutcome.from_result(cached, provenance="cached", fingerprint=key)

        logger.info("Generating new analysis for tenant=%s content=%s", tenant_id, key[:8])
        request = UpstreamRequest(
            system_instructions=system_instructions_for(record),
            user_content=build_user_prompt(record),
            max_output_tokens=self.max_output_tokens,
            temperature=self.temperature,
        )
        outcome = await self.upstream.call(request, record.reviews)
        if not outcome.ok:
            logger.error(
                "Analysis failed for tenant=%s title=%r kind=%s attempts=%d: %s",
                tenant_id, record.title, outcome.failure.value, outcome.attempts, outcome.error,
            )
            return AnalysisOutcome.from_result(
                fallback_analysis(outcome.failure, record.title),
                error_kind=outcome.failure.value,
                rate_limited=outcome.failure is FailureKind.RATE_LIMITED,
                fingerprint=key,
            )

        self.cache.put(key, outcome.result)
        return AnalysisOutcome.from_result(outcome.result, provenance="fresh", fingerprint=key)
