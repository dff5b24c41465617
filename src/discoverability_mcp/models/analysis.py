"""Analysis result models returned by the orchestrator.

``AnalysisResult`` is what gets cached. ``AnalysisOutcome`` adds the
per-request annotations (provenance, rate limiting, error kind) and is never
cached itself.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

SCORE_WEIGHTS: dict[str, float] = {
    "semantic_clarity": 0.25,
    "intent_matching": 0.25,
    "feature_benefit_structure": 0.20,
    "natural_language": 0.15,
    "structured_info": 0.15,
}

Provenance = Literal["fresh", "cached"]


def composite_score(
    semantic_clarity: float,
    intent_matching: float,
    feature_benefit_structure: float,
    natural_language: float,
    structured_info: float,
) -> int:
    """Weighted discovery potential, rounded half up to an int."""
    total = (
        semantic_clarity * SCORE_WEIGHTS["semantic_clarity"]
        + intent_matching * SCORE_WEIGHTS["intent_matching"]
        + feature_benefit_structure * SCORE_WEIGHTS["feature_benefit_structure"]
        + natural_language * SCORE_WEIGHTS["natural_language"]
        + structured_info * SCORE_WEIGHTS["structured_info"]
    )
    # Half up, not banker's rounding.
    return int(total + 0.5)


class AnalysisScores(BaseModel):
    """Five sub-scores plus the derived ``discovery_potential``.

    ``discovery_potential`` is always recomputed from the sub-scores, so a
    caller-supplied value is ignored.
    """

    semantic_clarity: int = Field(default=0, ge=0, le=100)
    intent_matching: int = Field(default=0, ge=0, le=100)
    feature_benefit_structure: int = Field(default=0, ge=0, le=100)
    natural_language: int = Field(default=0, ge=0, le=100)
    structured_info: int = Field(default=0, ge=0, le=100)
    discovery_potential: int = Field(default=0, ge=0, le=100)

    @model_validator(mode="after")
    def _derive_composite(self) -> AnalysisScores:
        self.discovery_potential = composite_score(
            self.semantic_clarity,
            self.intent_matching,
            self.feature_benefit_structure,
            self.natural_language,
            self.structured_info,
        )
        return self


class Optimization(BaseModel):
    """Suggestions for one analysis category."""

    category: str
    score: int = Field(default=0, ge=0, le=100)
    suggestions: list[str] = Field(default_factory=list)
    specific_content: dict[str, Any] = Field(default_factory=dict)


class FeatureBenefitPair(BaseModel):
    feature: str = ""
    benefit: str = ""


class SpecificEnhancements(BaseModel):
    """Copy-paste ready content pulled from every category."""

    copy_paste_title: str = ""
    copy_paste_description_sentences: list[str] = Field(default_factory=list)
    suggested_tags: list[str] = Field(default_factory=list)
    feature_benefit_pairs: list[FeatureBenefitPair] = Field(default_factory=list)
    specifications: list[str] = Field(default_factory=list)


class ImprovedContent(BaseModel):
    title: str = ""
    suggestions: list[str] = Field(default_factory=list)
    description: str = ""
    description_suggestions: list[str] = Field(default_factory=list)
    specific_enhancements: SpecificEnhancements = Field(default_factory=SpecificEnhancements)


class ReviewRecommendations(BaseModel):
    """Recommendations grounded in (or awaiting) customer review data."""

    customer_language_suggestions: list[str] = Field(default_factory=list)
    addressed_concerns: list[str] = Field(default_factory=list)
    highlighted_benefits: list[str] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list)
    social_proof_suggestions: list[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    """Structured discoverability analysis for one product."""

    scores: AnalysisScores = Field(default_factory=AnalysisScores)
    content_strengths: list[str] = Field(default_factory=list)
    content_gaps: list[str] = Field(default_factory=list)
    optimizations: list[Optimization] = Field(default_factory=list)
    improved_content: ImprovedContent = Field(default_factory=ImprovedContent)
    review_recommendations: ReviewRecommendations | None = None


class QuotaSnapshot(BaseModel):
    """Quota state reported alongside a denied request."""

    policy: str
    remaining: int
    reset_at: float


class AnalysisOutcome(AnalysisResult):
    """An ``AnalysisResult`` annotated for the caller."""

    provenance: Provenance = "fresh"
    rate_limited: bool = False
    error_kind: str | None = None
    fingerprint: str | None = None
    quota: QuotaSnapshot | None = None

    @classmethod
    def from_result(cls, result: AnalysisResult, **annotations: Any) -> AnalysisOutcome:
        """Wrap *result* without sharing mutable state with the cached copy."""
        return cls(**result.model_dump(), **annotations)

    @property
    def is_fallback(self) -> bool:
        return self.error_kind is not None
