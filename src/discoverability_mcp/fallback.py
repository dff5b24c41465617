"""Degraded-but-complete analysis returned whenever a request fails terminally."""

from __future__ import annotations

import logging

from .errors import FailureKind
from .models.analysis import (
    AnalysisResult,
    AnalysisScores,
    ImprovedContent,
    Optimization,
    ReviewRecommendations,
    SpecificEnhancements,
)

logger = logging.getLogger(__name__)

UNAVAILABLE_GAP = "Analysis temporarily unavailable - please try again"
SYSTEM_ERROR_CATEGORY = "System Error"
_UNAVAILABLE = "Analysis service temporarily unavailable"


def fallback_analysis(
    reason: FailureKind | str,
    content_title: str = "Unknown Product",
) -> AnalysisResult:
    """Build a structurally complete zero-score result.

    Every collection the caller renders is non-empty, so display code never
    has to special-case a failed analysis.
    """
    reason_value = reason.value if isinstance(reason, FailureKind) else str(reason)
    title = content_title or "Unknown Product"
    logger.warning("Serving fallback analysis for %r (reason=%s)", title, reason_value)
    return AnalysisResult(
        scores=AnalysisScores(),
        content_strengths=["Product information is present"],
        content_gaps=[UNAVAILABLE_GAP],
        optimizations=[
            Optimization(
                category=SYSTEM_ERROR_CATEGORY,
                score=0,
                suggestions=[
                    "Analysis service is temporarily unavailable. "
                    "Please try again in a few moments.",
                ],
            ),
        ],
        improved_content=ImprovedContent(
            title=title,
            suggestions=[_UNAVAILABLE],
            description="Please try analyzing this product again",
            description_suggestions=[_UNAVAILABLE],
            specific_enhancements=SpecificEnhancements(copy_paste_title=title),
        ),
        review_recommendations=ReviewRecommendations(
            customer_language_suggestions=[
                f"{_UNAVAILABLE} - retry to compare your copy with customer wording",
            ],
            addressed_concerns=[
                f"{_UNAVAILABLE} - retry to see which review complaints need answers",
            ],
            highlighted_benefits=[
                f"{_UNAVAILABLE} - retry to surface the benefits customers praise",
            ],
            missing_keywords=[
                f"{_UNAVAILABLE} - retry to find keywords customers use",
            ],
            social_proof_suggestions=[
                "Keep collecting reviews; they are used as soon as analysis is available",
            ],
        ),
    )
