"""Convert the upstream per-category JSON payload into an ``AnalysisResult``."""

from __future__ import annotations

import math
import re
from typing import Any

from .models.analysis import (
    AnalysisResult,
    AnalysisScores,
    FeatureBenefitPair,
    ImprovedContent,
    Optimization,
    ReviewRecommendations,
    SpecificEnhancements,
)
from .models.content import ReviewContext

CATEGORY_SCORE_FIELDS: dict[str, str] = {
    "SemanticClarity": "semantic_clarity",
    "IntentMatching": "intent_matching",
    "FeatureBenefitStructure": "feature_benefit_structure",
    "NaturalLanguageOptimization": "natural_language",
    "StructuredInformation": "structured_info",
}
REVIEW_KEY = "reviewEnhancedRecommendations"

NO_REVIEWS_GUIDANCE = ReviewRecommendations(
    customer_language_suggestions=[
        "Install Judge.me or a similar review app to unlock customer language insights",
    ],
    addressed_concerns=["Customer concerns will be identified once review data is available"],
    highlighted_benefits=["Customer-praised benefits will be highlighted when reviews are collected"],
    missing_keywords=["Customer-used keywords will be suggested after gathering review data"],
    social_proof_suggestions=[
        "Set up Judge.me to start collecting reviews automatically",
        "Enable review request emails after purchase",
        "Display star ratings in product listings",
        "Add review widgets to product pages",
    ],
)


class MalformedResponseError(ValueError):
    """Upstream output does not match the analysis contract."""


def _readable(key: str) -> str:
    """``FeatureBenefitStructure`` → ``Feature Benefit Structure``."""
    return re.sub(r"(?<!^)(?=[A-Z])", " ", key).strip()


def _score(category: str, value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResponseError(f"{category}.score is not a number: {value!r}")
    if not math.isfinite(value):
        raise MalformedResponseError(f"{category}.score is not finite: {value!r}")
    return int(min(max(value, 0), 100) + 0.5)


def _strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v.strip() for v in value if isinstance(v, str) and v.strip()]


def _pairs(value: Any) -> list[FeatureBenefitPair]:
    if not isinstance(value, list):
        return []
    return [
        FeatureBenefitPair(feature=str(p.get("feature", "")), benefit=str(p.get("benefit", "")))
        for p in value
        if isinstance(p, dict)
    ]


def _categories(payload: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Every scored category object in *payload*, in response order."""
    found: dict[str, dict[str, Any]] = {}
    for key, value in payload.items():
        if key == REVIEW_KEY:
            continue
        if key in CATEGORY_SCORE_FIELDS or (isinstance(value, dict) and "score" in value):
            if not isinstance(value, dict):
                raise MalformedResponseError(f"Category {key} is not an object")
            found[key] = value
    if not any(k in CATEGORY_SCORE_FIELDS for k in found):
        raise MalformedResponseError("Response contains none of the expected analysis categories")
    return found


def build_analysis(
    payload: Any,
    reviews: ReviewContext | None = None,
) -> AnalysisResult:
    """Transform a decoded upstream response into an ``AnalysisResult``.

    Args:
        payload: Decoded JSON from the upstream model.
        reviews: Review signals sent with the request, if any. Without them
            the result carries guidance on collecting reviews instead.

    Raises:
        MalformedResponseError: If the payload is not an object, has no known
            category, or carries a non-numeric score.
    """
    if not isinstance(payload, dict) or not payload:
        raise MalformedResponseError("Response is not a non-empty JSON object")

    categories = _categories(payload)
    score_values = {
        CATEGORY_SCORE_FIELDS[key]: _score(key, body.get("score"))
        for key, body in categories.items()
        if key in CATEGORY_SCORE_FIELDS
    }
    scores = AnalysisScores(**score_values)

    strengths: list[str] = []
    gaps: list[str] = []
    optimizations: list[Optimization] = []
    titles: list[str] = []
    sentences: list[str] = []
    tags: list[str] = []
    pairs: list[FeatureBenefitPair] = []
    specs: list[str] = []

    for key, body in categories.items():
        strengths.extend(_strings(body.get("strengths")))
        gaps.extend(_strings(body.get("areasForImprovement")))
        specific = body.get("specificContentSuggestions")
        specific = specific if isinstance(specific, dict) else {}
        optimizations.append(Optimization(
            category=_readable(key),
            score=_score(key, body.get("score")),
            suggestions=_strings(body.get("optimizationSuggestions")),
            specific_content=specific,
        ))
        titles.extend(_strings(specific.get("titleAdditions")))
        sentences.extend(_strings(specific.get("descriptionSentences")))
        tags.extend(_strings(specific.get("suggestedTags")))
        pairs.extend(_pairs(specific.get("featureBenefitPairs")))
        specs.extend(_strings(specific.get("specifications")))

    improved = ImprovedContent(
        title=titles[0] if titles else "Enhanced title suggestions would appear here",
        suggestions=titles,
        description=sentences[0] if sentences else "Enhanced description would appear here",
        description_suggestions=sentences,
        specific_enhancements=SpecificEnhancements(
            copy_paste_title=titles[0] if titles else "",
            copy_paste_description_sentences=sentences,
            suggested_tags=list(dict.fromkeys(tags)),
            feature_benefit_pairs=pairs,
            specifications=specs,
        ),
    )

    return AnalysisResult(
        scores=scores,
        content_strengths=strengths,
        content_gaps=gaps,
        optimizations=optimizations,
        improved_content=improved,
        review_recommendations=_review_recommendations(payload.get(REVIEW_KEY), reviews),
    )


def _review_recommendations(
    block: Any,
    reviews: ReviewContext | None,
) -> ReviewRecommendations | None:
    if reviews is None or reviews.is_empty:
        return NO_REVIEWS_GUIDANCE.model_copy(deep=True)
    if not isinstance(block, dict):
        return None
    return ReviewRecommendations(
        customer_language_suggestions=_strings(block.get("customerLanguageSuggestions")),
        addressed_concerns=_strings(block.get("addressedConcerns")),
        highlighted_benefits=_strings(block.get("highlightedBenefits")),
        missing_keywords=_strings(block.get("missingKeywords")),
        social_proof_suggestions=_strings(block.get("socialProofSuggestions")),
    )
