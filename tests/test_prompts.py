"""Tests for analysis prompt construction."""

from __future__ import annotations

from discoverability_mcp.models.content import ContentRecord, ReviewContext, ReviewSample
from discoverability_mcp.prompts.analysis import (
    ANALYSIS_SYSTEM,
    REVIEW_ENHANCED_SYSTEM,
    build_review_context,
    build_user_prompt,
    system_instructions_for,
)

RECORD = ContentRecord(
    title="Trail Runner",
    description="Grippy {shoe}",
    tags=("trail", "running"),
    vendor="Peak",
    category="Shoes",
    attributes={"material": "mesh"},
)

REVIEWS = ReviewContext(
    average_rating=4.6,
    review_count=31,
    common_phrases=("grip", "comfortable"),
    frequent_praises=("comfortable",),
    frequent_complaints=("flimsy",),
    samples=(
        ReviewSample(rating=5, body="Best grip ever"),
        ReviewSample(rating=4, body="Comfy"),
        ReviewSample(rating=2, body="Laces snapped"),
        ReviewSample(rating=5, body="Fourth review"),
    ),
)


class TestBuildUserPrompt:
    def test_fields_rendered(self):
        prompt = build_user_prompt(RECORD)
        assert "Title: Trail Runner" in prompt
        assert "Description: Grippy {shoe}" in prompt
        assert "Product Type: Shoes" in prompt
        assert "Tags: trail, running" in prompt
        assert '{"key": "material", "value": "mesh"}' in prompt

    def test_no_reviews_note(self):
        prompt = build_user_prompt(RECORD)
        assert "NO REVIEW DATA" in prompt
        assert "REVIEW DATA AVAILABLE" not in prompt

    def test_review_block(self):
        prompt = build_user_prompt(RECORD.with_reviews(REVIEWS))
        assert "REVIEW DATA AVAILABLE" in prompt
        assert "NO REVIEW DATA" not in prompt

    def test_empty_reviews_treated_as_none(self):
        prompt = build_user_prompt(RECORD.with_reviews(ReviewContext()))
        assert "NO REVIEW DATA" in prompt


class TestReviewContext:
    def test_lines(self):
        text = build_review_context(REVIEWS)
        assert "Average Rating: 4.6/5 (31 reviews)" in text
        assert "Frequently Praised: comfortable" in text
        assert "Common Complaints: flimsy" in text
        assert "Customer Language: grip, comfortable" in text

    def test_three_samples_at_most(self):
        text = build_review_context(REVIEWS)
        assert '"Best grip ever" (5/5)' in text
        assert "Laces snapped" in text
        assert "Fourth review" not in text


class TestSystemInstructions:
    def test_selection(self):
        assert system_instructions_for(RECORD) is ANALYSIS_SYSTEM
        assert system_instructions_for(RECORD.with_reviews(REVIEWS)) is REVIEW_ENHANCED_SYSTEM

    def test_rubric_weights(self):
        for name in ("SemanticClarity", "IntentMatching", "FeatureBenefitStructure",
                     "NaturalLanguageOptimization", "StructuredInformation"):
            assert name in ANALYSIS_SYSTEM
        assert "25% weight" in ANALYSIS_SYSTEM
