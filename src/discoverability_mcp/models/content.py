"""Product content input models.

``ContentRecord`` is the frozen unit of work for one analysis attempt.
Shopify's "product type" maps to ``category`` and metafields map to
``attributes``.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

ReviewSentiment = Literal["positive", "negative", "neutral"]


class ReviewSample(BaseModel):
    """A single customer review excerpt."""

    model_config = ConfigDict(frozen=True)

    rating: float = Field(ge=0, le=5)
    body: str
    title: str = ""
    sentiment: ReviewSentiment = "neutral"


class ReviewContext(BaseModel):
    """Review-derived signals attached to a product before analysis."""

    model_config = ConfigDict(frozen=True)

    average_rating: float | None = Field(default=None, ge=0, le=5)
    review_count: int | None = Field(default=None, ge=0)
    common_phrases: tuple[str, ...] = ()
    frequent_praises: tuple[str, ...] = ()
    frequent_complaints: tuple[str, ...] = ()
    samples: tuple[ReviewSample, ...] = Field(default=(), max_length=20)

    @property
    def is_empty(self) -> bool:
        return (
            self.average_rating is None
            and self.review_count is None
            and not self.common_phrases
            and not self.samples
        )


class ContentRecord(BaseModel):
    """Product content submitted for discoverability analysis."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    tags: tuple[str, ...] = ()
    vendor: str = ""
    category: str = ""
    attributes: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    reviews: ReviewContext | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Product title is required")
        return value

    @field_validator("attributes", mode="before")
    @classmethod
    def coerce_metafield_list(cls, value: object) -> object:
        """Accept Shopify's ``[{"key": ..., "value": ...}]`` metafield list.

        Duplicate keys are rejected rather than silently overwritten.
        """
        if not isinstance(value, list):
            return value
        out: dict[str, str] = {}
        for item in value:
            if not isinstance(item, dict) or "key" not in item:
                raise ValueError("Metafields must be objects with 'key' and 'value'")
            key = str(item["key"])
            if key in out:
                raise ValueError(f"Duplicate metafield key '{key}'")
            out[key] = str(item.get("value", ""))
        return out

    @field_validator("attributes")
    @classmethod
    def freeze_attributes(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    @field_serializer("attributes")
    def dump_attributes(self, value: Mapping[str, str]) -> dict[str, str]:
        return dict(value)

    def with_reviews(self, reviews: ReviewContext | None) -> ContentRecord:
        """Return a copy carrying *reviews* (the record itself is immutable)."""
        return self.model_copy(update={"reviews": reviews})
