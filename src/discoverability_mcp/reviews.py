"""Judge.me review signals — metafield parsing, optional API fetch, phrase mining.

Review enrichment is best-effort: every failure here is logged and yields
``None`` or an empty list, so a product is still analyzed without reviews.
"""

from __future__ import annotations

import json
import logging
import re
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass

import httpx

from .config import get_config
from .models.content import ContentRecord, ReviewContext, ReviewSample

logger = logging.getLogger(__name__)

COMPLAINT_WORDS = (
    "disappointed", "poor", "bad", "terrible", "awful", "hate", "worst",
    "cheap", "flimsy", "broke", "broken", "defective", "problem", "issue",
)
PRAISE_WORDS = (
    "love", "amazing", "perfect", "excellent", "fantastic", "great", "awesome",
    "quality", "durable", "comfortable", "beautiful", "stylish", "recommend",
)
MAX_SAMPLES = 20
_WORD = re.compile(r"\b\w+\b")


@dataclass(frozen=True)
class RatingSummary:
    """Aggregate rating values stored by Judge.me in product metafields."""

    average_rating: float | None = None
    review_count: int | None = None

    @property
    def present(self) -> bool:
        return self.average_rating is not None or bool(self.review_count)


def _review_key(key: str) -> str | None:
    """``reviews.rating`` / ``rating`` → ``rating``; non-review keys → None."""
    if key.startswith("reviews."):
        return key[len("reviews."):]
    if key in ("rating", "rating_count"):
        return key
    return None


def parse_rating_metafields(attributes: Mapping[str, str]) -> RatingSummary:
    """Read ``reviews.rating`` and ``reviews.rating_count`` from metafields.

    The rating is JSON like ``{"scale_min": "1.0", "scale_max": "5.0",
    "value": "4.3"}``; a bare number is accepted too.
    """
    rating: float | None = None
    count: int | None = None
    for key, value in attributes.items():
        name = _review_key(key)
        if name == "rating":
            try:
                data = json.loads(value)
                rating = float(data["value"]) if isinstance(data, dict) else float(data)
            except (json.JSONDecodeError, KeyError, TypeError, ValueError):
                try:
                    rating = float(value)
                except ValueError:
                    logger.debug("Unparseable rating metafield: %r", value)
        elif name == "rating_count":
            try:
                count = int(float(value))
            except ValueError:
                logger.debug("Unparseable rating_count metafield: %r", value)
    return RatingSummary(average_rating=rating, review_count=count)


def _sentiment(rating: float) -> str:
    if rating >= 4:
        return "positive"
    if rating <= 2:
        return "negative"
    return "neutral"


def _word_counts(text: str) -> Counter[str]:
    return Counter(w for w in _WORD.findall(text.lower()) if len(w) > 3)


def common_phrases(text: str, limit: int = 10) -> list[str]:
    """Most frequent words longer than three characters."""
    return [w for w, _ in _word_counts(text).most_common(limit)]


def keywords_present(text: str, keywords: tuple[str, ...]) -> list[str]:
    """*keywords* that occur more than once in *text*."""
    counts = _word_counts(text)
    return [k for k in keywords if counts.get(k, 0) > 1]


def summarize_reviews(
    reviews: list[dict],
    summary: RatingSummary | None = None,
) -> ReviewContext:
    """Build a ``ReviewContext`` from raw Judge.me review dicts."""
    summary = summary or RatingSummary()
    samples: list[ReviewSample] = []
    all_text: list[str] = []
    praise_text: list[str] = []
    complaint_text: list[str] = []

    for review in reviews:
        try:
            rating = float(review.get("rating", 0))
        except (TypeError, ValueError):
            continue
        body = str(review.get("body") or "")
        title = str(review.get("title") or "")
        all_text.append(f"{title} {body}")
        if rating >= 4:
            praise_text.append(body)
        elif rating <= 2:
            complaint_text.append(body)
        if len(samples) < MAX_SAMPLES and body:
            samples.append(ReviewSample(
                rating=min(max(rating, 0), 5),
                body=body,
                title=title,
                sentiment=_sentiment(rating),
            ))

    return ReviewContext(
        average_rating=summary.average_rating,
        review_count=summary.review_count,
        common_phrases=tuple(common_phrases(" ".join(all_text))),
        frequent_praises=tuple(keywords_present(" ".join(praise_text), PRAISE_WORDS)),
        frequent_complaints=tuple(keywords_present(" ".join(complaint_text), COMPLAINT_WORDS)),
        samples=tuple(samples),
    )


async def fetch_judgeme_reviews(
    shop_domain: str,
    product_id: str,
    *,
    api_token: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[dict]:
    """Fetch recent reviews for a product from the Judge.me API.

    Returns an empty list when no token is configured or the request fails.
    """
    cfg = get_config()
    token = api_token or cfg.judgeme_api_token
    if not token:
        logger.debug("No Judge.me API token configured, skipping review fetch")
        return []

    params = {
        "shop_domain": shop_domain,
        "api_token": token,
        "product_id": product_id,
        "per_page": MAX_SAMPLES,
    }
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=cfg.review_fetch_timeout_seconds)
    try:
        resp = await http.get(cfg.judgeme_api_url, params=params)
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Judge.me review fetch failed for %s/%s: %s", shop_domain, product_id, exc)
        return []
    finally:
        if owns_client:
            await http.aclose()

    reviews = data.get("reviews") if isinstance(data, dict) else None
    return [r for r in reviews or [] if isinstance(r, dict)]


class JudgeMeEnricher:
    """Attaches review signals to a ``ContentRecord`` before analysis.

    Rating values come from the product's metafields. Detailed reviews are
    fetched only when a shop domain, product ID and API token are all known.
    """

    def __init__(
        self,
        shop_domain: str | None = None,
        product_id: str | None = None,
        api_token: str | None = None,
    ) -> None:
        self.shop_domain = shop_domain
        self.product_id = product_id
        self.api_token = api_token

    async def __call__(self, record: ContentRecord) -> ContentRecord:
        if record.reviews is not None:
            return record
        summary = parse_rating_metafields(record.attributes)
        if not summary.present:
            return record

        detailed: list[dict] = []
        if self.shop_domain and self.product_id:
            detailed = await fetch_judgeme_reviews(
                self.shop_domain, self.product_id, api_token=self.api_token,
            )
        context = summarize_reviews(detailed, summary)
        logger.info(
            "Review data attached for %r (rating=%s, count=%s, samples=%d)",
            record.title, context.average_rating, context.review_count, len(context.samples),
        )
        return record.with_reviews(context)
