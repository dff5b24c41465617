"""Content fingerprinting for analysis cache keys."""

from __future__ import annotations

import hashlib
import json

from .models.content import ContentRecord


def canonical_payload(record: ContentRecord) -> dict:
    """Return the order-independent view of everything that affects analysis."""
    reviews = record.reviews.model_dump(mode="json") if record.reviews else None
    return {
        "title": record.title,
        "description": record.description,
        "tags": sorted(record.tags),
        "vendor": record.vendor,
        "category": record.category,
        "attributes": sorted(record.attributes.items()),
        "reviews": reviews,
    }


def fingerprint(record: ContentRecord) -> str:
    """SHA-256 hex digest of the record's canonical JSON serialization.

    Tag order and attribute insertion order never change the result.
    """
    blob = json.dumps(
        canonical_payload(record),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()
