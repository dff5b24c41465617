"""Shared type aliases and helpers for tool parameters."""

from __future__ import annotations

import json
from typing import Annotated, Literal

from pydantic import Field


def coerce_json_param(value: str | dict | list | None, expected_type: type) -> dict | list | None:
    """Parse MCP JSON-RPC string params back to dict/list.

    Some MCP hosts serialize list/dict arguments as JSON strings; anything
    that does not decode to *expected_type* is returned unchanged so the
    model validation reports it.
    """
    if not isinstance(value, str):
        return value
    try:
        parsed = json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return value
    return parsed if isinstance(parsed, expected_type) else value

# ── Literal enums ────────────────────────────────────────────────────────────

QuotaPolicyName = Literal["standard", "bulk"]
CacheAction = Literal["stats", "clear", "purge"]

# ── Annotated aliases ────────────────────────────────────────────────────────

ShopDomain = Annotated[str, Field(
    min_length=1,
    description="Shop domain (e.g. my-store.myshopify.com); quotas are tracked per shop",
)]
ProductTitle = Annotated[str, Field(description="Product title (required, max 255 chars)")]
ProductTags = Annotated[list[str] | str | None, Field(description="Product tags")]
Metafields = Annotated[list[dict] | dict | str | None, Field(
    description="Metafields as [{'key': ..., 'value': ...}] or a key→value object",
)]
