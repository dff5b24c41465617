"""Product analysis tools — 3 tools on a FastMCP sub-server."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..errors import make_tool_error
from ..quota import QuotaPolicy
from ..reviews import JudgeMeEnricher
from ..runtime import get_runtime
from ..tracing import trace
from ..types import Metafields, ProductTags, ProductTitle, QuotaPolicyName, ShopDomain, coerce_json_param

logger = logging.getLogger(__name__)
analysis_server = FastMCP("analysis")


def _product_payload(
    *,
    title: Any,
    description: Any = "",
    tags: Any = None,
    vendor: Any = "",
    product_type: Any = "",
    metafields: Any = None,
) -> dict[str, Any]:
    """Map Shopify-shaped tool arguments onto ``ContentRecord`` fields.

    Values pass through untouched so the orchestrator's validation decides
    what is acceptable.
    """
    payload: dict[str, Any] = {
        "title": title,
        "description": description if description is not None else "",
        "vendor": vendor if vendor is not None else "",
        "category": product_type if product_type is not None else "",
    }
    tags = coerce_json_param(tags, list)
    if isinstance(tags, str):
        # Shopify exports tags as one comma-separated string.
        tags = [t.strip() for t in tags.split(",") if t.strip()]
    if tags is not None:
        payload["tags"] = tags
    metafields = coerce_json_param(metafields, (list, dict))
    if metafields is not None:
        payload["attributes"] = metafields
    return payload


@analysis_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
@trace(name="product_analyze", span_type="TOOL")
async def product_analyze(
    shop_domain: ShopDomain,
    title: ProductTitle,
    description: Annotated[str, Field(description="Product description (HTML or text)")] = "",
    tags: ProductTags = None,
    vendor: Annotated[str, Field(description="Product vendor")] = "",
    product_type: Annotated[str, Field(description="Shopify product type")] = "",
    metafields: Metafields = None,
    product_id: Annotated[str | None, Field(
        description="Shopify product ID; enables detailed Judge.me review fetch",
    )] = None,
) -> dict:
    """Score a product's content for AI-assistant discoverability.

    Identical content is served from cache for 24 hours. Each call counts
    against the shop's standard hourly quota, cached or not.

    Args:
        shop_domain: Shop the request is made for (quota tenant).
        title: Product title.
        description: Product description.
        tags: Product tags.
        vendor: Product vendor.
        product_type: Shopify product type.
        metafields: Product metafields; Judge.me rating metafields enable
            review-enhanced recommendations.
        product_id: Shopify product ID for detailed review lookup.

    Returns:
        Analysis dict with ``provenance`` ("fresh"/"cached"), plus
        ``rate_limited`` and ``error_kind`` when a fallback was served.
    """
    try:
        payload = _product_payload(
            title=title,
            description=description,
            tags=tags,
            vendor=vendor,
            product_type=product_type,
            metafields=metafields,
        )
        enricher = JudgeMeEnricher(shop_domain=shop_domain, product_id=product_id)
        outcome = await get_runtime().orchestrator.analyze(
            payload, shop_domain, QuotaPolicy.STANDARD, enricher=enricher,
        )
        return outcome.model_dump(mode="json")
    except Exception as exc:
        logger.exception("product_analyze failed for shop=%s", shop_domain)
        return make_tool_error(exc)


@analysis_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
@trace(name="product_analyze_batch", span_type="TOOL")
async def product_analyze_batch(
    shop_domain: ShopDomain,
    products: Annotated[list[dict] | str, Field(
        description="Products as objects with title, description, tags, vendor, "
        "product_type and metafields",
    )],
) -> dict:
    """Analyze several products in one bulk request.

    The batch consumes one unit of the shop's bulk quota (5 per hour by
    default) regardless of size. Products run concurrently.

    Args:
        shop_domain: Shop the request is made for (quota tenant).
        products: Product objects in Shopify field names.

    Returns:
        Dict with ``results`` (one analysis per product, input order) and
        summary counts.
    """
    try:
        items = coerce_json_param(products, list)
        if not isinstance(items, list):
            raise ValueError("products must be a list of product objects")
        payloads = [
            _product_payload(
                title=p.get("title"),
                description=p.get("description", ""),
                tags=p.get("tags"),
                vendor=p.get("vendor", ""),
                product_type=p.get("product_type", p.get("productType", "")),
                metafields=p.get("metafields"),
            )
            if isinstance(p, dict) else p
            for p in items
        ]
        outcomes = await get_runtime().orchestrator.analyze_batch(
            payloads, shop_domain, enricher=JudgeMeEnricher(),
        )
        results = [o.model_dump(mode="json") for o in outcomes]
        return {
            "results": results,
            "total": len(results),
            "cached": sum(1 for o in outcomes if o.provenance == "cached" and not o.is_fallback),
            "failed": sum(1 for o in outcomes if o.is_fallback),
            "rate_limited": any(o.rate_limited for o in outcomes),
        }
    except Exception as exc:
        logger.exception("product_analyze_batch failed for shop=%s", shop_domain)
        return make_tool_error(exc)


@analysis_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=False))
async def quota_status(
    shop_domain: ShopDomain,
    policy: QuotaPolicyName | None = None,
) -> dict:
    """Report remaining requests and reset time without consuming quota.

    Args:
        shop_domain: Shop to report on.
        policy: Limit the report to "standard" or "bulk"; both when omitted.

    Returns:
        Dict keyed by policy with ``remaining``, ``limit`` and ``reset_at``.
    """
    try:
        quotas = get_runtime().quotas
        policies = [QuotaPolicy(policy)] if policy else list(QuotaPolicy)
        report = {}
        for p in policies:
            tracker = quotas[p]
            status = tracker.peek(shop_domain)
            report[p.value] = {
                "remaining": status.remaining,
                "limit": tracker.max_count,
                "reset_at": status.reset_at,
                "window_seconds": tracker.window_seconds,
            }
        return {"shop_domain": shop_domain, "quotas": report}
    except Exception as exc:
        return make_tool_error(exc)
