"""Tests for the product analysis MCP tools."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

import discoverability_mcp.tools.analysis as analysis_mod
from discoverability_mcp.runtime import build_runtime, reset_runtime
from tests.conftest import unwrap_tool, upstream_text

product_analyze = unwrap_tool(analysis_mod.product_analyze)
product_analyze_batch = unwrap_tool(analysis_mod.product_analyze_batch)
quota_status = unwrap_tool(analysis_mod.quota_status)

SHOP = "outdoor-gear.myshopify.com"


@pytest.fixture()
def transport(clean_config):
    """Install a runtime whose upstream is a mock transport."""
    mock = AsyncMock(return_value=upstream_text())
    reset_runtime(build_runtime(transport=mock))
    yield mock


class TestProductAnalyze:
    async def test_fresh_then_cached(self, transport, no_sleep):
        first = await product_analyze(shop_domain=SHOP, title="Trail Runner", tags=["trail"])
        second = await product_analyze(shop_domain=SHOP, title="Trail Runner", tags=["trail"])

        assert first["provenance"] == "fresh"
        assert second["provenance"] == "cached"
        assert first["scores"]["discovery_potential"] == 63
        assert transport.await_count == 1

    async def test_maps_shopify_fields(self, transport, no_sleep):
        await product_analyze(
            shop_domain=SHOP,
            title="Trail Runner",
            description="Grippy shoe",
            tags='["trail", "running"]',
            vendor="Peak",
            product_type="Shoes",
            metafields=[{"key": "material", "value": "mesh"}],
        )
        prompt = transport.await_args.args[0].user_content
        assert "Product Type: Shoes" in prompt
        assert "Tags: trail, running" in prompt
        assert "Vendor: Peak" in prompt
        assert '"material"' in prompt

    async def test_rating_metafields_enable_review_prompt(self, transport, no_sleep):
        await product_analyze(
            shop_domain=SHOP,
            title="Trail Runner",
            metafields={
                "reviews.rating": json.dumps({"value": "4.5"}),
                "reviews.rating_count": "10",
            },
        )
        request = transport.await_args.args[0]
        assert "REVIEW DATA AVAILABLE" in request.user_content

    async def test_blank_title_returns_validation_fallback(self, transport):
        out = await product_analyze(shop_domain=SHOP, title="  ")

        assert out["error_kind"] == "validation"
        assert out["scores"]["discovery_potential"] == 0
        transport.assert_not_awaited()

    async def test_rate_limited_after_standard_quota(self, transport, monkeypatch, no_sleep):
        monkeypatch.setenv("QUOTA_STANDARD_MAX", "2")
        import discoverability_mcp.config as cfg_mod

        cfg_mod._config = None
        reset_runtime(build_runtime(transport=transport))

        for _ in range(2):
            await product_analyze(shop_domain=SHOP, title="Mug")
        out = await product_analyze(shop_domain=SHOP, title="Mug")

        assert out["rate_limited"] is True
        assert out["error_kind"] == "quota_exceeded"
        assert out["quota"]["remaining"] == 0

    async def test_unexpected_error_becomes_tool_error(self, transport, monkeypatch):
        def boom():
            raise RuntimeError("runtime unavailable")

        monkeypatch.setattr(analysis_mod, "get_runtime", boom)
        out = await product_analyze(shop_domain=SHOP, title="Mug")

        assert out["category"] == "UNKNOWN"
        assert "runtime unavailable" in out["error"]


class TestProductAnalyzeBatch:
    async def test_batch(self, transport, no_sleep):
        out = await product_analyze_batch(
            shop_domain=SHOP,
            products=[
                {"title": "Mug", "productType": "Kitchen"},
                {"title": "Mug"},
                {"title": ""},
            ],
        )

        assert out["total"] == 3
        assert out["failed"] == 1
        assert out["rate_limited"] is False
        assert out["results"][2]["error_kind"] == "validation"

    async def test_batch_accepts_json_string(self, transport, no_sleep):
        out = await product_analyze_batch(shop_domain=SHOP, products='[{"title": "Mug"}]')
        assert out["total"] == 1
        assert out["results"][0]["provenance"] == "fresh"

    async def test_batch_rejects_non_list(self, transport):
        out = await product_analyze_batch(shop_domain=SHOP, products='{"title": "Mug"}')
        assert out["category"] == "API_INVALID_ARGUMENT"

    async def test_sixth_batch_rate_limited(self, transport, no_sleep):
        for _ in range(5):
            await product_analyze_batch(shop_domain=SHOP, products=[{"title": "Mug"}])
        out = await product_analyze_batch(shop_domain=SHOP, products=[{"title": "Mug"}])

        assert out["rate_limited"] is True
        assert out["results"][0]["error_kind"] == "quota_exceeded"


class TestQuotaStatus:
    async def test_reports_both_policies(self, transport, no_sleep):
        await product_analyze(shop_domain=SHOP, title="Mug")
        out = await quota_status(shop_domain=SHOP)

        assert out["quotas"]["standard"]["remaining"] == 49
        assert out["quotas"]["standard"]["limit"] == 50
        assert out["quotas"]["bulk"]["remaining"] == 5

    async def test_does_not_consume(self, transport):
        await quota_status(shop_domain=SHOP, policy="bulk")
        out = await quota_status(shop_domain=SHOP, policy="bulk")

        assert list(out["quotas"]) == ["bulk"]
        assert out["quotas"]["bulk"]["remaining"] == 5
