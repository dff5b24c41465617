"""Tests for infrastructure tools."""

from __future__ import annotations

import pytest

import discoverability_mcp.config as cfg_mod
import discoverability_mcp.tools.infra as infra_mod
from discoverability_mcp.models.analysis import AnalysisResult
from discoverability_mcp.runtime import get_runtime
from tests.conftest import unwrap_tool

infra_cache = unwrap_tool(infra_mod.infra_cache)
infra_configure = unwrap_tool(infra_mod.infra_configure)


@pytest.fixture(autouse=True)
def _clean_config(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test")
    cfg_mod._config = None
    yield
    cfg_mod._config = None


class TestInfraCache:
    async def test_stats(self):
        get_runtime().cache.put("fp", AnalysisResult())
        out = await infra_cache(action="stats")
        assert out["entries"] == 1
        assert out["max_entries"] == 1000

    async def test_clear(self):
        get_runtime().cache.put("fp", AnalysisResult())
        out = await infra_cache(action="clear")
        assert out == {"removed": 1}
        assert len(get_runtime().cache) == 0

    async def test_purge_keeps_live_entries(self):
        get_runtime().cache.put("fp", AnalysisResult())
        assert await infra_cache(action="purge") == {"removed": 0}
        assert len(get_runtime().cache) == 1

    async def test_unknown_action(self):
        out = await infra_cache(action="explode")
        assert "valid_actions" in out


class TestInfraConfigure:
    async def test_updates_runtime_generation(self):
        out = await infra_configure(model="gemini-test", temperature=0.7, max_output_tokens=2000)
        cfg = out["current_config"]

        assert cfg["default_model"] == "gemini-test"
        assert cfg["analysis_temperature"] == 0.7
        assert get_runtime().orchestrator.temperature == 0.7
        assert get_runtime().orchestrator.max_output_tokens == 2000

    async def test_redacts_secrets(self, monkeypatch):
        monkeypatch.setenv("JUDGEME_API_TOKEN", "judgeme-secret")
        cfg_mod._config = None

        cfg = (await infra_configure())["current_config"]

        assert "gemini_api_key" not in cfg
        assert "judgeme_api_token" not in cfg

    async def test_invalid_value_returns_error(self):
        out = await infra_configure(temperature=5.0)
        assert out["category"] == "VALIDATION_FAILED"
        assert out["retryable"] is False
