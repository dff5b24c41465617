"""Shared test fixtures for product-discoverability-mcp."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from discoverability_mcp.quota import QuotaPolicy, QuotaTracker
from discoverability_mcp.result_cache import ResultCache


def unwrap_tool(tool: Any) -> Any:
    """Extract the raw coroutine from a FastMCP FunctionTool, if wrapped.

    FastMCP 2.x wraps @server.tool functions in FunctionTool (not callable).
    FastMCP 3.x preserves the original function. This helper works with both.
    """
    return getattr(tool, "fn", tool)


class FakeClock:
    """Manually advanced epoch clock for TTL and window tests."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def category(score: float, **extra: Any) -> dict:
    """One upstream category object."""
    body = {
        "score": score,
        "strengths": [],
        "areasForImprovement": [],
        "optimizationSuggestions": [],
        "specificContentSuggestions": {},
    }
    body.update(extra)
    return body


def upstream_payload(
    semantic: float = 80,
    intent: float = 70,
    feature: float = 60,
    natural: float = 50,
    structured: float = 40,
    **extra: Any,
) -> dict:
    """A well-formed upstream response body."""
    payload = {
        "SemanticClarity": category(semantic, strengths=["Clear product type"]),
        "IntentMatching": category(intent, areasForImprovement=["Name the use case"]),
        "FeatureBenefitStructure": category(feature),
        "NaturalLanguageOptimization": category(natural),
        "StructuredInformation": category(
            structured,
            specificContentSuggestions={"suggestedTags": ["waterproof", "hiking"]},
        ),
    }
    payload.update(extra)
    return payload


def upstream_text(**kwargs: Any) -> str:
    return json.dumps(upstream_payload(**kwargs))


@pytest.fixture(autouse=True)
def _set_dummy_api_key(monkeypatch):
    """Ensure tests never hit real Gemini API."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key-not-real")


@pytest.fixture(autouse=True)
def _disable_tracing(monkeypatch):
    """Disable MLflow tracing in all tests to avoid real tracking-server calls.

    The ``test_tracing.py`` module patches the tracing module directly
    and does not rely on this fixture.
    """
    monkeypatch.setenv("DISCOVERABILITY_TRACING_ENABLED", "false")


@pytest.fixture(autouse=True)
def _isolate_dotenv(tmp_path, monkeypatch):
    """Prevent tests from loading the user's real ~/.config/product-discoverability-mcp/.env."""
    monkeypatch.delenv("DISCOVERABILITY_ENV_FILE", raising=False)
    monkeypatch.setattr(
        "discoverability_mcp.dotenv.DEFAULT_ENV_PATH",
        tmp_path / "nonexistent.env",
    )


@pytest.fixture(autouse=True)
def _reset_runtime():
    """Drop the shared runtime so tool tests never share cache or quota state."""
    import discoverability_mcp.runtime as runtime_mod

    runtime_mod.reset_runtime()
    yield
    runtime_mod.reset_runtime()


@pytest.fixture()
def clean_config():
    """Reset the config singleton between tests."""
    import discoverability_mcp.config as cfg_mod

    cfg_mod._config = None
    yield
    cfg_mod._config = None


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def cache(clock):
    return ResultCache(ttl_seconds=24 * 3600, max_entries=1000, clock=clock)


@pytest.fixture()
def quotas(clock):
    return {
        QuotaPolicy.STANDARD: QuotaTracker(QuotaPolicy.STANDARD, 50, 3600, clock=clock),
        QuotaPolicy.BULK: QuotaTracker(QuotaPolicy.BULK, 5, 3600, clock=clock),
    }


@pytest.fixture()
def no_sleep():
    """Make retry backoff instant; the mock records requested delays."""
    with patch("discoverability_mcp.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


@pytest.fixture()
def mock_gemini_client():
    """Patch GeminiClient.get() and .generate_json() for unit tests."""
    with (
        patch("discoverability_mcp.client.GeminiClient.get") as mock_get,
        patch(
            "discoverability_mcp.client.GeminiClient.generate_json", new_callable=AsyncMock
        ) as mock_gen,
    ):
        client = MagicMock()
        mock_get.return_value = client
        mock_gen.return_value = upstream_text()
        yield {
            "get": mock_get,
            "generate_json": mock_gen,
            "client": client,
        }
