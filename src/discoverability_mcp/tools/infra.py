"""Infrastructure tools — 2 tools on a FastMCP sub-server."""

from __future__ import annotations

from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..config import get_config, update_config
from ..errors import make_tool_error
from ..runtime import get_runtime
from ..tracing import trace
from ..types import CacheAction

infra_server = FastMCP("infra")
_SENSITIVE_CONFIG_FIELDS = {"gemini_api_key", "judgeme_api_token"}


def _redacted_config() -> dict:
    """Return runtime config with secret-bearing fields removed."""
    return get_config().model_dump(exclude=_SENSITIVE_CONFIG_FIELDS)


@infra_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=False,
    )
)
@trace(name="infra_cache", span_type="TOOL")
async def infra_cache(action: CacheAction = "stats") -> dict:
    """Inspect or manage the analysis result cache.

    Args:
        action: "stats" for counters, "purge" to drop expired entries,
            "clear" to drop everything.

    Returns:
        Cache stats, or the number of entries removed.
    """
    cache = get_runtime().cache
    if action == "stats":
        return cache.stats()
    if action == "purge":
        return {"removed": cache.purge_expired()}
    if action == "clear":
        return {"removed": cache.clear()}
    return {"error": f"Unknown action: {action}", "valid_actions": ["stats", "purge", "clear"]}


@infra_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
@trace(name="infra_configure", span_type="TOOL")
async def infra_configure(
    model: Annotated[str | None, Field(description="Gemini model ID used for analysis")] = None,
    temperature: Annotated[float | None, Field(ge=0.0, le=2.0, description="Sampling temperature")] = None,
    max_output_tokens: Annotated[int | None, Field(gt=0, description="Output token ceiling")] = None,
) -> dict:
    """Reconfigure analysis generation at runtime.

    Changes apply to the next upstream request; cached results are kept.

    Args:
        model: Gemini model ID.
        temperature: Sampling temperature (0.0-2.0).
        max_output_tokens: Output token ceiling per request.

    Returns:
        Dict with the redacted current_config.
    """
    try:
        cfg = update_config(
            default_model=model,
            analysis_temperature=temperature,
            analysis_max_output_tokens=max_output_tokens,
        )
        orchestrator = get_runtime().orchestrator
        orchestrator.temperature = cfg.analysis_temperature
        orchestrator.max_output_tokens = cfg.analysis_max_output_tokens
    except Exception as exc:
        return make_tool_error(exc)
    return {"current_config": _redacted_config()}
