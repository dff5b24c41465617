"""Process-wide wiring of the analysis components.

Components are plain objects built from a ``ServerConfig``; this module only
holds the instance the MCP tools share. Tests build their own with
``build_runtime`` or call ``reset_runtime``.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import ServerConfig, get_config
from .housekeeping import Housekeeper
from .orchestrator import AnalysisOrchestrator
from .quota import QuotaPolicy, QuotaTracker
from .result_cache import ResultCache
from .upstream import Transport, UpstreamCaller, gemini_transport


@dataclass
class Runtime:
    cache: ResultCache
    quotas: dict[QuotaPolicy, QuotaTracker]
    upstream: UpstreamCaller
    orchestrator: AnalysisOrchestrator
    housekeeper: Housekeeper


def build_runtime(
    cfg: ServerConfig | None = None,
    *,
    transport: Transport = gemini_transport,
) -> Runtime:
    """Construct an isolated set of components from *cfg*."""
    cfg = cfg or get_config()
    cache = ResultCache(ttl_seconds=cfg.cache_ttl_seconds, max_entries=cfg.cache_max_entries)
    quotas = {
        QuotaPolicy.STANDARD: QuotaTracker(
            QuotaPolicy.STANDARD, cfg.quota_standard_max, cfg.quota_window_seconds,
        ),
        QuotaPolicy.BULK: QuotaTracker(
            QuotaPolicy.BULK, cfg.quota_bulk_max, cfg.quota_window_seconds,
        ),
    }
    upstream = UpstreamCaller(
        transport,
        timeout=cfg.upstream_timeout_seconds,
        max_attempts=cfg.retry_max_attempts,
        base_delay=cfg.retry_base_delay,
        max_delay=cfg.retry_max_delay,
    )
    orchestrator = AnalysisOrchestrator(
        cache,
        quotas,
        upstream,
        max_output_tokens=cfg.analysis_max_output_tokens,
        temperature=cfg.analysis_temperature,
        bulk_concurrency=cfg.bulk_concurrency,
    )
    housekeeper = Housekeeper(cache, quotas.values(), cfg.housekeeping_interval_seconds)
    return Runtime(cache, quotas, upstream, orchestrator, housekeeper)


_runtime: Runtime | None = None


def get_runtime() -> Runtime:
    """Return the shared runtime, building it from config on first access."""
    global _runtime
    if _runtime is None:
        _runtime = build_runtime()
    return _runtime


def reset_runtime(runtime: Runtime | None = None) -> None:
    """Replace (or drop) the shared runtime."""
    global _runtime
    _runtime = runtime
