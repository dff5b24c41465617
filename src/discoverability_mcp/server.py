"""Main FastMCP server — mounts all sub-servers."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from . import tracing
from .client import GeminiClient
from .config import get_config
from .runtime import get_runtime
from .tools.analysis import analysis_server
from .tools.infra import infra_server

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(server: FastMCP):
    """Startup/shutdown hook — housekeeping task, Gemini clients, traces."""
    tracing.setup()
    housekeeper = get_runtime().housekeeper
    housekeeper.start()
    try:
        yield {}
    finally:
        await housekeeper.stop()
        closed = await GeminiClient.close_all()
        tracing.shutdown()
        logger.info("Lifespan shutdown: closed %d client(s)", closed)


app = FastMCP(
    "product-discoverability",
    instructions=(
        "Scores Shopify product content for discoverability by AI shopping "
        "assistants and returns concrete rewrite suggestions. Results are "
        "cached per content for 24 hours; requests are rate limited per shop."
    ),
    lifespan=_lifespan,
)

app.mount(analysis_server)
app.mount(infra_server)


def main() -> None:
    """Entry-point for ``product-discoverability-mcp`` console script."""
    logging.basicConfig(
        level=get_config().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.run()


if __name__ == "__main__":
    main()
