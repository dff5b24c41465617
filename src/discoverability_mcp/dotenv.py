"""Load shared credentials from a per-user ``.env`` file.

Merchants usually run the server from an MCP host that does not inherit
their shell profile, so ``GEMINI_API_KEY`` and the Judge.me token are kept in
``~/.config/product-discoverability-mcp/.env``. ``DISCOVERABILITY_ENV_FILE``
points at a different file.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_ENV_PATH = Path.home() / ".config" / "product-discoverability-mcp" / ".env"
ENV_FILE_OVERRIDE = "DISCOVERABILITY_ENV_FILE"

_QUOTES = ('"', "'")


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        return value[1:-1]
    return value


def _needs_value(key: str, current: str | None) -> bool:
    """Return True when *current* should be replaced by the file's value.

    Blank values and unresolved self-references such as ``${GEMINI_API_KEY}``
    (passed through unchanged by some MCP hosts) count as unset.
    """
    if current is None:
        return True
    value = _strip_quotes(current.strip()).strip()
    if not value:
        return True
    if value in (f"${key}", f"${{{key}}}"):
        return True
    return value.startswith(f"${{{key}:-") and value.endswith("}")


def parse_dotenv(path: Path) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines from *path*.

    Handles quoted values, an ``export`` prefix, blank lines and ``#``
    comments. Variables are not expanded. A missing file yields ``{}``.
    """
    if not path.is_file():
        return {}

    pairs: dict[str, str] = {}
    for raw in path.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        line = line.removeprefix("export ").lstrip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        pairs[key] = _strip_quotes(value.strip())
    return pairs


def resolve_env_path() -> Path:
    """Return the ``.env`` path, honouring ``DISCOVERABILITY_ENV_FILE``."""
    override = os.environ.get(ENV_FILE_OVERRIDE, "").strip()
    return Path(override).expanduser() if override else DEFAULT_ENV_PATH


def load_dotenv(path: Path | None = None) -> dict[str, str]:
    """Inject variables from *path* into ``os.environ`` where they are unset.

    Returns:
        The variables that were actually injected.
    """
    injected: dict[str, str] = {}
    for key, value in parse_dotenv(path or resolve_env_path()).items():
        if _needs_value(key, os.environ.get(key)):
            os.environ[key] = value
            injected[key] = value
    return injected
