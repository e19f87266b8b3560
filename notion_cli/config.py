"""
notion-cli shared configuration, constants, and module-level state.
Standalone module with no imports from other project files.
"""

import os

# ---------------------------------------------------------------------------
# .env path and helpers
# ---------------------------------------------------------------------------

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
_PROJECT_ROOT = os.path.dirname(_PACKAGE_DIR)

ENV_PATH = os.path.join(_PROJECT_ROOT, ".env")

# Keys also read from os.environ when the .env file does not set them.
_ENV_KEYS = (
    "NOTION_TOKEN_V2",
    "NOTION_USER_ID",
    "NOTION_BASE_URL",
    "NOTION_HTTP_TIMEOUT_SECONDS",
    "NOTION_HTTP_MAX_RETRIES",
    "NOTION_HTTP_RETRY_BASE_SECONDS",
    "NOTION_HTTP_MAX_RESPONSE_BYTES",
    "NOTION_HTTP_LOG",
    "NOTION_HTTP_LOG_SAMPLE_RATE",
    "NOTION_MAX_PAGE_CHUNKS",
    "NOTION_CHUNK_LIMIT",
    "NOTION_QUERY_LIMIT",
    "NOTION_CREDENTIALS_PATH",
    "NOTION_MCP_RESPONSE_MODE",
)


def load_env():
    env = {}
    if os.path.exists(ENV_PATH):
        with open(ENV_PATH, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, val = line.split("=", 1)
                    env[key.strip()] = val.strip()
    for key in _ENV_KEYS:
        if key not in env and os.environ.get(key):
            env[key] = os.environ[key]
    return env


def _env_bool(key, default=False):
    """Parse common boolean env formats."""
    raw = env.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(key, default):
    """Parse integer env values with fallback."""
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(key, default):
    """Parse float env values with fallback."""
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VERSION = "0.3.0"
CONTRACT_SCHEMA_VERSION = "1.0"

DEFAULT_BASE_URL = "https://www.notion.so/api/v3"
DEFAULT_CREDENTIALS_PATH = os.path.join(
    os.path.expanduser("~"), ".config", "notion-cli", "credentials.json"
)

# Endpoints that only read; safe to retry.
IDEMPOTENT_ENDPOINTS = frozenset(
    {
        "syncRecordValues",
        "loadPageChunk",
        "queryCollection",
        "loadUserContent",
        "getSpaces",
        "getBacklinksForBlock",
        "search",
    }
)

# Select/multi-select option colours, cycled by existing option count.
OPTION_COLORS = (
    "default",
    "gray",
    "brown",
    "orange",
    "yellow",
    "green",
    "blue",
    "purple",
    "pink",
    "red",
)

# Block types listed by `page list`.
PAGE_BLOCK_TYPES = frozenset({"page", "collection_view_page", "collection_view"})
COLLECTION_BLOCK_TYPES = frozenset({"collection_view", "collection_view_page"})

VALID_MCP_RESPONSE_MODES = {"legacy", "envelope"}

# ---------------------------------------------------------------------------
# Module-level state (loaded from .env)
# ---------------------------------------------------------------------------

env = load_env()

TOKEN_V2 = env.get("NOTION_TOKEN_V2", "")
USER_ID = env.get("NOTION_USER_ID", "")
BASE_URL = env.get("NOTION_BASE_URL", "") or DEFAULT_BASE_URL
CREDENTIALS_PATH = os.path.expanduser(
    env.get("NOTION_CREDENTIALS_PATH", "") or DEFAULT_CREDENTIALS_PATH
)
HTTP_TIMEOUT_SECONDS = _env_int("NOTION_HTTP_TIMEOUT_SECONDS", 30)
HTTP_MAX_RETRIES = _env_int("NOTION_HTTP_MAX_RETRIES", 0)
HTTP_RETRY_BASE_SECONDS = _env_float("NOTION_HTTP_RETRY_BASE_SECONDS", 1.0)
HTTP_MAX_RESPONSE_BYTES = _env_int("NOTION_HTTP_MAX_RESPONSE_BYTES", 20_000_000)
HTTP_LOG_ENABLED = _env_bool("NOTION_HTTP_LOG", False)
HTTP_LOG_SAMPLE_RATE = min(1.0, max(0.0, _env_float("NOTION_HTTP_LOG_SAMPLE_RATE", 1.0)))
MAX_PAGE_CHUNKS = max(1, _env_int("NOTION_MAX_PAGE_CHUNKS", 1000))
PAGE_CHUNK_LIMIT = max(1, _env_int("NOTION_CHUNK_LIMIT", 100))
QUERY_LIMIT = max(1, _env_int("NOTION_QUERY_LIMIT", 50))

MCP_RESPONSE_MODE = env.get("NOTION_MCP_RESPONSE_MODE", "legacy").strip().lower()
if MCP_RESPONSE_MODE not in VALID_MCP_RESPONSE_MODES:
    MCP_RESPONSE_MODE = "legacy"

# ---------------------------------------------------------------------------
# Runtime flags (set by the CLI entry point)
# ---------------------------------------------------------------------------

RUNTIME_QUIET = False
RUNTIME_VERBOSE = False
