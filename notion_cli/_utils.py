"""
Shared pure-utility functions for notion-cli.

These helpers have no business logic and no side effects beyond id
generation. They are used across records.py, codec.py, client.py and
formatters.
"""

import random
import re
import string
import sys
import uuid

from notion_cli import config

_HEX32_RE = re.compile(r"^[0-9a-fA-F]{32}$")
_OPTION_ID_ALPHABET = string.ascii_letters + string.digits


def format_notion_id(raw):
    """Turn a 32-char dashless hex id into the hyphenated UUID form.

    Anything else (already hyphenated, short, non-hex) is returned unchanged.
    """
    if not isinstance(raw, str):
        return raw
    hex_id = raw.replace("-", "")
    if not _HEX32_RE.match(hex_id):
        return raw
    return f"{hex_id[:8]}-{hex_id[8:12]}-{hex_id[12:16]}-{hex_id[16:20]}-{hex_id[20:]}"


def generate_id():
    """Return a fresh record id (random UUID4 string)."""
    return str(uuid.uuid4())


def generate_option_id():
    """Return a 4-char alphanumeric select-option id."""
    return "".join(random.choice(_OPTION_ID_ALPHABET) for _ in range(4))


def _to_dict(value):
    return value if isinstance(value, dict) else None


def _to_str(value):
    return value if isinstance(value, str) else ""


def _opt_str(value):
    return value if isinstance(value, str) else None


def _str_list(value):
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


def warn(message):
    """Print a warning to stderr unless --quiet is active."""
    if not config.RUNTIME_QUIET:
        print(f"[WARN] {message}", file=sys.stderr)
