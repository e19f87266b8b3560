"""
Credentials and per-workspace sessions.

A Session is an explicit value handed to every transport call; nothing in
this package keeps an ambient "active user".
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field

from notion_cli import api, config
from notion_cli.exceptions import CliError, SetupError


@dataclass(frozen=True)
class Session:
    """One authenticated identity: the token_v2 cookie plus the acting user id."""

    token_v2: str
    user_id: str | None = None


@dataclass(frozen=True)
class Credentials:
    """Stored credentials. ``user_ids`` lists every account the token can act as."""

    token_v2: str
    user_id: str | None = None
    user_ids: tuple[str, ...] = field(default_factory=tuple)

    def default_session(self) -> Session:
        return Session(token_v2=self.token_v2, user_id=self.user_id or None)


def _read_credentials_file(path):
    if not os.path.exists(path):
        return None
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise SetupError(f"[SETUP_NEEDED] Could not read credentials file {path}: {e}") from e
    creds = data.get("credentials") if isinstance(data, dict) else None
    if not isinstance(creds, dict):
        return None
    return creds


def load_credentials(path=None) -> Credentials:
    """Return credentials from the environment, else from the credentials file.

    Raises:
        SetupError: when no token_v2 is available.
    """
    if config.TOKEN_V2:
        return Credentials(token_v2=config.TOKEN_V2, user_id=config.USER_ID or None)
    creds = _read_credentials_file(path or config.CREDENTIALS_PATH)
    if not creds or not creds.get("token_v2"):
        raise SetupError(
            "[SETUP_NEEDED] No Notion credentials found.\n"
            "  Set NOTION_TOKEN_V2 in .env or the environment, or write "
            f"{path or config.CREDENTIALS_PATH}"
        )
    user_ids = creds.get("user_ids") or []
    return Credentials(
        token_v2=creds["token_v2"],
        user_id=creds.get("user_id"),
        user_ids=tuple(u for u in user_ids if isinstance(u, str)),
    )


def active_session(credentials: Credentials, workspace_id=None, invoke=api.invoke) -> Session:
    """Resolve which signed-in user owns *workspace_id*.

    Calls ``getSpaces`` once and binds the session to the user whose space map
    contains the workspace. Without a workspace id, or when no user matches,
    the credentials' default session is returned.
    """
    session = credentials.default_session()
    if not workspace_id:
        return session
    response = invoke(session, "getSpaces", {})
    if not isinstance(response, dict):
        raise CliError("[ERROR] Unexpected getSpaces response shape: expected JSON object.")
    for user_id, entry in response.items():
        spaces = entry.get("space") if isinstance(entry, dict) else None
        if isinstance(spaces, dict) and workspace_id in spaces:
            return Session(token_v2=credentials.token_v2, user_id=user_id)
    return session
