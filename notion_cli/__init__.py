"""notion-cli: command-line and MCP access to Notion through its internal API."""

from notion_cli.client import NotionClient
from notion_cli.config import VERSION
from notion_cli.exceptions import (
    CliError,
    InconsistencyError,
    NotFoundError,
    PartialFailureError,
    SetupError,
    ValidationError,
)
from notion_cli.session import Credentials, Session
from notion_cli.types import (
    BatchResult,
    DatabaseDetail,
    PageDetail,
    PageListResult,
    QueryResult,
    ViewDetail,
)

__all__ = [
    "VERSION",
    "NotionClient",
    "Credentials",
    "Session",
    "CliError",
    "SetupError",
    "NotFoundError",
    "ValidationError",
    "InconsistencyError",
    "PartialFailureError",
    "BatchResult",
    "DatabaseDetail",
    "PageDetail",
    "PageListResult",
    "QueryResult",
    "ViewDetail",
]
