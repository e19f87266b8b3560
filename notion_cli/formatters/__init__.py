"""Output formatting package for notion-cli.

Re-exports all public names so consumers can do:
    from notion_cli.formatters import format_rows_table
"""

from notion_cli.formatters._core import (
    format_mutation,
    output,
    pretty_print,
)
from notion_cli.formatters._databases import (
    format_database_detail,
    format_databases_table,
    format_rows_table,
    format_view_table,
)
from notion_cli.formatters._pages import (
    format_batch_table,
    format_blocks_table,
    format_comments_table,
    format_page_detail,
    format_page_list_table,
    format_search_table,
    format_workspaces_table,
)
from notion_cli.formatters._table import (
    _CONTROL_RE,
    _sanitize_str,
    _table,
    _trunc,
)

__all__ = [
    "_CONTROL_RE",
    "_sanitize_str",
    "_table",
    "_trunc",
    "format_batch_table",
    "format_blocks_table",
    "format_comments_table",
    "format_database_detail",
    "format_databases_table",
    "format_mutation",
    "format_page_detail",
    "format_page_list_table",
    "format_rows_table",
    "format_search_table",
    "format_view_table",
    "format_workspaces_table",
    "output",
    "pretty_print",
]
