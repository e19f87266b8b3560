"""
Command implementations for notion-cli.
Each cmd_*() function receives an argparse.Namespace and handles one CLI command.

Business logic lives in client.py (NotionClient). These thin wrappers
handle argparse -> keyword args, format selection, and formatter dispatch.
"""

import sys

from notion_cli import batch
from notion_cli.client import NotionClient
from notion_cli.exceptions import CliError
from notion_cli.formatters import (
    format_batch_table,
    format_blocks_table,
    format_comments_table,
    format_database_detail,
    format_databases_table,
    format_mutation,
    format_page_detail,
    format_page_list_table,
    format_rows_table,
    format_search_table,
    format_view_table,
    format_workspaces_table,
    output,
)


def _client(ns):
    return NotionClient(workspace_id=getattr(ns, "workspace_id", None))


# ---------------------------------------------------------------------------
# Workspaces, users, search
# ---------------------------------------------------------------------------


def cmd_workspace_list(ns):
    output(_client(ns).list_workspaces(), format_workspaces_table, ns.format)


def cmd_user_me(ns):
    output(_client(ns).get_me(), format_mutation, ns.format)


def cmd_user_get(ns):
    output(_client(ns).get_user(ns.user_id), format_mutation, ns.format)


def cmd_search(ns):
    result = _client(ns).search(
        ns.query,
        workspace_id=ns.workspace_id,
        limit=ns.limit,
        navigable_only=not ns.all_blocks,
    )
    output(result, format_search_table, ns.format)


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------


def cmd_page_list(ns):
    result = _client(ns).list_pages(workspace_id=ns.workspace_id, depth=ns.depth)
    output(result, format_page_list_table, ns.format)


def cmd_page_get(ns):
    result = _client(ns).get_page(ns.page_id, backlinks=ns.backlinks, limit=ns.limit)
    output(result, format_page_detail, ns.format)


def cmd_page_create(ns):
    result = _client(ns).create_page(parent=ns.parent, title=ns.title, content=ns.content)
    output(result, format_mutation, ns.format)


def cmd_page_update(ns):
    result = _client(ns).update_page(
        ns.page_id,
        title=ns.title,
        icon=ns.icon,
        content=ns.content,
        replace_content=ns.replace_content,
    )
    output(result, format_mutation, ns.format)


def cmd_page_archive(ns):
    output(_client(ns).archive_page(ns.page_id), format_mutation, ns.format)


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


def cmd_block_get(ns):
    output(_client(ns).get_block(ns.block_id), format_mutation, ns.format)


def cmd_block_children(ns):
    result = _client(ns).list_block_children(ns.block_id, limit=ns.limit)
    output(result, format_blocks_table, ns.format)


def cmd_block_append(ns):
    output(_client(ns).append_blocks(ns.parent_id, ns.content), format_mutation, ns.format)


def cmd_block_update(ns):
    output(_client(ns).update_block(ns.block_id, ns.content), format_mutation, ns.format)


def cmd_block_delete(ns):
    output(_client(ns).delete_block(ns.block_id), format_mutation, ns.format)


# ---------------------------------------------------------------------------
# Databases
# ---------------------------------------------------------------------------


def cmd_database_get(ns):
    output(_client(ns).get_database(ns.database_id), format_database_detail, ns.format)


def cmd_database_list(ns):
    output(_client(ns).list_databases(), format_databases_table, ns.format)


def cmd_database_query(ns):
    result = _client(ns).query_database(
        ns.database_id,
        view_id=ns.view_id,
        limit=ns.limit,
        search_query=ns.search_query,
        timezone=ns.timezone,
        filter=ns.filter,
        sort=ns.sort,
    )
    output(result, format_rows_table, ns.format)


def cmd_database_create(ns):
    result = _client(ns).create_database(
        parent=ns.parent, title=ns.title, properties=ns.properties
    )
    output(result, format_database_detail, ns.format)


def cmd_database_update(ns):
    result = _client(ns).update_database(
        ns.database_id, title=ns.title, properties=ns.properties
    )
    output(result, format_database_detail, ns.format)


def cmd_database_delete_property(ns):
    result = _client(ns).delete_database_property(ns.database_id, property=ns.property)
    output(result, format_database_detail, ns.format)


def cmd_database_add_row(ns):
    result = _client(ns).add_database_row(
        ns.database_id, title=ns.title, properties=ns.properties, view_id=ns.view_id
    )
    output(result, format_mutation, ns.format)


def cmd_database_update_row(ns):
    result = _client(ns).update_database_row(ns.row_id, properties=ns.properties)
    output(result, format_mutation, ns.format)


def cmd_database_view_get(ns):
    output(_client(ns).get_database_view(ns.view_id), format_view_table, ns.format)


def cmd_database_view_update(ns):
    result = _client(ns).update_database_view(
        ns.view_id, show=ns.show, hide=ns.hide, reorder=ns.reorder, resize=ns.resize
    )
    output(result, format_view_table, ns.format)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


def cmd_comment_list(ns):
    output(_client(ns).list_comments(ns.page_id), format_comments_table, ns.format)


def cmd_comment_create(ns):
    result = _client(ns).create_comment(ns.text, page=ns.page, discussion=ns.discussion)
    output(result, format_mutation, ns.format)


def cmd_comment_get(ns):
    output(_client(ns).get_comment(ns.comment_id), format_mutation, ns.format)


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


def cmd_batch(ns):
    if ns.file and ns.operations:
        raise CliError("[ERROR] Pass operations either inline or with --file, not both.")
    if ns.file:
        raw = sys.stdin.read() if ns.file == "-" else batch.read_operations_file(ns.file)
    elif ns.operations:
        raw = ns.operations
    else:
        raise CliError("[ERROR] Operations are required (JSON array argument or --file).")
    result = _client(ns).batch(raw)
    output(result, format_batch_table, ns.format)
    if result["failed"]:
        sys.exit(1)
