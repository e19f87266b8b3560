"""Read tools: workspaces, pages, blocks, databases and comments (14 tools)."""

from __future__ import annotations

from notion_cli import CliError
from notion_cli.mcp_server._core import (
    _call,
    _contract_error,
    _finalize_tool_result,
    _validate_id,
)
from notion_cli.mcp_server._security import (
    _sanitize_listing,
    _sanitize_page,
    _sanitize_rows,
    _tag_user_text,
    _validate_input,
)


def _error(e: CliError) -> dict:
    return _finalize_tool_result(_contract_error(str(e), "error"))


def list_workspaces() -> list | dict:
    """List workspaces reachable by every signed-in account.

    Returns:
        List of {id, name, icon, plan_type}.
    """
    return _finalize_tool_result(_call("list_workspaces"))


def get_me() -> dict | list:
    """Describe the signed-in account(s) and the workspaces each can reach."""
    return _finalize_tool_result(_call("get_me"))


def get_user(user_id: str) -> dict:
    """Get one user's name and email."""
    try:
        user_id = _validate_id(user_id, "user_id")
    except CliError as e:
        return _error(e)
    return _finalize_tool_result(_call("get_user", user_id=user_id))


def search(
    query: str,
    workspace_id: str | None = None,
    limit: int = 20,
    navigable_only: bool = True,
) -> dict:
    """Quick-find search over page titles and content.

    Args:
        query: Search text.
        workspace_id: Workspace to search (defaults to the account's first one).
        limit: Max hits (default 20).
        navigable_only: False to include non-page blocks.

    Returns:
        Dict with results [{id, title, score, spaceId}] and total.
    """
    try:
        query = _validate_input(query, "query")
        if workspace_id is not None:
            workspace_id = _validate_id(workspace_id, "workspace_id")
    except CliError as e:
        return _error(e)
    result = _call(
        "search",
        query=query,
        workspace_id=workspace_id,
        limit=limit,
        navigable_only=navigable_only,
    )
    return _finalize_tool_result(_sanitize_listing(result, "results", "title"))


def list_pages(workspace_id: str | None = None, depth: int = 1) -> dict:
    """List a workspace's top-level pages.

    Args:
        depth: Levels of sub-pages to include (1 = top level only).

    Returns:
        Dict with pages [{id, title, type, children?}] and total.
    """
    try:
        if workspace_id is not None:
            workspace_id = _validate_id(workspace_id, "workspace_id")
    except CliError as e:
        return _error(e)
    result = _call("list_pages", workspace_id=workspace_id, depth=depth)
    return _finalize_tool_result(_sanitize_listing(result, "pages", "title"))


def get_page(page_id: str, backlinks: bool = False) -> dict:
    """Get a page title and its full nested block tree.

    Args:
        backlinks: True to also list pages that mention this one.

    Returns:
        Dict with id, title, blocks [{id, type, text, children?}], backlinks?.
    """
    try:
        page_id = _validate_id(page_id)
    except CliError as e:
        return _error(e)
    result = _call("get_page", page_id=page_id, backlinks=backlinks)
    if isinstance(result, dict) and result.get("ok") is not False:
        result = _sanitize_page(result)
    return _finalize_tool_result(result)


def get_block(block_id: str) -> dict:
    """Get one block's type, text, children ids and parent."""
    try:
        block_id = _validate_id(block_id, "block_id")
    except CliError as e:
        return _error(e)
    result = _call("get_block", block_id=block_id)
    if isinstance(result, dict) and isinstance(result.get("text"), str):
        result = dict(result, text=_tag_user_text(result["text"]))
    return _finalize_tool_result(result)


def list_block_children(block_id: str, limit: int | None = None) -> dict:
    """List the direct children of a block (first chunk only).

    Returns:
        Dict with results [{id, type, text}] and has_more.
    """
    try:
        block_id = _validate_id(block_id, "block_id")
    except CliError as e:
        return _error(e)
    result = _call("list_block_children", block_id=block_id, limit=limit)
    return _finalize_tool_result(_sanitize_listing(result, "results", "text"))


def get_database(database_id: str) -> dict:
    """Get a database schema by display name.

    Returns:
        Dict with id, name, schema {name: {type, options?}}; diagnostics
        lists rollups whose relation or target property no longer exists.
    """
    try:
        database_id = _validate_id(database_id, "database_id")
    except CliError as e:
        return _error(e)
    return _finalize_tool_result(_call("get_database", collection_id=database_id))


def list_databases() -> list | dict:
    """List databases in the signed-in user's content."""
    return _finalize_tool_result(_call("list_databases"))


def query_database(
    database_id: str,
    view_id: str | None = None,
    limit: int | None = None,
    search_query: str = "",
    filter: dict | None = None,
    sort: list | None = None,
) -> dict:
    """Query database rows. Values are decoded per property type.

    Args:
        view_id: View to query through (default: first view of the database).
        limit: Max rows (default 50).
        filter/sort: Raw queryCollection filter object and sort list.

    Returns:
        Dict with results [{id, properties {name: {type, value}}}] and has_more.
    """
    try:
        database_id = _validate_id(database_id, "database_id")
        if view_id is not None:
            view_id = _validate_id(view_id, "view_id")
        search_query = _validate_input(search_query, "query")
    except CliError as e:
        return _error(e)
    result = _call(
        "query_database",
        collection_id=database_id,
        view_id=view_id,
        limit=limit,
        search_query=search_query,
        filter=filter,
        sort=sort,
    )
    return _finalize_tool_result(_sanitize_rows(result))


def get_database_view(view_id: str) -> dict:
    """Get a view's column order, visibility and widths."""
    try:
        view_id = _validate_id(view_id, "view_id")
    except CliError as e:
        return _error(e)
    return _finalize_tool_result(_call("get_database_view", view_id=view_id))


def list_comments(page_id: str) -> dict:
    """List comments in every discussion on a page and its blocks."""
    try:
        page_id = _validate_id(page_id)
    except CliError as e:
        return _error(e)
    result = _call("list_comments", page_id=page_id)
    return _finalize_tool_result(_sanitize_listing(result, "results", "text"))


def get_comment(comment_id: str) -> dict:
    """Get one comment."""
    try:
        comment_id = _validate_id(comment_id, "comment_id")
    except CliError as e:
        return _error(e)
    result = _call("get_comment", comment_id=comment_id)
    if isinstance(result, dict) and isinstance(result.get("text"), str):
        result = dict(result, text=_tag_user_text(result["text"]))
    return _finalize_tool_result(result)


def register(mcp):
    """Register all read tools with the FastMCP instance."""
    mcp.tool()(list_workspaces)
    mcp.tool()(get_me)
    mcp.tool()(get_user)
    mcp.tool()(search)
    mcp.tool()(list_pages)
    mcp.tool()(get_page)
    mcp.tool()(get_block)
    mcp.tool()(list_block_children)
    mcp.tool()(get_database)
    mcp.tool()(list_databases)
    mcp.tool()(query_database)
    mcp.tool()(get_database_view)
    mcp.tool()(list_comments)
    mcp.tool()(get_comment)
