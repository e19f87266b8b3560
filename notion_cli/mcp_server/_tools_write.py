"""Write tools: page, block, database, comment mutations and batch (14 tools)."""

from __future__ import annotations

import json

from notion_cli import CliError
from notion_cli.mcp_server._core import (
    _call,
    _contract_error,
    _finalize_tool_result,
    _validate_id,
)
from notion_cli.mcp_server._security import _validate_input, _validate_optional


def _error(e: CliError) -> dict:
    return _finalize_tool_result(_contract_error(str(e), "error"))


def _json_input(value, field: str):
    """Length-check structured input; strings pass through for client-side parsing."""
    if value is None:
        return None
    if isinstance(value, str):
        return _validate_input(value, field)
    _validate_input(json.dumps(value, ensure_ascii=False), field)
    return value


def create_page(parent_id: str, title: str, content: list | str | None = None) -> dict:
    """Create a page under a parent page.

    Args:
        parent_id: Parent page id.
        title: Page title (max 500 chars).
        content: Body as a list of block definitions, e.g.
            [{"type": "text", "properties": {"title": [["Hello"]]}}].

    Returns:
        Dict with id, title, type and parent_id.
    """
    try:
        parent_id = _validate_id(parent_id, "parent_id")
        title = _validate_input(title, "title")
        content = _json_input(content, "content")
    except CliError as e:
        return _error(e)
    return _finalize_tool_result(
        _call("create_page", parent=parent_id, title=title, content=content)
    )


def update_page(
    page_id: str,
    title: str | None = None,
    icon: str | None = None,
    content: list | str | None = None,
    replace_content: bool = False,
) -> dict:
    """Rename a page, change its icon, or append/replace its body.

    With replace_content=True the existing body is removed first. If the
    new body then fails to save, the error says the page was left empty.
    """
    try:
        page_id = _validate_id(page_id)
        title = _validate_optional(title, "title")
        icon = _validate_optional(icon, "icon")
        content = _json_input(content, "content")
    except CliError as e:
        return _error(e)
    return _finalize_tool_result(
        _call(
            "update_page",
            page_id=page_id,
            title=title,
            icon=icon,
            content=content,
            replace_content=replace_content,
        )
    )


def archive_page(page_id: str) -> dict:
    """Archive a page and remove it from its parent."""
    try:
        page_id = _validate_id(page_id)
    except CliError as e:
        return _error(e)
    return _finalize_tool_result(_call("archive_page", page_id=page_id))


def append_blocks(parent_id: str, content: list | str) -> dict:
    """Append block definitions to a page or block.

    Returns:
        Dict with created: new block ids in input order.
    """
    try:
        parent_id = _validate_id(parent_id, "parent_id")
        content = _json_input(content, "content")
    except CliError as e:
        return _error(e)
    return _finalize_tool_result(_call("append_blocks", parent_id=parent_id, content=content))


def update_block(block_id: str, content: dict | str) -> dict:
    """Merge a JSON object into a block record (e.g. {"properties": {...}})."""
    try:
        block_id = _validate_id(block_id, "block_id")
        content = _json_input(content, "content")
    except CliError as e:
        return _error(e)
    return _finalize_tool_result(_call("update_block", block_id=block_id, content=content))


def delete_block(block_id: str) -> dict:
    """Archive a block and remove it from its parent."""
    try:
        block_id = _validate_id(block_id, "block_id")
    except CliError as e:
        return _error(e)
    return _finalize_tool_result(_call("delete_block", block_id=block_id))


def create_database(parent_id: str, title: str, properties: dict | str | None = None) -> dict:
    """Create a database page.

    Args:
        properties: {key: {name, type, ...}}. Rollups may give relation_property
            and target_property as display names.

    Returns:
        Dict with id, name, schema, view_id and page_id.
    """
    try:
        parent_id = _validate_id(parent_id, "parent_id")
        title = _validate_input(title, "title")
        properties = _json_input(properties, "properties")
    except CliError as e:
        return _error(e)
    return _finalize_tool_result(
        _call("create_database", parent=parent_id, title=title, properties=properties)
    )


def update_database(
    database_id: str, title: str | None = None, properties: dict | str | None = None
) -> dict:
    """Rename a database and/or merge property definitions into its schema."""
    try:
        database_id = _validate_id(database_id, "database_id")
        title = _validate_optional(title, "title")
        properties = _json_input(properties, "properties")
    except CliError as e:
        return _error(e)
    return _finalize_tool_result(
        _call("update_database", collection_id=database_id, title=title, properties=properties)
    )


def delete_database_property(database_id: str, property: str) -> dict:
    """Remove a property from a database schema. Rollups using it are not repaired."""
    try:
        database_id = _validate_id(database_id, "database_id")
        property = _validate_input(property, "title")
    except CliError as e:
        return _error(e)
    return _finalize_tool_result(
        _call("delete_database_property", collection_id=database_id, property=property)
    )


def add_database_row(
    database_id: str,
    title: str | None = None,
    properties: dict | str | None = None,
    view_id: str | None = None,
) -> dict:
    """Add a row. Properties are {display name: value}; new select options are created."""
    try:
        database_id = _validate_id(database_id, "database_id")
        title = _validate_optional(title, "title")
        properties = _json_input(properties, "properties")
        if view_id is not None:
            view_id = _validate_id(view_id, "view_id")
    except CliError as e:
        return _error(e)
    return _finalize_tool_result(
        _call(
            "add_database_row",
            collection_id=database_id,
            title=title,
            properties=properties,
            view_id=view_id,
        )
    )


def update_database_row(row_id: str, properties: dict | str) -> dict:
    """Set properties on an existing row by display name."""
    try:
        row_id = _validate_id(row_id, "row_id")
        properties = _json_input(properties, "properties")
    except CliError as e:
        return _error(e)
    return _finalize_tool_result(
        _call("update_database_row", row_id=row_id, properties=properties)
    )


def update_database_view(
    view_id: str,
    show: list[str] | None = None,
    hide: list[str] | None = None,
    reorder: list[str] | None = None,
    resize: dict | None = None,
) -> dict:
    """Show, hide, reorder or resize view columns by property display name.

    Args:
        reorder: Names to move to the front, in order; others keep their order.
        resize: {name: width in pixels}.
    """
    try:
        view_id = _validate_id(view_id, "view_id")
    except CliError as e:
        return _error(e)
    return _finalize_tool_result(
        _call(
            "update_database_view",
            view_id=view_id,
            show=show,
            hide=hide,
            reorder=reorder,
            resize=resize,
        )
    )


def create_comment(
    text: str, page_id: str | None = None, discussion_id: str | None = None
) -> dict:
    """Comment on a page (new discussion) or reply in a discussion. Give exactly one id."""
    try:
        text = _validate_input(text, "text")
        if page_id is not None:
            page_id = _validate_id(page_id)
        if discussion_id is not None:
            discussion_id = _validate_id(discussion_id, "discussion_id")
    except CliError as e:
        return _error(e)
    return _finalize_tool_result(
        _call("create_comment", text=text, page=page_id, discussion=discussion_id)
    )


def batch(operations: list[dict] | str) -> dict:
    """Run write operations in order, stopping at the first failure.

    Args:
        operations: [{"action": "page.create", "parent_id": ..., "title": ...}, ...].
            Actions: page.create/update/archive, block.append/update/delete,
            comment.create, database.create/update/delete-property/add-row/update-row.

    Returns:
        Dict with results [{index, action, success, data|error}], total,
        succeeded and failed.
    """
    try:
        operations = _json_input(operations, "operations")
    except CliError as e:
        return _error(e)
    return _finalize_tool_result(_call("batch", operations=operations))


def register(mcp):
    """Register all write tools with the FastMCP instance."""
    mcp.tool()(create_page)
    mcp.tool()(update_page)
    mcp.tool()(archive_page)
    mcp.tool()(append_blocks)
    mcp.tool()(update_block)
    mcp.tool()(delete_block)
    mcp.tool()(create_database)
    mcp.tool()(update_database)
    mcp.tool()(delete_database_property)
    mcp.tool()(add_database_row)
    mcp.tool()(update_database_row)
    mcp.tool()(update_database_view)
    mcp.tool()(create_comment)
    mcp.tool()(batch)
