"""
NotionClient: public Python API over the Notion internal (v3) API.

Single entry point for the CLI, the MCP server and programmatic use.
All methods return plain dicts/lists suitable for JSON serialization and
raise CliError subclasses on failure.
"""

from __future__ import annotations

import copy

# TypedDict return types live in notion_cli.types for documentation.
# Method signatures use plain dict[str, Any] for mypy compatibility.
from typing import Any

from notion_cli import api, batch, codec, config, shapes
from notion_cli._utils import _opt_str, _str_list, _to_dict, format_notion_id, warn
from notion_cli.exceptions import (
    CliError,
    InconsistencyError,
    NotFoundError,
    PartialFailureError,
    ValidationError,
)
from notion_cli.models import ObjectPayload, ViewUpdateSpec, parse_block_definitions
from notion_cli.operations import (
    Transaction,
    archive_ops,
    build_append_blocks,
    build_block_update,
    build_clear_children,
    build_collection_update,
    build_create_collection,
    build_create_page,
    build_create_row,
    build_page_comment,
    build_reply,
    build_update_row,
    build_view_properties,
    icon_op,
    save_request,
    schema_replace_op,
    title_op,
)
from notion_cli.records import (
    fetch_record,
    record_map_values,
    require_record,
    resolve_collection_view_id,
    resolve_space_id,
    sync_mixed,
    sync_records,
)
from notion_cli.schema import (
    alive_entries,
    delete_property,
    display_name,
    initial_schema,
    merge_properties,
    prepare_properties,
    register_options,
    resolve_key,
    rollup_diagnostics,
    simplify,
    title_key,
)
from notion_cli.session import active_session, load_credentials
from notion_cli.walker import load_first_chunk, walk_page_chunks

# Property types whose values the service computes.
_READ_ONLY_TYPES = frozenset(
    {"rollup", "formula", "created_time", "last_edited_time", "created_by", "last_edited_by"}
)


def _require_id(value, label):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"[ERROR] {label} is required.")
    return format_notion_id(value.strip())


def _space_of(record, label, record_id):
    space_id = _opt_str(record.get("space_id"))
    if not space_id:
        raise InconsistencyError(f"[ERROR] Could not resolve space ID for {label}: {record_id}")
    return space_id


def _strip_prefix(message):
    return message[len("[ERROR] ") :] if message.startswith("[ERROR] ") else message


class NotionClient:
    """Public API surface for Notion pages, blocks, databases and comments.

    Every remote call goes through one Session resolved at construction, so
    multi-account tokens act as the user that owns ``workspace_id``.
    """

    def __init__(self, credentials=None, workspace_id=None, *, session=None, invoke=api.invoke):
        """Initialize the client.

        Args:
            credentials: Credentials to use. Loaded from the environment or
                the credentials file when omitted.
            workspace_id: Workspace the calls act in; selects the account
                of a multi-account token and scopes search/page listing.
            session: Pre-resolved Session (skips credential loading).
            invoke: Transport function ``(session, endpoint, body)``.
        """
        self._invoke = invoke
        self.workspace_id = format_notion_id(workspace_id) if workspace_id else None
        if session is None:
            credentials = credentials or load_credentials()
            session = active_session(credentials, self.workspace_id, invoke=invoke)
        self.session = session

    # -------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------

    def _request(self, endpoint, body=None):
        return self._invoke(self.session, endpoint, body or {})

    def _save(self, *transactions):
        """Submit transactions in one saveTransactions call."""
        return self._request("saveTransactions", save_request(*transactions))

    def _collection(self, collection_id):
        return require_record(self._request, "collection", collection_id, "Collection")

    def _load_schema(self, collection_id):
        if not isinstance(collection_id, str) or not collection_id:
            return {}
        collection = fetch_record(self._request, "collection", collection_id)
        return (collection or {}).get("schema") or {}

    def _collection_space(self, collection_id, collection):
        space_id = _opt_str(collection.get("space_id"))
        if space_id:
            return space_id
        parent_id = _opt_str(collection.get("parent_id"))
        if not parent_id:
            raise InconsistencyError(
                f"[ERROR] Could not resolve space ID for collection: {collection_id}"
            )
        return resolve_space_id(self._request, parent_id)

    def _workspace(self, workspace_id):
        space_id = format_notion_id(workspace_id) if workspace_id else self.workspace_id
        if not space_id:
            raise ValidationError(
                "[ERROR] --workspace-id is required. Use `notion-cli workspace list` to find it."
            )
        return space_id

    def _archive_transaction(self, block_id, block):
        """update alive=false + listRemove from whichever list holds the block."""
        parent_id = _opt_str(block.get("parent_id"))
        if not parent_id:
            raise InconsistencyError(
                f"[ERROR] Block {block_id} has no parent_id; cannot archive it."
            )
        space_id = _space_of(block, "block", block_id)
        parent_table = _opt_str(block.get("parent_table")) or "block"
        if parent_table == "space":
            table, list_id, path = "space", parent_id, ("pages",)
        elif parent_table == "collection":
            table = "collection_view"
            list_id = resolve_collection_view_id(self._request, parent_id)
            path = ("page_sort",)
        else:
            table, list_id, path = "block", parent_id, ("content",)
        ops = archive_ops(block_id, list_id, space_id, parent_table=table, list_path=path)
        return Transaction(space_id, tuple(ops))

    def _encode_properties(self, collection_id, space_id, schema, properties):
        """Encode ``{name: value}`` against *schema*.

        Returns ``(encoded {key: segments}, option_ops)``; *schema* picks up
        any newly registered options.
        """
        encoded = {}
        option_ops = []
        entries = alive_entries(schema)
        for name, value in properties.items():
            key = resolve_key(schema, name)
            prop_type = entries[key].get("type")
            if prop_type in _READ_ONLY_TYPES:
                raise ValidationError(f'[ERROR] Property "{name}" ({prop_type}) is read-only.')
            option_ops.extend(
                register_options(
                    collection_id, space_id, schema, key, codec.option_values(prop_type, value)
                )
            )
            encoded[key] = codec.encode(prop_type, value)
        return encoded, option_ops

    def _decoded(self, schema, encoded):
        entries = alive_entries(schema)
        return {
            display_name(key, entries[key]): codec.decode(segments, entries[key].get("type"))
            for key, segments in encoded.items()
            if key in entries
        }

    # -------------------------------------------------------------------
    # Workspaces and users
    # -------------------------------------------------------------------

    def list_workspaces(self) -> list[dict[str, Any]]:
        """List workspaces reachable by every signed-in account, de-duplicated.

        Returns:
            list of dicts with keys: id, name, icon, plan_type.
        """
        return shapes.workspace_entries(self._request("getSpaces"))

    def get_me(self) -> dict[str, Any] | list[dict[str, Any]]:
        """Describe the signed-in account(s).

        Returns:
            dict with id, name, email, spaces; a list when the token holds
            several accounts.
        """
        found = shapes.accounts(self._request("getSpaces"))
        return found[0] if len(found) == 1 else found

    def get_user(self, user_id: str) -> dict[str, Any]:
        user_id = _require_id(user_id, "User ID")
        user = require_record(self._request, "notion_user", user_id, "User")
        return shapes.user_output(user)

    def search(
        self,
        query: str,
        *,
        workspace_id: str | None = None,
        limit: int = 20,
        navigable_only: bool = True,
    ) -> dict[str, Any]:
        """Quick-find search over a workspace.

        Returns:
            dict with results [{id, title, score, spaceId}] and total.
        """
        space_id = self._workspace(workspace_id)
        body = {
            "type": "BlocksInSpace",
            "query": query,
            "spaceId": space_id,
            "limit": limit,
            "filters": {
                "isDeletedOnly": False,
                "excludeTemplates": False,
                "navigableBlockContentOnly": navigable_only,
                "requireEditPermissions": False,
                "ancestors": [],
                "createdBy": [],
                "editedBy": [],
                "lastEditedTime": {},
                "createdTime": {},
            },
            "sort": {"field": "relevance"},
            "source": "quick_find",
        }
        return shapes.search_results(self._request("search", body))

    # -------------------------------------------------------------------
    # Pages
    # -------------------------------------------------------------------

    def _walk_pages(self, page_ids, max_depth, depth, seen):
        page_ids = [p for p in page_ids if p not in seen]
        if not page_ids:
            return []
        blocks = sync_records(self._request, "block", page_ids)
        entries = []
        for page_id in page_ids:
            block = blocks.get(page_id)
            if block is None or block.get("alive") is False:
                continue
            block_type = _opt_str(block.get("type")) or "unknown"
            if block_type not in config.PAGE_BLOCK_TYPES:
                continue
            seen.add(page_id)
            entry = {"id": page_id, "title": shapes.block_text(block), "type": block_type}
            if depth < max_depth:
                children = self._walk_pages(
                    _str_list(block.get("content")), max_depth, depth + 1, seen
                )
                if children:
                    entry["children"] = children
            entries.append(entry)
        return entries

    def list_pages(self, *, workspace_id: str | None = None, depth: int = 1) -> dict[str, Any]:
        """List a workspace's top-level pages, descending *depth* levels.

        Returns:
            dict with pages [{id, title, type, children?}] and total.
        """
        space_id = self._workspace(workspace_id)
        if depth < 1:
            raise ValidationError("[ERROR] --depth must be at least 1.")
        space = shapes.find_space(self._request("getSpaces"), space_id)
        if space is None:
            raise NotFoundError(f"[ERROR] Space not found: {space_id}")
        pages = self._walk_pages(_str_list(space.get("pages")), depth, 1, set())
        return {"pages": pages, "total": len(pages)}

    def get_page(
        self, page_id: str, *, backlinks: bool = False, limit: int | None = None
    ) -> dict[str, Any]:
        """Load a page and its full block tree.

        Args:
            page_id: Page id (dashless ids accepted).
            backlinks: Also list pages that mention this one.
            limit: Blocks per loadPageChunk round trip.

        Returns:
            dict with id, title, blocks (nested), and backlinks when asked.
        """
        page_id = _require_id(page_id, "Page ID")
        tree = walk_page_chunks(self._request, page_id, limit)
        root = tree.root
        if root is None:
            raise NotFoundError(f"[ERROR] Page not found: {page_id}")
        result = {
            "id": page_id,
            "title": shapes.block_text(root),
            "blocks": shapes.block_tree(tree.blocks, _str_list(root.get("content"))),
        }
        if backlinks:
            response = self._request("getBacklinksForBlock", {"blockId": page_id})
            user_ids = shapes.backlink_user_ids(response)
            users = sync_records(self._request, "notion_user", user_ids)
            names = {uid: u["name"] for uid, u in users.items() if isinstance(u.get("name"), str)}
            result["backlinks"] = shapes.backlinks(response, names)
        return result

    def create_page(
        self, *, parent: str, title: str, content: str | list | None = None
    ) -> dict[str, Any]:
        """Create a page under a parent page/block.

        Args:
            parent: Parent block id.
            title: Page title.
            content: Optional JSON array of block definitions for the body.

        Returns:
            dict with id, title, type and parent_id.
        """
        parent_id = _require_id(parent, "Parent ID")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("[ERROR] Page title cannot be empty.")
        definitions = parse_block_definitions(content) if content is not None else []
        space_id = resolve_space_id(self._request, parent_id)
        page_id, tx = build_create_page(space_id, parent_id, title)
        if definitions:
            _, body = build_append_blocks(space_id, page_id, definitions)
            tx = Transaction(space_id, tx.operations + body.operations)
        self._save(tx)
        return {"id": page_id, "title": title, "type": "page", "parent_id": parent_id}

    def update_page(
        self,
        page_id: str,
        *,
        title: str | None = None,
        icon: str | None = None,
        content: str | list | None = None,
        replace_content: bool = False,
    ) -> dict[str, Any]:
        """Rename a page, change its icon, and/or rewrite its body.

        With ``replace_content`` the existing children are archived in one
        transaction and *content* is appended in a second one. Without it,
        *content* is appended after the existing children.

        Raises:
            PartialFailureError: the page was cleared but the new content
                could not be appended; the page is left empty.
        """
        page_id = _require_id(page_id, "Page ID")
        if title is None and icon is None and content is None and not replace_content:
            raise ValidationError(
                "[ERROR] Nothing to update. Use --title, --icon or --content."
            )
        if replace_content and content is None:
            raise ValidationError("[ERROR] --replace-content requires --content.")
        definitions = parse_block_definitions(content) if content is not None else []
        block = require_record(self._request, "block", page_id, "Page")
        space_id = _space_of(block, "block", page_id)
        block = dict(block, id=page_id)

        ops = []
        if title is not None:
            ops.append(title_op("block", page_id, space_id, title))
        if icon is not None:
            ops.append(icon_op(block, space_id, icon))
        if definitions and not replace_content:
            _, body = build_append_blocks(space_id, page_id, definitions)
            ops.extend(body.operations)
        if ops:
            self._save(Transaction(space_id, tuple(ops)))

        result: dict[str, Any] = {"id": page_id, "type": block.get("type")}
        if title is not None:
            result["title"] = title
        if icon is not None:
            result["icon"] = icon
        if replace_content:
            result["content"] = self._replace_content(
                page_id, space_id, _str_list(block.get("content")), definitions
            )
        return result

    def _replace_content(self, page_id, space_id, child_ids, definitions):
        if child_ids:
            self._save(build_clear_children(page_id, space_id, child_ids))
        if not definitions:
            return {"removed": len(child_ids), "created": []}
        ids, tx = build_append_blocks(space_id, page_id, definitions)
        try:
            self._save(tx)
        except CliError as e:
            raise PartialFailureError(
                "[ERROR] Page content cleared but new content failed to append: "
                f"{_strip_prefix(str(e))}. Page {page_id} is now empty.",
                completed="clear_children",
                failed="append_blocks",
            ) from e
        return {"removed": len(child_ids), "created": ids}

    def archive_page(self, page_id: str) -> dict[str, Any]:
        """Archive a page (soft delete) and unlink it from its parent.

        Returns:
            dict with archived=True and id.
        """
        page_id = _require_id(page_id, "Page ID")
        block = require_record(self._request, "block", page_id, "Page")
        self._save(self._archive_transaction(page_id, block))
        return {"archived": True, "id": page_id}

    # -------------------------------------------------------------------
    # Blocks
    # -------------------------------------------------------------------

    def get_block(self, block_id: str) -> dict[str, Any]:
        block_id = _require_id(block_id, "Block ID")
        block = require_record(self._request, "block", block_id, "Block")
        return shapes.block_detail(dict(block, id=block.get("id") or block_id))

    def list_block_children(self, block_id: str, *, limit: int | None = None) -> dict[str, Any]:
        """Children of a block from the first loadPageChunk round trip.

        Returns:
            dict with results [{id, type, text}] and has_more.
        """
        block_id = _require_id(block_id, "Block ID")
        tree = load_first_chunk(self._request, block_id, limit)
        if tree.root is None:
            raise NotFoundError(f"[ERROR] Block not found: {block_id}")
        children = [
            tree.blocks[cid] for cid in _str_list(tree.root.get("content")) if cid in tree.blocks
        ]
        return {
            "results": [shapes.block_summary(child) for child in children],
            "has_more": tree.has_more,
        }

    def append_blocks(self, parent_id: str, content: str | list) -> dict[str, Any]:
        """Append block definitions to a parent in one transaction.

        Returns:
            dict with created: ids in definition order.
        """
        parent_id = _require_id(parent_id, "Parent ID")
        definitions = parse_block_definitions(content)
        if not definitions:
            raise ValidationError("[ERROR] Content must include at least one block definition.")
        space_id = resolve_space_id(self._request, parent_id)
        ids, tx = build_append_blocks(space_id, parent_id, definitions)
        self._save(tx)
        return {"created": ids}

    def update_block(self, block_id: str, content: str | dict) -> dict[str, Any]:
        """Shallow-merge a JSON object into a block record, then re-read it."""
        block_id = _require_id(block_id, "Block ID")
        changes = ObjectPayload.from_value(content, "content").data
        space_id = resolve_space_id(self._request, block_id)
        self._save(build_block_update(block_id, space_id, changes))
        updated = require_record(self._request, "block", block_id, "Block")
        return shapes.block_detail(dict(updated, id=updated.get("id") or block_id))

    def delete_block(self, block_id: str) -> dict[str, Any]:
        block_id = _require_id(block_id, "Block ID")
        block = require_record(self._request, "block", block_id, "Block")
        self._save(self._archive_transaction(block_id, block))
        return {"deleted": True, "id": block_id}

    # -------------------------------------------------------------------
    # Databases
    # -------------------------------------------------------------------

    def get_database(self, collection_id: str) -> dict[str, Any]:
        """Describe a database: name, schema by display name, diagnostics.

        Returns:
            dict with id, name, schema {name: {type, options?}} and, when a
            rollup points at a property that no longer exists, diagnostics.
        """
        collection_id = _require_id(collection_id, "Database ID")
        collection = self._collection(collection_id)
        schema = collection.get("schema") or {}
        result = {
            "id": collection.get("id") or collection_id,
            "name": shapes.collection_name(collection),
            "schema": simplify(schema),
        }
        diagnostics = rollup_diagnostics(schema, self._load_schema)
        if diagnostics:
            result["diagnostics"] = diagnostics
        return result

    def list_databases(self) -> list[dict[str, Any]]:
        """Databases visible in the signed-in user's content."""
        response = _to_dict(self._request("loadUserContent")) or {}
        collections = record_map_values(_to_dict(response.get("recordMap")) or {}, "collection")
        return [
            shapes.collection_list_entry(dict(c, id=c.get("id") or cid))
            for cid, c in collections.items()
            if c.get("alive") is not False
        ]

    def query_database(
        self,
        collection_id: str,
        *,
        view_id: str | None = None,
        limit: int | None = None,
        search_query: str = "",
        timezone: str = "UTC",
        filter: dict | str | None = None,
        sort: list | str | None = None,
    ) -> dict[str, Any]:
        """Query rows through a view and decode every property.

        Relation and person values are resolved to titles/names with one
        batched syncRecordValues call.

        Returns:
            dict with results [{id, properties {name: {type, value}}}],
            has_more and next_cursor (always None).
        """
        collection_id = _require_id(collection_id, "Database ID")
        view_id = (
            format_notion_id(view_id)
            if view_id
            else resolve_collection_view_id(self._request, collection_id)
        )
        loader: dict[str, Any] = {
            "type": "reducer",
            "reducers": {
                "collection_group_results": {
                    "type": "results",
                    "limit": limit or config.QUERY_LIMIT,
                }
            },
            "searchQuery": search_query or "",
            "userTimeZone": timezone or "UTC",
        }
        if filter is not None:
            loader["filter"] = ObjectPayload.from_value(filter, "--filter").data
        if sort is not None:
            sort_value = sort
            if isinstance(sort, str):
                sort_value = api._safe_json_parse(sort, "--sort")
            if not isinstance(sort_value, list):
                raise ValidationError("[ERROR] --sort must be a JSON array.")
            loader["sort"] = sort_value
        response = _to_dict(
            self._request(
                "queryCollection",
                {"collectionId": collection_id, "collectionViewId": view_id, "loader": loader},
            )
        ) or {}
        row_ids, has_more = shapes.query_block_ids(response)
        record_map = _to_dict(response.get("recordMap")) or {}
        blocks = record_map_values(record_map, "block")
        missing = [rid for rid in row_ids if rid not in blocks]
        if missing:
            blocks.update(sync_records(self._request, "block", missing))
            still_missing = [rid for rid in missing if rid not in blocks]
            if still_missing:
                warn(f"{len(still_missing)} row(s) could not be loaded and were skipped.")

        collections = record_map_values(record_map, "collection")
        collection = collections.get(collection_id) or self._collection(collection_id)
        schema = collection.get("schema") or {}

        decoded = [
            (rid, shapes.decode_row(blocks[rid], schema)) for rid in row_ids if rid in blocks
        ]
        pointers = shapes.row_reference_pointers(row for _, row in decoded)
        names = shapes.reference_names(sync_mixed(self._request, pointers)) if pointers else {}
        return {
            "results": [shapes.row_output(rid, row, names) for rid, row in decoded],
            "has_more": has_more,
            "next_cursor": None,
        }

    def create_database(
        self, *, parent: str, title: str, properties: str | dict | None = None
    ) -> dict[str, Any]:
        """Create a database page under *parent*.

        Args:
            parent: Parent page id.
            title: Database name.
            properties: ``{key: {name, type, ...}}`` schema additions. Rollups
                may name their relation and target properties by display name.

        Returns:
            dict with id (collection), name, schema, view_id and page_id.
        """
        parent_id = _require_id(parent, "Parent ID")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("[ERROR] Database title cannot be empty.")
        additions = ObjectPayload.from_value(properties, "properties").data if properties else {}
        space_id = resolve_space_id(self._request, parent_id)
        prepared = prepare_properties(additions, space_id=space_id, load_schema=self._load_schema)
        schema = initial_schema(prepared)
        ids, tx = build_create_collection(space_id, parent_id, title, schema)
        self._save(tx)
        return {
            "id": ids["collection_id"],
            "name": title,
            "schema": simplify(schema),
            "view_id": ids["view_id"],
            "page_id": ids["block_id"],
        }

    def update_database(
        self,
        collection_id: str,
        *,
        title: str | None = None,
        properties: str | dict | None = None,
    ) -> dict[str, Any]:
        """Rename a database and/or merge property definitions into its schema."""
        collection_id = _require_id(collection_id, "Database ID")
        if title is None and properties is None:
            raise ValidationError("[ERROR] Nothing to update. Use --title or --properties.")
        additions = (
            ObjectPayload.from_value(properties, "properties").data
            if properties is not None
            else None
        )
        collection = self._collection(collection_id)
        space_id = self._collection_space(collection_id, collection)
        schema = collection.get("schema") or {}
        merged = None
        if additions:
            prepared = prepare_properties(
                additions, space_id=space_id, existing=schema, load_schema=self._load_schema
            )
            merged = merge_properties(schema, prepared)
        self._save(build_collection_update(collection_id, space_id, title=title, schema=merged))
        return {
            "id": collection_id,
            "name": title if title is not None else shapes.collection_name(collection),
            "schema": simplify(merged if merged is not None else schema),
        }

    def delete_database_property(self, collection_id: str, *, property: str) -> dict[str, Any]:
        """Remove a property from the schema entirely.

        Rollups elsewhere that reference the deleted key are not touched;
        ``get_database`` reports them as diagnostics.
        """
        collection_id = _require_id(collection_id, "Database ID")
        if not isinstance(property, str) or not property:
            raise ValidationError("[ERROR] --property is required.")
        collection = self._collection(collection_id)
        space_id = self._collection_space(collection_id, collection)
        key, remaining = delete_property(collection.get("schema") or {}, property)
        self._save(
            Transaction(space_id, (schema_replace_op(collection_id, space_id, remaining),))
        )
        return {
            "id": collection_id,
            "deleted": property,
            "key": key,
            "schema": simplify(remaining),
        }

    def add_database_row(
        self,
        collection_id: str,
        *,
        title: str | None = None,
        properties: str | dict | None = None,
        view_id: str | None = None,
    ) -> dict[str, Any]:
        """Add a row, registering unseen select options in the same transaction.

        Returns:
            dict with id, collection_id and the written properties decoded.
        """
        collection_id = _require_id(collection_id, "Database ID")
        values = ObjectPayload.from_value(properties, "properties").data if properties else {}
        collection = self._collection(collection_id)
        space_id = self._collection_space(collection_id, collection)
        schema = copy.deepcopy(collection.get("schema") or {})
        view_id = (
            format_notion_id(view_id)
            if view_id
            else resolve_collection_view_id(self._request, collection_id)
        )
        encoded, option_ops = self._encode_properties(collection_id, space_id, schema, values)
        if title is not None:
            encoded[title_key(schema)] = [[title]] if title else []
        row_id, tx = build_create_row(space_id, collection_id, view_id, encoded, option_ops)
        self._save(tx)
        result = shapes.row_output(row_id, self._decoded(schema, encoded))
        result["collection_id"] = collection_id
        return result

    def update_database_row(self, row_id: str, *, properties: str | dict) -> dict[str, Any]:
        """Set properties on an existing row by display name."""
        row_id = _require_id(row_id, "Row ID")
        values = ObjectPayload.from_value(properties, "properties").data
        if not values:
            raise ValidationError("[ERROR] No properties to update.")
        row = require_record(self._request, "block", row_id, "Block")
        if row.get("parent_table") != "collection":
            raise ValidationError(
                f"[ERROR] Block {row_id} is not a database row "
                f"(parent_table: {row.get('parent_table')!r})."
            )
        collection_id = _opt_str(row.get("parent_id"))
        if not collection_id:
            raise InconsistencyError(f"[ERROR] Row {row_id} has no parent_id.")
        collection = self._collection(collection_id)
        space_id = _opt_str(row.get("space_id")) or self._collection_space(
            collection_id, collection
        )
        schema = copy.deepcopy(collection.get("schema") or {})
        encoded, option_ops = self._encode_properties(collection_id, space_id, schema, values)
        self._save(build_update_row(row_id, space_id, encoded, option_ops))
        return shapes.row_output(row_id, self._decoded(schema, encoded))

    def _view_collection(self, view_id, view):
        collection_id = shapes.collection_pointer_id(view)
        if not collection_id:
            parent_id = _opt_str(view.get("parent_id"))
            parent = fetch_record(self._request, "block", parent_id) if parent_id else None
            collection_id = _opt_str((parent or {}).get("collection_id"))
        if not collection_id:
            raise InconsistencyError(f"[ERROR] View {view_id} has no resolvable collection.")
        return collection_id, self._collection(collection_id)

    def get_database_view(self, view_id: str) -> dict[str, Any]:
        """Column order, visibility and widths of a view."""
        view_id = _require_id(view_id, "View ID")
        view = require_record(self._request, "collection_view", view_id, "View")
        _, collection = self._view_collection(view_id, view)
        return shapes.view_output(dict(view, id=view_id), collection.get("schema") or {})

    def update_database_view(
        self,
        view_id: str,
        *,
        show: str | list | None = None,
        hide: str | list | None = None,
        reorder: str | list | None = None,
        resize: str | dict | None = None,
    ) -> dict[str, Any]:
        """Show, hide, reorder or resize view columns by display name.

        The full per-view property list is written back in one ``set``.
        Reordered properties come first; the rest keep their relative order.
        """
        view_id = _require_id(view_id, "View ID")
        spec = ViewUpdateSpec.from_args(show=show, hide=hide, reorder=reorder, resize=resize)
        view = require_record(self._request, "collection_view", view_id, "View")
        _, collection = self._view_collection(view_id, view)
        schema = collection.get("schema") or {}
        keys = {name: resolve_key(schema, name) for name in spec.names()}
        space_id = _opt_str(view.get("space_id")) or _opt_str(collection.get("space_id"))
        if not space_id:
            raise InconsistencyError(f"[ERROR] Could not resolve space ID for view: {view_id}")

        view_type, entries = shapes.view_properties(view)
        entries = shapes.complete_view_entries(entries, schema)
        by_key = {e.get("property"): e for e in entries}
        for name in spec.show:
            by_key[keys[name]]["visible"] = True
        for name in spec.hide:
            by_key[keys[name]]["visible"] = False
        for name, width in spec.resize.items():
            by_key[keys[name]]["width"] = width
        if spec.reorder:
            first = list(dict.fromkeys(keys[name] for name in spec.reorder))
            rest = [e for e in entries if e.get("property") not in first]
            entries = [by_key[k] for k in first] + rest

        self._save(build_view_properties(view_id, space_id, view_type, entries))
        fmt = dict(_to_dict(view.get("format")) or {})
        fmt[f"{view_type}_properties"] = entries
        return shapes.view_output(dict(view, id=view_id, format=fmt), schema)

    # -------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------

    def list_comments(self, page_id: str) -> dict[str, Any]:
        """Comments in every discussion on a page or its blocks."""
        page_id = _require_id(page_id, "Page ID")
        tree = walk_page_chunks(self._request, page_id)
        results = shapes.discussion_comments(
            tree.table("discussion"), tree.table("comment"), page_id, tree.blocks
        )
        return {"results": results, "total": len(results)}

    def create_comment(
        self, text: str, *, page: str | None = None, discussion: str | None = None
    ) -> dict[str, Any]:
        """Start a discussion on a page, or reply in an existing discussion.

        Exactly one of *page* and *discussion* must be given.
        """
        if not page and not discussion:
            raise ValidationError("[ERROR] Either --page or --discussion is required.")
        if page and discussion:
            raise ValidationError("[ERROR] Cannot specify both --page and --discussion.")
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("[ERROR] Comment text cannot be empty.")
        if page:
            page_id = _require_id(page, "Page ID")
            space_id = resolve_space_id(self._request, page_id)
            comment_id, discussion_id, tx = build_page_comment(page_id, space_id, text)
        else:
            discussion_id = _require_id(discussion, "Discussion ID")
            record = require_record(self._request, "discussion", discussion_id, "Discussion")
            space_id = _space_of(record, "discussion", discussion_id)
            comment_id, tx = build_reply(discussion_id, space_id, text)
        self._save(tx)
        return {"id": comment_id, "discussion_id": discussion_id, "text": text}

    def get_comment(self, comment_id: str) -> dict[str, Any]:
        comment_id = _require_id(comment_id, "Comment ID")
        comment = require_record(self._request, "comment", comment_id, "Comment")
        return shapes.comment_output(dict(comment, id=comment.get("id") or comment_id))

    # -------------------------------------------------------------------
    # Batch
    # -------------------------------------------------------------------

    def batch(self, operations: str | list) -> dict[str, Any]:
        """Run write operations sequentially, stopping at the first failure.

        Returns:
            dict with results [{index, action, success, data|error}], total,
            succeeded and failed.
        """
        return batch.run_batch(self, batch.parse_operations(operations))
