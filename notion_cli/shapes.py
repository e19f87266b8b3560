"""
Read-side shaping: turn normalized records into the plain dicts returned by
NotionClient. Pure functions, no I/O. Everything here takes values that
already went through ``records.record_value``.
"""

from notion_cli import codec, config
from notion_cli._utils import _opt_str, _str_list, _to_dict, _to_str
from notion_cli.records import record_map_values
from notion_cli.schema import alive_entries, display_name


def block_text(block):
    return codec.plain_text((_to_dict(block.get("properties")) or {}).get("title"))


def block_summary(block):
    return {
        "id": _to_str(block.get("id")),
        "type": _to_str(block.get("type")),
        "text": block_text(block),
    }


def block_detail(block):
    """Summary plus structural fields (children, parent, hosted collection)."""
    out = block_summary(block)
    content = _str_list(block.get("content"))
    if content:
        out["content"] = content
    parent_id = _opt_str(block.get("parent_id"))
    if parent_id:
        out["parent_id"] = parent_id
    if out["type"] in config.COLLECTION_BLOCK_TYPES:
        collection_id = _opt_str(block.get("collection_id"))
        if collection_id:
            out["collection_id"] = collection_id
        view_ids = _str_list(block.get("view_ids"))
        if view_ids:
            out["view_ids"] = view_ids
    return out


def block_tree(blocks, child_ids, _seen=None):
    """Nested ``{id, type, text, children?}`` list following ``content`` order."""
    seen = _seen if _seen is not None else set()
    nodes = []
    for child_id in child_ids:
        child = blocks.get(child_id)
        if child is None or child_id in seen or child.get("alive") is False:
            continue
        seen.add(child_id)
        node = block_summary(child)
        nested = _str_list(child.get("content"))
        if nested:
            children = block_tree(blocks, nested, seen)
            if children:
                node["children"] = children
        nodes.append(node)
    return nodes


# ---------------------------------------------------------------------------
# Collections and rows
# ---------------------------------------------------------------------------


def collection_name(collection):
    return codec.plain_text(collection.get("name"))


def collection_list_entry(collection):
    return {
        "id": _to_str(collection.get("id")),
        "name": collection_name(collection),
        "schema_properties": list(alive_entries(collection.get("schema"))),
    }


def query_block_ids(response):
    """Row ids and the has-more flag from a reducer ``queryCollection`` response."""
    result = _to_dict((_to_dict(response) or {}).get("result")) or {}
    reducers = _to_dict(result.get("reducerResults")) or {}
    group = _to_dict(reducers.get("collection_group_results")) or {}
    return _str_list(group.get("blockIds")), group.get("hasMore") is True


def decode_row(block, schema):
    """``{display name: PropertyValue}`` for every alive schema property."""
    properties = _to_dict(block.get("properties")) or {}
    row = {}
    for key, entry in alive_entries(schema).items():
        prop_type = _to_str(entry.get("type"))
        row[display_name(key, entry)] = codec.decode(properties.get(key), prop_type)
    return row


def row_reference_pointers(rows):
    pointers = []
    for row in rows:
        for value in row.values():
            for pointer in codec.reference_ids(value):
                if pointer not in pointers:
                    pointers.append(pointer)
    return pointers


def reference_names(records_by_table):
    """``{id: display name}`` from synced ``notion_user`` and ``block`` records."""
    names = {}
    for user_id, user in records_by_table.get("notion_user", {}).items():
        name = _opt_str(user.get("name"))
        if name:
            names[user_id] = name
    for block_id, block in records_by_table.get("block", {}).items():
        title = block_text(block)
        if title:
            names[block_id] = title
    return names


def row_output(row_id, row, names=None):
    return {
        "id": row_id,
        "properties": {
            name: codec.to_dict(codec.enrich(value, names or {})) for name, value in row.items()
        },
    }


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


def view_properties(view):
    """The view's ordered ``[{property, visible, width?}]`` list and its format key."""
    view_type = _to_str(view.get("type")) or "table"
    fmt = _to_dict(view.get("format")) or {}
    entries = [dict(e) for e in fmt.get(f"{view_type}_properties") or [] if isinstance(e, dict)]
    return view_type, entries


def collection_pointer_id(view):
    pointer = _to_dict((_to_dict(view.get("format")) or {}).get("collection_pointer")) or {}
    return _opt_str(pointer.get("id")) or _opt_str(view.get("collection_id"))


def complete_view_entries(entries, schema):
    """Append entries for schema properties the view does not list yet.

    Only the title property defaults to visible.
    """
    out = [dict(e) for e in entries]
    listed = {e.get("property") for e in out}
    for key, entry in alive_entries(schema).items():
        if key not in listed:
            out.append({"property": key, "visible": entry.get("type") == "title"})
    return out


def view_output(view, schema):
    view_type, entries = view_properties(view)
    entries = complete_view_entries(entries, schema)
    schema_entries = alive_entries(schema)
    columns = []
    for e in entries:
        key = e.get("property")
        if key not in schema_entries:
            continue
        column = {
            "property": display_name(key, schema_entries[key]),
            "key": key,
            "type": schema_entries[key].get("type"),
            "visible": e.get("visible") is True,
        }
        if isinstance(e.get("width"), (int, float)):
            column["width"] = e["width"]
        columns.append(column)
    return {
        "id": _to_str(view.get("id")),
        "type": view_type,
        "name": _to_str(view.get("name")),
        "collection_id": collection_pointer_id(view),
        "properties": columns,
    }


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


def comment_output(comment):
    return {
        "id": _to_str(comment.get("id")),
        "text": codec.plain_text(comment.get("text")),
        "discussion_id": _to_str(comment.get("parent_id")),
        "created_by": _opt_str(comment.get("created_by_id")),
        "created_time": comment.get("created_time"),
    }


def discussion_comments(discussions, comments, page_id, blocks):
    """Comments of every discussion attached to the page or one of its blocks."""
    results = []
    for discussion_id, discussion in discussions.items():
        parent_id = discussion.get("parent_id")
        if parent_id != page_id and parent_id not in blocks:
            continue
        for comment_id in _str_list(discussion.get("comments")):
            comment = comments.get(comment_id)
            if comment is None or comment.get("alive") is False:
                continue
            item = comment_output(comment)
            item["discussion_id"] = discussion_id
            results.append(item)
    return results


# ---------------------------------------------------------------------------
# Users, spaces, search, backlinks
# ---------------------------------------------------------------------------


def user_output(user):
    return {
        "id": _to_str(user.get("id")),
        "name": _opt_str(user.get("name")),
        "email": _opt_str(user.get("email")),
    }


def _space_values(entry):
    return record_map_values(_to_dict(entry) or {}, "space")


def workspace_entries(spaces_response):
    seen = set()
    out = []
    for entry in (_to_dict(spaces_response) or {}).values():
        for space in _space_values(entry).values():
            space_id = _to_str(space.get("id"))
            if not space_id or space_id in seen:
                continue
            seen.add(space_id)
            out.append(
                {
                    "id": space_id,
                    "name": _opt_str(space.get("name")),
                    "icon": _opt_str(space.get("icon")),
                    "plan_type": _opt_str(space.get("plan_type")),
                }
            )
    return out


def find_space(spaces_response, space_id):
    for entry in (_to_dict(spaces_response) or {}).values():
        for space in _space_values(entry).values():
            if space.get("id") == space_id:
                return space
    return None


def accounts(spaces_response):
    out = []
    for user_id, entry in (_to_dict(spaces_response) or {}).items():
        users = record_map_values(_to_dict(entry) or {}, "notion_user")
        user = users.get(user_id) or next(iter(users.values()), {})
        out.append(
            {
                "id": user_id,
                "name": _opt_str(user.get("name")),
                "email": _opt_str(user.get("email")),
                "spaces": [
                    {"id": _to_str(s.get("id")), "name": _opt_str(s.get("name"))}
                    for s in _space_values(entry).values()
                ],
            }
        )
    return out


def search_results(response):
    data = _to_dict(response) or {}
    results = []
    for item in data.get("results") or []:
        if not isinstance(item, dict):
            continue
        highlight = _to_dict(item.get("highlight")) or {}
        results.append(
            {
                "id": _to_str(item.get("id")),
                "title": _to_str(highlight.get("title")),
                "score": item.get("score"),
                "spaceId": _opt_str(item.get("spaceId")),
            }
        )
    total = data.get("total")
    return {"results": results, "total": total if isinstance(total, int) else len(results)}


def _backlink_sources(response):
    sources = []
    for link in (_to_dict(response) or {}).get("backlinks") or []:
        mentioned = _to_dict((_to_dict(link) or {}).get("mentioned_from")) or {}
        source_id = _opt_str(mentioned.get("block_id"))
        if source_id and source_id not in sources:
            sources.append(source_id)
    return sources


def backlink_user_ids(response):
    """User ids mentioned in the titles of backlink source blocks."""
    blocks = record_map_values(_to_dict((_to_dict(response) or {}).get("recordMap")) or {}, "block")
    ids = []
    for source_id in _backlink_sources(response):
        properties = _to_dict(blocks.get(source_id, {}).get("properties")) or {}
        title = codec.decode(properties.get("title"), "title")
        for mention in title.mentions:
            if mention.marker == "u" and mention.id not in ids:
                ids.append(mention.id)
    return ids


def backlinks(response, user_names):
    blocks = record_map_values(_to_dict((_to_dict(response) or {}).get("recordMap")) or {}, "block")
    out = []
    for source_id in _backlink_sources(response):
        block = blocks.get(source_id) or {}
        raw = (_to_dict(block.get("properties")) or {}).get("title")
        title = codec.enrich(codec.decode(raw, "title"), user_names)
        out.append({"id": source_id, "title": title.text})
    return out
