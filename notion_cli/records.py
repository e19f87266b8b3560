"""
Record envelope normalization and record lookups.

The internal API wraps record values inconsistently:

    {"value": V, "role": "editor"}
    {"value": {"value": V, "role": "editor"}}
    {"spaceId": "...", "value": {"value": V, "role": "editor"}}

``record_value`` turns any of these into ``V`` (or None). Everything that
reads a field of a record goes through it first.

Lookup helpers take a ``request(endpoint, body)`` callable already bound to a
session, so they stay independent of credentials.
"""

from notion_cli._utils import _str_list, _to_dict
from notion_cli.exceptions import InconsistencyError, NotFoundError


def _response_record_map(response):
    return _to_dict((_to_dict(response) or {}).get("recordMap"))


def _looks_like_envelope(value):
    return isinstance(value, dict) and isinstance(value.get("role"), str) and "value" in value


def record_value(slot):
    """Return the canonical record value inside *slot*, or None when absent."""
    if not isinstance(slot, dict):
        return None
    value = slot.get("value")
    if _looks_like_envelope(value):
        value = value.get("value")
    return _to_dict(value)


def record_map_values(record_map, table):
    """Normalize every slot of ``record_map[table]`` into ``{id: value}``."""
    slots = _to_dict((record_map or {}).get(table)) or {}
    out = {}
    for record_id, slot in slots.items():
        value = record_value(slot)
        if value is not None:
            out[record_id] = value
    return out


def pointer_request(table, record_id):
    return {"pointer": {"table": table, "id": record_id}, "version": -1}


def sync_records(request, table, record_ids):
    """Fetch several records of one table in a single syncRecordValues call.

    Returns ``{id: value}`` for the records that came back with a payload.
    """
    if not record_ids:
        return {}
    response = request(
        "syncRecordValues",
        {"requests": [pointer_request(table, rid) for rid in record_ids]},
    )
    return record_map_values(_response_record_map(response), table)


def sync_mixed(request, pointers):
    """Fetch records across tables at once. *pointers* is a list of (table, id)."""
    if not pointers:
        return {}
    response = request(
        "syncRecordValues",
        {"requests": [pointer_request(table, rid) for table, rid in pointers]},
    )
    record_map = _response_record_map(response) or {}
    return {table: record_map_values(record_map, table) for table in {t for t, _ in pointers}}


def pick_record(values, record_id):
    """Pick *record_id* from a normalized map, tolerating re-keyed responses."""
    if record_id in values:
        return values[record_id]
    for value in values.values():
        if value.get("id") == record_id:
            return value
    if len(values) == 1:
        return next(iter(values.values()))
    return None


def fetch_record(request, table, record_id):
    """Return the normalized value of one record, or None when it does not exist."""
    return pick_record(sync_records(request, table, [record_id]), record_id)


def require_record(request, table, record_id, label=None):
    """Like fetch_record but raises NotFoundError for a missing record."""
    value = fetch_record(request, table, record_id)
    if value is None:
        raise NotFoundError(f"[ERROR] {label or table.capitalize()} not found: {record_id}")
    return value


def resolve_space_id(request, block_id):
    """Return the space id that hosts *block_id*."""
    block = require_record(request, "block", block_id, "Block")
    space_id = block.get("space_id")
    if not isinstance(space_id, str) or not space_id:
        raise InconsistencyError(f"[ERROR] Could not resolve space ID for block: {block_id}")
    return space_id


def resolve_collection_view_id(request, collection_id):
    """Return the first view id of the block hosting *collection_id*."""
    collection = require_record(request, "collection", collection_id, "Collection")
    parent_id = collection.get("parent_id")
    if not isinstance(parent_id, str) or not parent_id:
        raise InconsistencyError(
            f"[ERROR] Collection {collection_id} has no parent block to read views from."
        )
    parent = fetch_record(request, "block", parent_id) or {}
    view_ids = _str_list(parent.get("view_ids"))
    if not view_ids:
        raise InconsistencyError(f"[ERROR] No views found for collection: {collection_id}")
    return view_ids[0]
