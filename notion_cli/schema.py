"""
Schema resolution for collections (databases).

A collection schema maps stable internal keys to ``{name, type, options?}``
entries. Callers speak in display names; the wire format speaks in keys.
This module translates between the two and keeps schema mutations safe:
option registration for select values, relation/rollup preparation before a
schema write, and deletion that removes an entry outright.
"""

from __future__ import annotations

import copy

from notion_cli import config
from notion_cli._utils import _to_dict, generate_option_id
from notion_cli.codec import OPTION_TYPES
from notion_cli.exceptions import ValidationError
from notion_cli.operations import schema_property_op

TITLE_KEY = "title"


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def alive_entries(schema):
    """Return ``{key: entry}`` for every well-formed, non-deleted schema entry."""
    out = {}
    for key, entry in (_to_dict(schema) or {}).items():
        if not isinstance(entry, dict) or entry.get("alive") is False:
            continue
        out[key] = entry
    return out


def display_name(key, entry):
    name = entry.get("name")
    return name if isinstance(name, str) and name else key


def name_to_key(schema):
    """Map every alive entry's display name to its key."""
    return {display_name(key, entry): key for key, entry in alive_entries(schema).items()}


def title_key(schema):
    for key, entry in alive_entries(schema).items():
        if entry.get("type") == "title":
            return key
    return TITLE_KEY


def _unknown(name, schema):
    available = ", ".join(name_to_key(schema)) or "(none)"
    return ValidationError(f'[ERROR] Unknown property: "{name}". Available: {available}')


def resolve_key(schema, name):
    """Resolve a display name (or, failing that, a raw key) to a schema key.

    Raises:
        ValidationError: naming the available display names.
    """
    names = name_to_key(schema)
    if name in names:
        return names[name]
    if name in alive_entries(schema):
        return name
    raise _unknown(name, schema)


def simplify(schema):
    """Caller-facing view of a schema: ``{name: {type, options?}}``."""
    out = {}
    for key, entry in alive_entries(schema).items():
        item = {"type": entry.get("type")}
        options = entry.get("options")
        if isinstance(options, list):
            item["options"] = [o.get("value") for o in options if isinstance(o, dict)]
        out[display_name(key, entry)] = item
    return out


# ---------------------------------------------------------------------------
# Option registration
# ---------------------------------------------------------------------------


def missing_options(entry, values):
    existing = {o.get("value") for o in entry.get("options") or [] if isinstance(o, dict)}
    out = []
    for value in values:
        if value not in existing and value not in out:
            out.append(value)
    return out


def with_new_options(entry, values):
    """Return a copy of *entry* whose option list also holds *values*.

    New options get a fresh 4-char id and the palette colour that follows the
    existing option count.
    """
    options = [o for o in entry.get("options") or [] if isinstance(o, dict)]
    added = []
    for value in missing_options(entry, values):
        index = len(options) + len(added)
        added.append(
            {
                "id": generate_option_id(),
                "color": config.OPTION_COLORS[index % len(config.OPTION_COLORS)],
                "value": value,
            }
        )
    if not added:
        return None
    updated = dict(entry)
    updated["options"] = options + added
    return updated


def register_options(collection_id, space_id, schema, key, values):
    """Build the schema ``update`` that registers unseen select values.

    Returns a (possibly empty) list of operations; the caller places them
    before the row operation that uses the values. *schema* is updated in
    place so later properties in the same call see the new options.
    """
    entry = alive_entries(schema).get(key)
    if entry is None or entry.get("type") not in OPTION_TYPES or not values:
        return []
    updated = with_new_options(entry, values)
    if updated is None:
        return []
    schema[key] = updated
    return [schema_property_op(collection_id, space_id, key, updated)]


# ---------------------------------------------------------------------------
# Schema writes
# ---------------------------------------------------------------------------


def _lookup(entries, ref):
    """Find an entry by key first, then by display name."""
    if ref in entries:
        return ref, entries[ref]
    for key, entry in entries.items():
        if display_name(key, entry) == ref:
            return key, entry
    return None, None


def _enhance_relation(key, entry, space_id):
    target = entry.get("collection_id")
    if not isinstance(target, str) or not target:
        raise ValidationError(f'[ERROR] Relation property "{key}" requires a collection_id.')
    entry.update(
        {
            "version": "v2",
            "property": key,
            "autoRelate": {"enabled": False},
            "collection_pointer": {"id": target, "table": "collection", "spaceId": space_id},
        }
    )


def _resolve_rollup(key, entry, combined, load_schema):
    relation_ref = entry.get("relation_property")
    target_ref = entry.get("target_property")
    if not isinstance(relation_ref, str) or not isinstance(target_ref, str):
        raise ValidationError(
            f'[ERROR] Rollup property "{key}" needs relation_property and target_property.'
        )
    relation_key, relation = _lookup(combined, relation_ref)
    if relation is None or relation.get("type") != "relation":
        relations = [display_name(k, e) for k, e in combined.items() if e.get("type") == "relation"]
        raise ValidationError(
            f'[ERROR] Rollup "{key}": relation property not found: "{relation_ref}". '
            f"Available: {', '.join(relations) or '(none)'}"
        )
    target_schema = alive_entries(load_schema(relation.get("collection_id")))
    target_key, target = _lookup(target_schema, target_ref)
    if target is None:
        names = [display_name(k, e) for k, e in target_schema.items()]
        raise ValidationError(
            f'[ERROR] Rollup "{key}": target property not found: "{target_ref}". '
            f"Available: {', '.join(names) or '(none)'}"
        )
    entry.pop("aggregation", None)
    entry.update(
        {
            "relation_property": relation_key,
            "target_property": target_key,
            "target_property_type": target.get("type"),
            "rollup_type": "relation",
        }
    )


def prepare_properties(properties, *, space_id, existing=None, load_schema=None):
    """Validate caller property definitions and convert them to wire entries.

    Args:
        properties: ``{key: {name?, type, ...}}`` as supplied by the caller.
        space_id: Space used for relation collection pointers.
        existing: Current schema, consulted when a rollup names a relation
            that is already defined.
        load_schema: ``collection_id -> schema`` callable used to resolve
            rollup target properties against the related collection.

    Returns:
        ``{key: entry}`` ready to merge into a schema.
    """
    if not isinstance(properties, dict):
        raise ValidationError("[ERROR] properties must be a JSON object")
    prepared = {}
    for key, definition in properties.items():
        if not isinstance(definition, dict):
            raise ValidationError(f'[ERROR] Property "{key}" must be a JSON object.')
        prop_type = definition.get("type")
        if not isinstance(prop_type, str) or not prop_type:
            raise ValidationError(f'[ERROR] Property "{key}" needs a non-empty string "type".')
        if prop_type == "title" and key != TITLE_KEY:
            raise ValidationError(
                '[ERROR] A database has exactly one title property (key "title").'
            )
        entry = copy.deepcopy(definition)
        entry.setdefault("name", key)
        prepared[key] = entry

    for key, entry in prepared.items():
        if entry["type"] == "relation":
            _enhance_relation(key, entry, space_id)

    combined = dict(alive_entries(existing))
    combined.update(prepared)
    for key, entry in prepared.items():
        if entry["type"] == "rollup":
            if load_schema is None:
                raise ValidationError(f'[ERROR] Rollup "{key}" cannot be resolved here.')
            _resolve_rollup(key, entry, combined, load_schema)
    return prepared


def initial_schema(prepared):
    """Schema for a new collection: the mandatory title entry plus *prepared*.

    Display names must be unique, including against the seeded title name.
    """
    return merge_properties({TITLE_KEY: {"name": "Name", "type": "title"}}, prepared)


def merge_properties(schema, prepared):
    """Return *schema* with *prepared* entries merged in.

    A new display name that already belongs to a different key is rejected so
    names stay unique. Redefining a select or multi-select without
    ``options`` keeps the options already registered on that key.
    """
    merged = copy.deepcopy(_to_dict(schema) or {})
    names = name_to_key(merged)
    for key, entry in prepared.items():
        current = _to_dict(merged.get(key))
        if current is not None:
            if names.get(display_name(key, current)) == key:
                del names[display_name(key, current)]
            if (
                "options" not in entry
                and current.get("type") == entry.get("type")
                and isinstance(current.get("options"), list)
            ):
                entry = dict(entry, options=current["options"])
        name = display_name(key, entry)
        owner = names.get(name)
        if owner is not None and owner != key:
            raise ValidationError(
                f'[ERROR] Property name "{name}" is already used by key "{owner}".'
            )
        if key == TITLE_KEY and entry.get("type") != "title":
            raise ValidationError("[ERROR] Cannot change the type of the title property")
        merged[key] = entry
        names[name] = key
    return merged


def delete_property(schema, name):
    """Remove the entry named *name* outright.

    Returns ``(key, new_schema)``. The title property cannot be deleted.
    """
    key = resolve_key(schema, name)
    if alive_entries(schema)[key].get("type") == "title":
        raise ValidationError("[ERROR] Cannot delete the title property")
    remaining = {k: v for k, v in (_to_dict(schema) or {}).items() if k != key}
    return key, copy.deepcopy(remaining)


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


def rollup_diagnostics(schema, load_schema):
    """Report rollups whose relation or target property key no longer exists.

    Nothing is repaired; each broken rollup yields one
    ``{"type": "broken_rollup", "property", "missing", "key"}`` entry.
    """
    entries = alive_entries(schema)
    diagnostics = []
    target_cache = {}
    for key, entry in entries.items():
        if entry.get("type") != "rollup":
            continue
        name = display_name(key, entry)
        relation_key = entry.get("relation_property")
        relation = entries.get(relation_key) if isinstance(relation_key, str) else None
        if relation is None or relation.get("type") != "relation":
            diagnostics.append(
                {
                    "type": "broken_rollup",
                    "property": name,
                    "missing": "relation_property",
                    "key": relation_key,
                }
            )
            continue
        target_id = relation.get("collection_id")
        if target_id not in target_cache:
            target_cache[target_id] = (
                alive_entries(load_schema(target_id)) if isinstance(target_id, str) else {}
            )
        target_key = entry.get("target_property")
        if target_key not in target_cache[target_id]:
            diagnostics.append(
                {
                    "type": "broken_rollup",
                    "property": name,
                    "missing": "target_property",
                    "key": target_key,
                }
            )
    return diagnostics
