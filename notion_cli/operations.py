"""
Operation builders for the saveTransactions endpoint.

Every write verb is expressed as one or more Transactions, each an ordered
list of primitive Operations (``set``, ``update``, ``listAfter``,
``listRemove``) addressed by ``{table, id, spaceId}`` pointers. The builders
here are pure: they generate ids and assemble operations but never talk to
the network. Parent/child pairs (a record ``set`` and the ``listAfter`` that
links it) are always emitted together in the same transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from notion_cli._utils import generate_id

SET = "set"
UPDATE = "update"
LIST_AFTER = "listAfter"
LIST_REMOVE = "listRemove"


@dataclass(frozen=True)
class Pointer:
    table: str
    id: str
    space_id: str

    def to_dict(self) -> dict[str, str]:
        return {"table": self.table, "id": self.id, "spaceId": self.space_id}


@dataclass(frozen=True)
class Operation:
    pointer: Pointer
    command: str
    path: tuple[str, ...]
    args: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "pointer": self.pointer.to_dict(),
            "command": self.command,
            "path": list(self.path),
            "args": self.args,
        }


@dataclass(frozen=True)
class Transaction:
    space_id: str
    operations: tuple[Operation, ...]
    id: str = field(default_factory=generate_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "spaceId": self.space_id,
            "operations": [op.to_dict() for op in self.operations],
        }


def save_request(*transactions: Transaction) -> dict[str, Any]:
    """Body for one saveTransactions call."""
    return {
        "requestId": generate_id(),
        "transactions": [t.to_dict() for t in transactions],
    }


# ---------------------------------------------------------------------------
# Primitive operations
# ---------------------------------------------------------------------------


def op_set(table, record_id, space_id, args, path=()):
    return Operation(Pointer(table, record_id, space_id), SET, tuple(path), args)


def op_update(table, record_id, space_id, args, path=()):
    return Operation(Pointer(table, record_id, space_id), UPDATE, tuple(path), args)


def op_list_after(table, record_id, space_id, child_id, path=("content",)):
    pointer = Pointer(table, record_id, space_id)
    return Operation(pointer, LIST_AFTER, tuple(path), {"id": child_id})


def op_list_remove(table, record_id, space_id, child_id, path=("content",)):
    pointer = Pointer(table, record_id, space_id)
    return Operation(pointer, LIST_REMOVE, tuple(path), {"id": child_id})


# ---------------------------------------------------------------------------
# Blocks and pages
# ---------------------------------------------------------------------------


def block_args(block_id, block_type, parent_id, space_id, properties=None, parent_table="block"):
    """Full record body for a new alive block."""
    return {
        "type": block_type,
        "id": block_id,
        "version": 1,
        "parent_id": parent_id,
        "parent_table": parent_table,
        "alive": True,
        "properties": properties or {},
        "space_id": space_id,
    }


def create_block_ops(space_id, parent_id, block_type, properties=None, block_id=None):
    """``set`` a new child block and ``listAfter`` it onto the parent's content."""
    block_id = block_id or generate_id()
    args = block_args(block_id, block_type, parent_id, space_id, properties)
    ops = [
        op_set("block", block_id, space_id, args),
        op_list_after("block", parent_id, space_id, block_id),
    ]
    return block_id, ops


def build_create_page(space_id, parent_id, title):
    """New page under a block. Returns (page_id, Transaction)."""
    page_id, ops = create_block_ops(space_id, parent_id, "page", {"title": [[title]]})
    return page_id, Transaction(space_id, tuple(ops))


def build_append_blocks(space_id, parent_id, definitions):
    """2N operations for N block definitions, ids returned in definition order."""
    ids = []
    ops = []
    for definition in definitions:
        block_id, pair = create_block_ops(
            space_id, parent_id, definition.type, definition.properties
        )
        ids.append(block_id)
        ops.extend(pair)
    return ids, Transaction(space_id, tuple(ops))


def archive_ops(block_id, parent_id, space_id, parent_table="block", list_path=("content",)):
    """Soft-delete a record and unlink it from its parent list."""
    return [
        op_update("block", block_id, space_id, {"alive": False}),
        op_list_remove(parent_table, parent_id, space_id, block_id, path=list_path),
    ]


def build_archive(block_id, parent_id, space_id):
    return Transaction(space_id, tuple(archive_ops(block_id, parent_id, space_id)))


def build_clear_children(page_id, space_id, child_ids):
    """Archive and unlink every child of *page_id*."""
    ops = []
    for child_id in child_ids:
        ops.extend(archive_ops(child_id, page_id, space_id))
    return Transaction(space_id, tuple(ops))


def title_op(table, record_id, space_id, title):
    if table == "collection":
        return op_set(table, record_id, space_id, [[title]], path=("name",))
    return op_set(table, record_id, space_id, [[title]], path=("properties", "title"))


def icon_op(block, space_id, icon):
    """Icon path depends on the record: a database page keeps it on its collection."""
    collection_id = block.get("collection_id")
    is_database_page = block.get("type") == "collection_view_page"
    if is_database_page and isinstance(collection_id, str) and collection_id:
        return op_set("collection", collection_id, space_id, icon, path=("icon",))
    return op_set("block", block["id"], space_id, icon, path=("format", "page_icon"))


def build_block_update(block_id, space_id, changes):
    """Shallow-merge *changes* into a block record."""
    return Transaction(space_id, (op_update("block", block_id, space_id, changes),))


# ---------------------------------------------------------------------------
# Databases
# ---------------------------------------------------------------------------


def build_create_collection(space_id, parent_id, title, schema):
    """Collection + default table view + hosting page, linked under *parent_id*.

    Returns ({"collection_id", "view_id", "block_id"}, Transaction).
    """
    collection_id = generate_id()
    view_id = generate_id()
    block_id = generate_id()
    ops = (
        op_set(
            "collection",
            collection_id,
            space_id,
            {
                "id": collection_id,
                "name": [[title]],
                "schema": schema,
                "parent_id": block_id,
                "parent_table": "block",
                "alive": True,
                "space_id": space_id,
            },
        ),
        op_set(
            "collection_view",
            view_id,
            space_id,
            {
                "id": view_id,
                "type": "table",
                "name": "Default view",
                "format": {
                    "collection_pointer": {
                        "id": collection_id,
                        "table": "collection",
                        "spaceId": space_id,
                    },
                    "table_properties": [{"property": "title", "visible": True}],
                },
                "parent_id": block_id,
                "parent_table": "block",
                "alive": True,
                "version": 1,
                "space_id": space_id,
            },
        ),
        op_set(
            "block",
            block_id,
            space_id,
            {
                "type": "collection_view_page",
                "id": block_id,
                "collection_id": collection_id,
                "view_ids": [view_id],
                "parent_id": parent_id,
                "parent_table": "block",
                "alive": True,
                "space_id": space_id,
                "version": 1,
            },
        ),
        op_list_after("block", parent_id, space_id, block_id),
    )
    ids = {"collection_id": collection_id, "view_id": view_id, "block_id": block_id}
    return ids, Transaction(space_id, ops)


def schema_property_op(collection_id, space_id, key, entry):
    """Merge a single schema entry (used for option registration)."""
    return op_update("collection", collection_id, space_id, entry, path=("schema", key))


def schema_replace_op(collection_id, space_id, schema):
    """Write the whole schema map; removed keys disappear entirely."""
    return op_set("collection", collection_id, space_id, schema, path=("schema",))


def build_collection_update(collection_id, space_id, *, title=None, schema=None):
    args = {}
    if title is not None:
        args["name"] = [[title]]
    if schema is not None:
        args["schema"] = schema
    return Transaction(space_id, (op_update("collection", collection_id, space_id, args),))


def build_create_row(space_id, collection_id, view_id, properties, option_ops=()):
    """New row page in a collection, appended to the view's page_sort.

    Option-registration operations go first so the row never references an
    option the schema does not know yet.
    """
    row_id = generate_id()
    args = block_args(
        row_id, "page", collection_id, space_id, properties, parent_table="collection"
    )
    ops = list(option_ops)
    ops.append(op_set("block", row_id, space_id, args))
    if view_id:
        ops.append(op_list_after("collection_view", view_id, space_id, row_id, path=("page_sort",)))
    return row_id, Transaction(space_id, tuple(ops))


def build_update_row(row_id, space_id, encoded, option_ops=()):
    """One ``set`` per property key, after any option registration."""
    ops = list(option_ops)
    for key, segments in encoded.items():
        ops.append(op_set("block", row_id, space_id, segments, path=("properties", key)))
    return Transaction(space_id, tuple(ops))


def build_view_properties(view_id, space_id, view_type, entries):
    """Replace the full per-view property list (there is no partial-list primitive)."""
    return Transaction(
        space_id,
        (
            op_set(
                "collection_view",
                view_id,
                space_id,
                entries,
                path=("format", f"{view_type}_properties"),
            ),
        ),
    )


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


def _comment_args(comment_id, discussion_id, space_id, text):
    return {
        "id": comment_id,
        "version": 1,
        "parent_id": discussion_id,
        "parent_table": "discussion",
        "text": [[text]],
        "alive": True,
        "space_id": space_id,
    }


def build_page_comment(page_id, space_id, text):
    """New discussion on a page holding one comment."""
    discussion_id = generate_id()
    comment_id = generate_id()
    comment = _comment_args(comment_id, discussion_id, space_id, text)
    ops = (
        op_set(
            "discussion",
            discussion_id,
            space_id,
            {
                "id": discussion_id,
                "version": 1,
                "parent_id": page_id,
                "parent_table": "block",
                "comments": [comment_id],
                "resolved": False,
                "space_id": space_id,
            },
        ),
        op_set("comment", comment_id, space_id, comment),
        op_list_after("block", page_id, space_id, discussion_id, path=("discussions",)),
    )
    return comment_id, discussion_id, Transaction(space_id, ops)


def build_reply(discussion_id, space_id, text):
    comment_id = generate_id()
    comment = _comment_args(comment_id, discussion_id, space_id, text)
    ops = (
        op_set("comment", comment_id, space_id, comment),
        op_list_after("discussion", discussion_id, space_id, comment_id, path=("comments",)),
    )
    return comment_id, Transaction(space_id, ops)
