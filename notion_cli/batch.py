"""
Batch executor: run a list of write operations sequentially, fail-fast.

Each operation is a JSON object ``{"action": "<group>.<verb>", ...args}``.
The whole list is validated before anything runs; an unknown action rejects
the batch. During execution the first failing operation ends the run, and
operations after it are never attempted.
"""

from __future__ import annotations

import re

from notion_cli.api import _safe_json_parse
from notion_cli.exceptions import CliError, ValidationError

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(key):
    return _CAMEL_RE.sub("_", key).replace("-", "_").lower()


def normalize_args(operation):
    """Operation fields minus ``action``, with camelCase/kebab keys in snake_case."""
    return {_snake(k): v for k, v in operation.items() if k != "action"}


def _arg(args, *names, required=True):
    for name in names:
        if args.get(name) not in (None, ""):
            return args[name]
    if required:
        raise ValidationError(f'[ERROR] Missing required field "{names[0]}".')
    return None


_TRUE_STRINGS = ("1", "true", "yes", "on")
_FALSE_STRINGS = ("", "0", "false", "no", "off")


def _flag(args, name):
    """Read a boolean field, accepting JSON booleans or their common string forms."""
    value = args.get(name)
    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in _TRUE_STRINGS + _FALSE_STRINGS:
        return value.strip().lower() in _TRUE_STRINGS
    raise ValidationError(f'[ERROR] Field "{name}" must be a boolean, got {value!r}.')


# ---------------------------------------------------------------------------
# Action handlers: (client, args) -> result dict
# ---------------------------------------------------------------------------


def _page_create(client, args):
    return client.create_page(
        parent=_arg(args, "parent_id", "parent"),
        title=_arg(args, "title"),
        content=_arg(args, "content", required=False),
    )


def _page_update(client, args):
    return client.update_page(
        _arg(args, "page_id", "id"),
        title=_arg(args, "title", required=False),
        icon=_arg(args, "icon", required=False),
        content=_arg(args, "content", required=False),
        replace_content=_flag(args, "replace_content"),
    )


def _page_archive(client, args):
    return client.archive_page(_arg(args, "page_id", "id"))


def _block_append(client, args):
    return client.append_blocks(_arg(args, "parent_id", "block_id"), _arg(args, "content"))


def _block_update(client, args):
    return client.update_block(_arg(args, "block_id", "id"), _arg(args, "content"))


def _block_delete(client, args):
    return client.delete_block(_arg(args, "block_id", "id"))


def _comment_create(client, args):
    return client.create_comment(
        _arg(args, "text"),
        page=_arg(args, "page", "page_id", required=False),
        discussion=_arg(args, "discussion", "discussion_id", required=False),
    )


def _database_create(client, args):
    return client.create_database(
        parent=_arg(args, "parent_id", "parent"),
        title=_arg(args, "title"),
        properties=_arg(args, "properties", required=False),
    )


def _database_update(client, args):
    return client.update_database(
        _arg(args, "database_id", "collection_id"),
        title=_arg(args, "title", required=False),
        properties=_arg(args, "properties", required=False),
    )


def _database_delete_property(client, args):
    return client.delete_database_property(
        _arg(args, "database_id", "collection_id"),
        property=_arg(args, "property"),
    )


def _database_add_row(client, args):
    return client.add_database_row(
        _arg(args, "database_id", "collection_id"),
        title=_arg(args, "title", required=False),
        properties=_arg(args, "properties", required=False),
        view_id=_arg(args, "view_id", required=False),
    )


def _database_update_row(client, args):
    return client.update_database_row(
        _arg(args, "row_id", "id"),
        properties=_arg(args, "properties"),
    )


ACTIONS = {
    "page.create": _page_create,
    "page.update": _page_update,
    "page.archive": _page_archive,
    "block.append": _block_append,
    "block.update": _block_update,
    "block.delete": _block_delete,
    "comment.create": _comment_create,
    "database.create": _database_create,
    "database.update": _database_update,
    "database.delete-property": _database_delete_property,
    "database.add-row": _database_add_row,
    "database.update-row": _database_update_row,
}


# ---------------------------------------------------------------------------
# Parsing, validation, execution
# ---------------------------------------------------------------------------


def read_operations_file(path):
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise CliError(f"[ERROR] Could not read operations file {path}: {e}") from e


def parse_operations(raw):
    """Decode a JSON array of operations (string or already-decoded list)."""
    operations = _safe_json_parse(raw, "operations") if isinstance(raw, str) else raw
    if not isinstance(operations, list):
        raise ValidationError("[ERROR] Operations must be an array")
    if not operations:
        raise ValidationError("[ERROR] Operations array cannot be empty")
    return operations


def validate_operations(operations, valid_actions):
    """Reject the whole batch if any operation is malformed or unknown."""
    if not isinstance(operations, list):
        raise ValidationError("[ERROR] Operations must be an array")
    for i, op in enumerate(operations):
        if not isinstance(op, dict):
            raise ValidationError(f"[ERROR] Operation at index {i} must be an object")
        if "action" not in op:
            raise ValidationError(
                f'[ERROR] Operation at index {i} is missing required field "action"'
            )
        action = op["action"]
        if not isinstance(action, str):
            raise ValidationError(
                f"[ERROR] Operation at index {i} has invalid action type: "
                f"expected string, got {type(action).__name__}"
            )
        if action not in valid_actions:
            raise ValidationError(
                f'[ERROR] Invalid action "{action}" at index {i}. '
                f"Valid actions: {', '.join(valid_actions)}"
            )


def run_batch(client, operations, registry=None):
    """Execute *operations* one at a time against *registry* handlers.

    Returns:
        dict with results, total, succeeded and failed. ``total`` counts
        every submitted operation, so a shorter results list means the run
        stopped early. Whatever a handler raises is recorded as that
        operation's error and ends the run.
    """
    registry = ACTIONS if registry is None else registry
    validate_operations(operations, list(registry))
    results = []
    for index, operation in enumerate(operations):
        action = operation["action"]
        try:
            data = registry[action](client, normalize_args(operation))
        except Exception as e:
            results.append({"index": index, "action": action, "success": False, "error": str(e)})
            break
        results.append({"index": index, "action": action, "success": True, "data": data})
    succeeded = sum(1 for r in results if r["success"])
    return {
        "results": results,
        "total": len(operations),
        "succeeded": succeeded,
        "failed": len(results) - succeeded,
    }
