"""
notion-cli: command-line access to Notion pages, blocks, databases and comments
"""

import argparse
import json
import sys

from notion_cli import config
from notion_cli.commands import (
    cmd_batch,
    cmd_block_append,
    cmd_block_children,
    cmd_block_delete,
    cmd_block_get,
    cmd_block_update,
    cmd_comment_create,
    cmd_comment_get,
    cmd_comment_list,
    cmd_database_add_row,
    cmd_database_create,
    cmd_database_delete_property,
    cmd_database_get,
    cmd_database_list,
    cmd_database_query,
    cmd_database_update,
    cmd_database_update_row,
    cmd_database_view_get,
    cmd_database_view_update,
    cmd_page_archive,
    cmd_page_create,
    cmd_page_get,
    cmd_page_list,
    cmd_page_update,
    cmd_search,
    cmd_user_get,
    cmd_user_me,
    cmd_workspace_list,
)
from notion_cli.exceptions import CliError

HELP_TEXT = """\
Usage: notion-cli <group> <command> [args...]

Global flags:
  --format table          Output as readable text instead of JSON (default: json)
  --workspace-id <id>     Act in this workspace (selects the owning account)
  --quiet, -q             Suppress warnings
  --verbose, -v           Enable HTTP request logging
  --version               Show version number

Workspaces, users, search:
  workspace list          - Workspaces reachable by every signed-in account
  user me                 - The signed-in account(s) and their workspaces
  user get <id>           - One user's name and email
  search <query>          - Quick-find search in a workspace
    --limit <n>             Max results (default: 20)
    --all-blocks            Include non-navigable blocks

Pages:
  page list               - Top-level pages of a workspace
    --depth <n>             Levels of sub-pages to include (default: 1)
  page get <id>           - Page title and full block tree
    --backlinks             Also list pages that mention this one
    --limit <n>             Blocks per chunk request
  page create             - Create a page
    --parent <id>           Parent page (required)
    --title <text>          Title (required)
    --content <json>        Body as [{"type": ..., "properties": ...}]
  page update <id>        - Rename, change icon, append or replace the body
    --title <text>  --icon <emoji|url>  --content <json>  --replace-content
  page archive <id>       - Archive a page and unlink it from its parent

Blocks:
  block get <id>          - One block's type, text and structure
  block children <id>     - Direct children of a block
    --limit <n>             Blocks per chunk request
  block append <parent>   - Append blocks
    --content <json>        [{"type": ..., "properties": ...}] (required)
  block update <id>       - Merge a JSON object into a block
    --content <json>        (required)
  block delete <id>       - Archive a block

Databases:
  database list           - Databases in your workspace content
  database get <id>       - Schema by display name, plus rollup diagnostics
  database query <id>     - Rows with decoded property values
    --view-id <id>  --limit <n>  --search-query <text>  --timezone <tz>
    --filter <json>  --sort <json>
  database create         - Create a database page
    --parent <id>  --title <text>  --properties <json>
  database update <id>    - Rename and/or merge property definitions
    --title <text>  --properties <json>
  database delete-property <id> --property <name>
  database add-row <id>   - Add a row
    --title <text>  --properties <json name:value>  --view-id <id>
  database update-row <row-id> --properties <json name:value>
  database view-get <view-id>
  database view-update <view-id>
    --show <names>  --hide <names>  --reorder <names>  --resize <json name:width>
    (names: comma-separated or JSON array)

Comments:
  comment list <page-id>  - Comments in every discussion on a page
  comment create <text>   - Comment on a page or reply in a discussion
    --page <id> | --discussion <id>
  comment get <id>        - One comment

Batch:
  batch [<json>]          - Run write operations in order, stop at first failure
    --file <path>           Read the operations array from a file ("-" for stdin)
"""


# ---------------------------------------------------------------------------
# Global flag extraction (before argparse, so --format works after subcommand)
# ---------------------------------------------------------------------------


def _extract_global_flags(argv):
    """Extract global flags from argv regardless of position.

    Returns (format_str, workspace_id, quiet, verbose, remaining_argv).
    Handles --version directly.
    """
    fmt = "json"
    workspace_id = None
    quiet = False
    verbose = False
    remaining = []
    i = 0
    while i < len(argv):
        if argv[i] == "--version":
            print(f"notion-cli {config.VERSION}")
            sys.exit(0)
        elif argv[i] in ("--quiet", "-q"):
            quiet = True
            i += 1
            continue
        elif argv[i] in ("--verbose", "-v"):
            verbose = True
            i += 1
            continue
        elif argv[i] == "--format" and i + 1 < len(argv):
            fmt = argv[i + 1]
            if fmt not in ("json", "table"):
                raise CliError(f"[ERROR] Invalid format '{fmt}'. Use: json, table")
            i += 2
            continue
        elif argv[i] == "--workspace-id" and i + 1 < len(argv):
            workspace_id = argv[i + 1]
            i += 2
            continue
        else:
            remaining.append(argv[i])
        i += 1
    if quiet and verbose:
        raise CliError("[ERROR] --quiet and --verbose are mutually exclusive.")
    return fmt, workspace_id, quiet, verbose, remaining


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


class _SubcommandParser(argparse.ArgumentParser):
    """Subparser that raises CliError instead of printing full help text."""

    def error(self, message):
        raise CliError(f"[ERROR] {message}")


def _positive_int(value):
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be a positive integer") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return parsed


def _group(sub, name):
    p = sub.add_parser(name)
    return p.add_subparsers(dest="action", parser_class=_SubcommandParser)


def build_parser():
    parser = _SubcommandParser(
        prog="notion-cli",
        description="Command-line access to Notion pages, blocks, databases and comments",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument("--help", "-h", action="store_true", dest="show_help")
    sub = parser.add_subparsers(dest="command", parser_class=_SubcommandParser)

    # --- workspace / user / search ---
    ws = _group(sub, "workspace")
    ws.add_parser("list").set_defaults(func=cmd_workspace_list)

    user = _group(sub, "user")
    user.add_parser("me").set_defaults(func=cmd_user_me)
    p = user.add_parser("get")
    p.add_argument("user_id")
    p.set_defaults(func=cmd_user_get)

    p = sub.add_parser("search")
    p.add_argument("query")
    p.add_argument("--limit", type=_positive_int, default=20)
    p.add_argument("--all-blocks", action="store_true", dest="all_blocks")
    p.set_defaults(func=cmd_search)

    # --- page ---
    page = _group(sub, "page")
    p = page.add_parser("list")
    p.add_argument("--depth", type=_positive_int, default=1)
    p.set_defaults(func=cmd_page_list)

    p = page.add_parser("get")
    p.add_argument("page_id")
    p.add_argument("--backlinks", action="store_true")
    p.add_argument("--limit", type=_positive_int)
    p.set_defaults(func=cmd_page_get)

    p = page.add_parser("create")
    p.add_argument("--parent", required=True)
    p.add_argument("--title", required=True)
    p.add_argument("--content")
    p.set_defaults(func=cmd_page_create)

    p = page.add_parser("update")
    p.add_argument("page_id")
    p.add_argument("--title")
    p.add_argument("--icon")
    p.add_argument("--content")
    p.add_argument("--replace-content", action="store_true", dest="replace_content")
    p.set_defaults(func=cmd_page_update)

    p = page.add_parser("archive")
    p.add_argument("page_id")
    p.set_defaults(func=cmd_page_archive)

    # --- block ---
    block = _group(sub, "block")
    p = block.add_parser("get")
    p.add_argument("block_id")
    p.set_defaults(func=cmd_block_get)

    p = block.add_parser("children")
    p.add_argument("block_id")
    p.add_argument("--limit", type=_positive_int)
    p.set_defaults(func=cmd_block_children)

    p = block.add_parser("append")
    p.add_argument("parent_id")
    p.add_argument("--content", required=True)
    p.set_defaults(func=cmd_block_append)

    p = block.add_parser("update")
    p.add_argument("block_id")
    p.add_argument("--content", required=True)
    p.set_defaults(func=cmd_block_update)

    p = block.add_parser("delete")
    p.add_argument("block_id")
    p.set_defaults(func=cmd_block_delete)

    # --- database ---
    db = _group(sub, "database")
    db.add_parser("list").set_defaults(func=cmd_database_list)

    p = db.add_parser("get")
    p.add_argument("database_id")
    p.set_defaults(func=cmd_database_get)

    p = db.add_parser("query")
    p.add_argument("database_id")
    p.add_argument("--view-id", dest="view_id")
    p.add_argument("--limit", type=_positive_int)
    p.add_argument("--search-query", dest="search_query", default="")
    p.add_argument("--timezone", default="UTC")
    p.add_argument("--filter")
    p.add_argument("--sort")
    p.set_defaults(func=cmd_database_query)

    p = db.add_parser("create")
    p.add_argument("--parent", required=True)
    p.add_argument("--title", required=True)
    p.add_argument("--properties")
    p.set_defaults(func=cmd_database_create)

    p = db.add_parser("update")
    p.add_argument("database_id")
    p.add_argument("--title")
    p.add_argument("--properties")
    p.set_defaults(func=cmd_database_update)

    p = db.add_parser("delete-property")
    p.add_argument("database_id")
    p.add_argument("--property", required=True)
    p.set_defaults(func=cmd_database_delete_property)

    p = db.add_parser("add-row")
    p.add_argument("database_id")
    p.add_argument("--title")
    p.add_argument("--properties")
    p.add_argument("--view-id", dest="view_id")
    p.set_defaults(func=cmd_database_add_row)

    p = db.add_parser("update-row")
    p.add_argument("row_id")
    p.add_argument("--properties", required=True)
    p.set_defaults(func=cmd_database_update_row)

    p = db.add_parser("view-get")
    p.add_argument("view_id")
    p.set_defaults(func=cmd_database_view_get)

    p = db.add_parser("view-update")
    p.add_argument("view_id")
    p.add_argument("--show")
    p.add_argument("--hide")
    p.add_argument("--reorder")
    p.add_argument("--resize")
    p.set_defaults(func=cmd_database_view_update)

    # --- comment ---
    comment = _group(sub, "comment")
    p = comment.add_parser("list")
    p.add_argument("page_id")
    p.set_defaults(func=cmd_comment_list)

    p = comment.add_parser("create")
    p.add_argument("text")
    p.add_argument("--page")
    p.add_argument("--discussion")
    p.set_defaults(func=cmd_comment_create)

    p = comment.add_parser("get")
    p.add_argument("comment_id")
    p.set_defaults(func=cmd_comment_get)

    # --- batch ---
    p = sub.add_parser("batch")
    p.add_argument("operations", nargs="?")
    p.add_argument("--file")
    p.set_defaults(func=cmd_batch)

    # --- version (bare word) ---
    sub.add_parser("version").set_defaults(func=None)

    return parser


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------


def _error_type_from_message(message):
    if message.startswith("[TOKEN_EXPIRED]"):
        return "token_expired"
    if message.startswith("[SETUP_NEEDED]"):
        return "setup_needed"
    if message.startswith("[ERROR]"):
        return "error"
    return "cli_error"


def _emit_cli_error(err, fmt):
    msg = str(err)
    if fmt == "json":
        payload = {
            "ok": False,
            "schema_version": config.CONTRACT_SCHEMA_VERSION,
            "error": {
                "type": _error_type_from_message(msg),
                "message": msg,
                "exit_code": getattr(err, "exit_code", 1),
            },
        }
        print(json.dumps(payload, ensure_ascii=False), file=sys.stderr)
        return
    print(msg, file=sys.stderr)


def main(argv=None):
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")

    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print(HELP_TEXT)
        sys.exit(0)

    fmt = "json"
    try:
        # Extract global flags from anywhere in argv
        fmt, workspace_id, quiet, verbose, remaining_argv = _extract_global_flags(argv)
        config.RUNTIME_QUIET = quiet
        config.RUNTIME_VERBOSE = verbose
        if verbose:
            config.HTTP_LOG_ENABLED = True

        if not remaining_argv:
            print(HELP_TEXT)
            sys.exit(0)

        parser = build_parser()
        ns = parser.parse_args(remaining_argv)
        ns.format = fmt  # inject global flags
        ns.workspace_id = workspace_id

        if ns.show_help or not ns.command:
            print(HELP_TEXT)
            sys.exit(0)

        if ns.command == "version":
            print(f"notion-cli {config.VERSION}")
            sys.exit(0)

        handler = getattr(ns, "func", None)
        if handler:
            handler(ns)
        elif getattr(ns, "action", None) is None:
            raise CliError(f"[ERROR] Missing subcommand for '{ns.command}'. See notion-cli --help")
        else:
            raise CliError(f"[ERROR] Unknown command: {ns.command} {ns.action}")

    except CliError as e:
        _emit_cli_error(e, fmt)
        sys.exit(e.exit_code)


if __name__ == "__main__":
    main()
