"""Formatters for pages, blocks, comments and search results."""

from notion_cli.formatters._table import _cell, _table, _trunc


def _tree_lines(nodes, lines, indent=0):
    for node in nodes:
        text = _cell(node.get("text") or node.get("title") or "")
        prefix = "  " * indent
        kind = node.get("type", "?")
        lines.append(f"{prefix}- [{kind}] {_trunc(text, 80)}  {node.get('id', '')}")
        _tree_lines(node.get("children") or [], lines, indent + 1)


def format_page_list_table(result):
    """Format page listings as an indented tree.

    Accepts the dict from NotionClient.list_pages().
    """
    pages = result.get("pages") or []
    if not pages:
        return "No pages found."
    lines = []
    _tree_lines(pages, lines)
    lines.append("")
    lines.append(f"Total: {result.get('total', len(pages))} top-level pages")
    return "\n".join(lines)


def format_page_detail(page):
    lines = [
        f"Page: {_cell(page.get('title')) or '(untitled)'}",
        f"  ID: {page.get('id', '')}",
        "",
    ]
    blocks = page.get("blocks") or []
    if blocks:
        _tree_lines(blocks, lines)
    else:
        lines.append("(empty page)")
    backlinks = page.get("backlinks")
    if backlinks is not None:
        lines.append("")
        lines.append(f"Backlinks ({len(backlinks)}):")
        for link in backlinks:
            lines.append(f"  - {_trunc(_cell(link.get('title')), 60)}  {link.get('id', '')}")
    return "\n".join(lines)


def format_blocks_table(result):
    """Format block children. Accepts NotionClient.list_block_children()."""
    blocks = result.get("results") or []
    if not blocks:
        return "No child blocks."
    cols = [("Type", 18), ("Text", 50), ("ID", 0)]
    rows = [
        (_trunc(b.get("type", ""), 18), _trunc(_cell(b.get("text")), 50), b.get("id", ""))
        for b in blocks
    ]
    footer = f"Total: {len(blocks)} blocks"
    if result.get("has_more"):
        footer += " (more available)"
    return _table(cols, rows, footer)


def format_comments_table(result):
    comments = result.get("results") or []
    if not comments:
        return "No comments found."
    cols = [("Discussion", 38), ("Author", 38), ("Text", 0)]
    rows = [
        (
            c.get("discussion_id", ""),
            c.get("created_by") or "-",
            _trunc(_cell(c.get("text")), 60),
        )
        for c in comments
    ]
    return _table(cols, rows, f"Total: {result.get('total', len(comments))} comments")


def format_search_table(result):
    hits = result.get("results") or []
    if not hits:
        return "No results."
    cols = [("Title", 50), ("Score", 8), ("ID", 0)]
    rows = [
        (_trunc(_cell(h.get("title")), 50), _cell(h.get("score")), h.get("id", ""))
        for h in hits
    ]
    return _table(cols, rows, f"Total: {result.get('total', len(hits))} matches")


def format_workspaces_table(workspaces):
    if not workspaces:
        return "No workspaces found."
    cols = [("Name", 30), ("Plan", 12), ("ID", 0)]
    rows = [
        (_trunc(_cell(w.get("name")), 30), _cell(w.get("plan_type")), w.get("id", ""))
        for w in workspaces
    ]
    return _table(cols, rows, f"Total: {len(workspaces)} workspaces")


def format_batch_table(result):
    """Format a batch summary. Accepts NotionClient.batch()."""
    cols = [("#", 4), ("Action", 26), ("OK", 4), ("Detail", 0)]
    rows = []
    for entry in result.get("results") or []:
        if entry.get("success"):
            data = entry.get("data")
            detail = data.get("id", "") if isinstance(data, dict) else _cell(data)
        else:
            detail = _trunc(_cell(entry.get("error")), 80)
        rows.append(
            (str(entry.get("index")), entry.get("action", ""), _cell(entry.get("success")), detail)
        )
    footer = (
        f"Total: {result.get('total', 0)}  succeeded: {result.get('succeeded', 0)}"
        f"  failed: {result.get('failed', 0)}"
    )
    skipped = result.get("total", 0) - len(result.get("results") or [])
    if skipped > 0:
        footer += f"  not run: {skipped}"
    return _table(cols, rows, footer)
