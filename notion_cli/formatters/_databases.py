"""Formatters for databases, rows and views."""

from notion_cli.formatters._table import _cell, _table, _trunc


def format_databases_table(databases):
    """Format databases as a readable table.

    Accepts list of flat dicts from NotionClient.list_databases().
    """
    if not databases:
        return "No databases found."
    cols = [("Name", 32), ("Props", 6), ("ID", 0)]
    rows = [
        (
            _trunc(_cell(d.get("name")), 32),
            str(len(d.get("schema_properties") or [])),
            d.get("id", ""),
        )
        for d in databases
    ]
    return _table(cols, rows, f"Total: {len(databases)} databases")


def format_database_detail(database):
    lines = [
        f"Database: {_cell(database.get('name')) or '(untitled)'}",
        f"  ID: {database.get('id', '')}",
    ]
    if database.get("view_id"):
        lines.append(f"  View: {database['view_id']}")
    lines.append("")
    lines.append("Properties:")
    for name, prop in (database.get("schema") or {}).items():
        options = prop.get("options")
        suffix = f"  [{', '.join(str(o) for o in options)}]" if options else ""
        lines.append(f"  {name:<28} {prop.get('type', '?')}{suffix}")
    for diag in database.get("diagnostics") or []:
        lines.append("")
        lines.append(
            f"WARNING: {diag.get('type')}: {diag.get('property')} "
            f"references missing {diag.get('missing')} {diag.get('key')!r}"
        )
    return "\n".join(lines)


def format_rows_table(result):
    """Format query results with one column per property.

    Accepts the dict from NotionClient.query_database().
    """
    rows = result.get("results") or []
    if not rows:
        return "No rows found."
    names = list((rows[0].get("properties") or {}).keys())[:6]
    cols = [(name, 22) for name in names] + [("ID", 0)]
    table_rows = []
    for row in rows:
        props = row.get("properties") or {}
        cells = [_trunc(_cell((props.get(n) or {}).get("value")), 22) for n in names]
        table_rows.append((*cells, row.get("id", "")))
    footer = f"Total: {len(rows)} rows"
    if result.get("has_more"):
        footer += " (more available, raise --limit)"
    return _table(cols, table_rows, footer)


def format_view_table(view):
    cols = [("Property", 28), ("Type", 14), ("Visible", 8), ("Width", 0)]
    rows = [
        (
            _trunc(_cell(c.get("property")), 28),
            c.get("type") or "-",
            _cell(c.get("visible")),
            _cell(c.get("width")),
        )
        for c in view.get("properties") or []
    ]
    return _table(cols, rows, f"View {view.get('id', '')} ({view.get('type', '?')})")
