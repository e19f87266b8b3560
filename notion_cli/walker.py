"""
Page-chunk walker: load a page's block subtree through ``loadPageChunk``.

The endpoint returns the subtree in pieces. Each response carries a cursor
whose ``stack`` is non-empty while more chunks remain; partial record maps
are merged until the stack drains or the chunk ceiling is reached.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from notion_cli import config
from notion_cli._utils import _to_dict
from notion_cli.exceptions import InconsistencyError
from notion_cli.records import record_map_values

# Record tables merged from each chunk besides blocks.
_EXTRA_TABLES = ("discussion", "comment", "notion_user", "collection")


@dataclass
class PageTree:
    """Merged result of a chunk walk: ``{table: {id: value}}`` plus chunk count."""

    page_id: str
    records: dict = field(default_factory=dict)
    chunks: int = 0
    has_more: bool = False

    @property
    def blocks(self):
        return self.records.setdefault("block", {})

    def table(self, name):
        return self.records.get(name, {})

    @property
    def root(self):
        return self.blocks.get(self.page_id)

    def merge(self, record_map):
        self.blocks.update(record_map_values(record_map, "block"))
        for table in _EXTRA_TABLES:
            values = record_map_values(record_map, table)
            if values:
                self.records.setdefault(table, {}).update(values)


def _stack(cursor):
    stack = (_to_dict(cursor) or {}).get("stack")
    return stack if isinstance(stack, list) else []


def load_chunk(request, page_id, *, limit, cursor=None, chunk_number=0):
    """One ``loadPageChunk`` round trip. Returns ``(record_map, next_stack)``."""
    response = _to_dict(
        request(
            "loadPageChunk",
            {
                "pageId": page_id,
                "limit": limit,
                "cursor": cursor or {"stack": []},
                "chunkNumber": chunk_number,
                "verticalColumns": False,
            },
        )
    ) or {}
    record_map = _to_dict(response.get("recordMap")) or {}
    return record_map, _stack(response.get("cursor"))


def load_first_chunk(request, page_id, limit=None):
    """Only the first chunk; ``has_more`` tells whether the cursor continues."""
    tree = PageTree(page_id=page_id)
    record_map, next_stack = load_chunk(
        request, page_id, limit=limit or config.PAGE_CHUNK_LIMIT
    )
    tree.merge(record_map)
    tree.chunks = 1
    tree.has_more = bool(next_stack)
    return tree


def walk_page_chunks(request, page_id, limit=None, max_chunks=None):
    """Fetch every chunk of *page_id* and merge the returned records.

    Args:
        request: ``(endpoint, body) -> response`` callable bound to a session.
        page_id: Root page id.
        limit: Blocks per chunk (defaults to ``config.PAGE_CHUNK_LIMIT``).
        max_chunks: Hard ceiling on round trips (defaults to
            ``config.MAX_PAGE_CHUNKS``).

    Returns:
        PageTree with normalized record values.

    Raises:
        InconsistencyError: if the cursor is still non-empty after
            ``max_chunks`` requests.
    """
    limit = limit or config.PAGE_CHUNK_LIMIT
    max_chunks = max_chunks or config.MAX_PAGE_CHUNKS
    tree = PageTree(page_id=page_id)
    cursor = {"stack": []}
    while True:
        if tree.chunks >= max_chunks:
            raise InconsistencyError(
                f"[ERROR] Page {page_id} did not finish loading after {max_chunks} chunks "
                "(raise NOTION_MAX_PAGE_CHUNKS if the page is really that large)."
            )
        record_map, next_stack = load_chunk(
            request, page_id, limit=limit, cursor=cursor, chunk_number=tree.chunks
        )
        tree.merge(record_map)
        tree.chunks += 1
        if not next_stack:
            return tree
        cursor = {"stack": next_stack}
