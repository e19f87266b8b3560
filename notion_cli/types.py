"""Typed response definitions for NotionClient methods.

These TypedDicts document the shape of dicts returned by public API methods.
They are optional: runtime behavior is unchanged (plain dicts).
"""

from __future__ import annotations

from typing import Any, TypedDict

# ---------------------------------------------------------------------------
# Pages and blocks
# ---------------------------------------------------------------------------


class BlockNode(TypedDict, total=False):
    """One block in a page tree."""

    id: str
    type: str
    text: str
    children: list[BlockNode]


class BacklinkRow(TypedDict):
    id: str
    title: str


class PageDetail(TypedDict, total=False):
    """Return type of NotionClient.get_page()."""

    id: str
    title: str
    blocks: list[BlockNode]
    backlinks: list[BacklinkRow]


class PageEntry(TypedDict, total=False):
    id: str
    title: str
    type: str
    children: list[PageEntry]


class PageListResult(TypedDict):
    """Return type of NotionClient.list_pages()."""

    pages: list[PageEntry]
    total: int


class BlockChildrenResult(TypedDict):
    results: list[BlockNode]
    has_more: bool


class AppendResult(TypedDict):
    created: list[str]


# ---------------------------------------------------------------------------
# Databases
# ---------------------------------------------------------------------------


class SchemaProperty(TypedDict, total=False):
    type: str
    options: list[str]


class RollupDiagnostic(TypedDict):
    type: str
    property: str
    missing: str
    key: str | None


class DatabaseDetail(TypedDict, total=False):
    """Return type of NotionClient.get_database()."""

    id: str
    name: str
    schema: dict[str, SchemaProperty]
    diagnostics: list[RollupDiagnostic]


class DatabaseRow(TypedDict):
    id: str
    name: str
    schema_properties: list[str]


class PropertyOutput(TypedDict, total=False):
    type: str
    value: Any
    end: str


class QueryRow(TypedDict):
    id: str
    properties: dict[str, PropertyOutput]


class QueryResult(TypedDict):
    """Return type of NotionClient.query_database()."""

    results: list[QueryRow]
    has_more: bool
    next_cursor: str | None


class ViewColumn(TypedDict, total=False):
    property: str
    key: str
    type: str
    visible: bool
    width: int


class ViewDetail(TypedDict):
    id: str
    type: str
    name: str
    collection_id: str | None
    properties: list[ViewColumn]


# ---------------------------------------------------------------------------
# Comments, users, search, batch
# ---------------------------------------------------------------------------


class CommentRow(TypedDict):
    id: str
    text: str
    discussion_id: str
    created_by: str | None
    created_time: int | None


class CommentListResult(TypedDict):
    results: list[CommentRow]
    total: int


class WorkspaceRow(TypedDict):
    id: str
    name: str | None
    icon: str | None
    plan_type: str | None


class SearchRow(TypedDict):
    id: str
    title: str
    score: float | None
    spaceId: str | None


class SearchResult(TypedDict):
    results: list[SearchRow]
    total: int


class BatchEntry(TypedDict, total=False):
    index: int
    action: str
    success: bool
    data: Any
    error: str


class BatchResult(TypedDict):
    """Return type of NotionClient.batch()."""

    results: list[BatchEntry]
    total: int
    succeeded: int
    failed: int
