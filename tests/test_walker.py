"""Tests for walker.py: chunked page loading."""

import pytest

from notion_cli.exceptions import InconsistencyError
from notion_cli.walker import load_first_chunk, walk_page_chunks


def _slot(value):
    return {"value": {"value": value, "role": "editor"}}


class ChunkServer:
    """Serves a fixed list of (block ids, more) chunks."""

    def __init__(self, chunks):
        self.chunks = chunks
        self.bodies = []

    def __call__(self, endpoint, body):
        assert endpoint == "loadPageChunk"
        self.bodies.append(body)
        index = body["chunkNumber"]
        ids, more = self.chunks[min(index, len(self.chunks) - 1)]
        return {
            "recordMap": {"block": {bid: _slot({"id": bid, "type": "text"}) for bid in ids}},
            "cursor": {"stack": [[{"table": "block", "id": "x", "index": index}]] if more else []},
        }


class TestWalkPageChunks:
    def test_single_chunk(self):
        server = ChunkServer([(["page", "a"], False)])
        tree = walk_page_chunks(server, "page", limit=10)
        assert set(tree.blocks) == {"page", "a"}
        assert tree.chunks == 1
        assert server.bodies[0]["cursor"] == {"stack": []}
        assert server.bodies[0]["limit"] == 10

    def test_merges_until_stack_drains(self):
        server = ChunkServer([(["page", "a"], True), (["b"], True), (["c"], False)])
        tree = walk_page_chunks(server, "page")
        assert set(tree.blocks) == {"page", "a", "b", "c"}
        assert tree.chunks == 3
        assert [b["chunkNumber"] for b in server.bodies] == [0, 1, 2]
        assert server.bodies[1]["cursor"]["stack"]

    def test_ceiling_raises(self):
        server = ChunkServer([(["page"], True)])
        with pytest.raises(InconsistencyError, match="after 3 chunks"):
            walk_page_chunks(server, "page", max_chunks=3)
        assert len(server.bodies) == 3

    def test_merges_comment_tables(self):
        def server(endpoint, body):
            return {
                "recordMap": {
                    "block": {"page": _slot({"id": "page"})},
                    "discussion": {"d1": _slot({"id": "d1", "parent_id": "page"})},
                    "comment": {"c1": _slot({"id": "c1", "text": [["hi"]]})},
                },
                "cursor": {"stack": []},
            }

        tree = walk_page_chunks(server, "page")
        assert tree.root == {"id": "page"}
        assert set(tree.table("discussion")) == {"d1"}
        assert set(tree.table("comment")) == {"c1"}
        assert tree.table("notion_user") == {}


class TestLoadFirstChunk:
    def test_reports_has_more(self):
        server = ChunkServer([(["page", "a"], True), (["b"], False)])
        tree = load_first_chunk(server, "page")
        assert tree.has_more is True
        assert "b" not in tree.blocks
        assert len(server.bodies) == 1

    def test_complete_page(self):
        tree = load_first_chunk(ChunkServer([(["page"], False)]), "page")
        assert tree.has_more is False
