"""Tests for commands.py: argument passthrough and output selection.
Uses mocks to avoid real API calls.
"""

import argparse
import io
import json
from unittest.mock import patch

import pytest

from notion_cli.commands import (
    cmd_batch,
    cmd_block_append,
    cmd_comment_create,
    cmd_database_add_row,
    cmd_database_query,
    cmd_database_view_update,
    cmd_page_list,
    cmd_page_update,
    cmd_search,
)
from notion_cli.exceptions import CliError


def _ns(**kwargs):
    defaults = {"format": "json", "workspace_id": None}
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


@pytest.fixture
def mock_client():
    with patch("notion_cli.commands.NotionClient") as cls:
        yield cls.return_value


class TestPassthrough:
    def test_search_flags(self, mock_client, capsys):
        mock_client.search.return_value = {"results": [], "total": 0}
        cmd_search(_ns(query="road", workspace_id="s1", limit=5, all_blocks=True))
        mock_client.search.assert_called_once_with(
            "road", workspace_id="s1", limit=5, navigable_only=False
        )
        assert json.loads(capsys.readouterr().out) == {"results": [], "total": 0}

    def test_page_list(self, mock_client, capsys):
        mock_client.list_pages.return_value = {"pages": [], "total": 0}
        cmd_page_list(_ns(workspace_id="s1", depth=2, format="table"))
        mock_client.list_pages.assert_called_once_with(workspace_id="s1", depth=2)
        assert capsys.readouterr().out.strip() == "No pages found."

    def test_page_update(self, mock_client, capsys):
        mock_client.update_page.return_value = {"id": "p1"}
        cmd_page_update(
            _ns(page_id="p1", title="T", icon=None, content="[]", replace_content=True)
        )
        mock_client.update_page.assert_called_once_with(
            "p1", title="T", icon=None, content="[]", replace_content=True
        )

    def test_block_append(self, mock_client, capsys):
        mock_client.append_blocks.return_value = {"created": ["b1"]}
        cmd_block_append(_ns(parent_id="p1", content='[{"type": "text"}]', format="table"))
        assert capsys.readouterr().out.strip() == 'created: ["b1"]'

    def test_database_query(self, mock_client, capsys):
        mock_client.query_database.return_value = {"results": [], "has_more": False}
        cmd_database_query(
            _ns(
                database_id="c1",
                view_id=None,
                limit=10,
                search_query="",
                timezone="UTC",
                filter='{"operator": "and"}',
                sort=None,
            )
        )
        kwargs = mock_client.query_database.call_args.kwargs
        assert kwargs["limit"] == 10
        assert kwargs["filter"] == '{"operator": "and"}'

    def test_add_row(self, mock_client, capsys):
        mock_client.add_database_row.return_value = {"id": "r1"}
        cmd_database_add_row(
            _ns(database_id="c1", title="Row", properties='{"Status": "Open"}', view_id="v1")
        )
        mock_client.add_database_row.assert_called_once_with(
            "c1", title="Row", properties='{"Status": "Open"}', view_id="v1"
        )

    def test_view_update(self, mock_client, capsys):
        mock_client.update_database_view.return_value = {"id": "v1", "properties": []}
        cmd_database_view_update(
            _ns(view_id="v1", show="A,B", hide=None, reorder=None, resize=None)
        )
        mock_client.update_database_view.assert_called_once_with(
            "v1", show="A,B", hide=None, reorder=None, resize=None
        )

    def test_comment_reply(self, mock_client, capsys):
        mock_client.create_comment.return_value = {"id": "c1"}
        cmd_comment_create(_ns(text="ok", page=None, discussion="d1"))
        mock_client.create_comment.assert_called_once_with("ok", page=None, discussion="d1")


class TestBatch:
    def test_inline(self, mock_client, capsys):
        mock_client.batch.return_value = {"results": [], "total": 1, "succeeded": 1, "failed": 0}
        cmd_batch(_ns(operations='[{"action": "page.archive", "id": "p1"}]', file=None))
        mock_client.batch.assert_called_once_with('[{"action": "page.archive", "id": "p1"}]')

    def test_file(self, mock_client, tmp_path, capsys):
        path = tmp_path / "ops.json"
        path.write_text("[]", encoding="utf-8")
        mock_client.batch.return_value = {"results": [], "total": 0, "succeeded": 0, "failed": 0}
        cmd_batch(_ns(operations=None, file=str(path)))
        mock_client.batch.assert_called_once_with("[]")

    def test_stdin(self, mock_client, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO('[{"action": "x"}]'))
        mock_client.batch.return_value = {"results": [], "total": 1, "succeeded": 1, "failed": 0}
        cmd_batch(_ns(operations=None, file="-"))
        mock_client.batch.assert_called_once_with('[{"action": "x"}]')

    def test_failure_exits_nonzero(self, mock_client, capsys):
        mock_client.batch.return_value = {
            "results": [{"index": 0, "action": "page.archive", "success": False, "error": "x"}],
            "total": 2,
            "succeeded": 0,
            "failed": 1,
        }
        with pytest.raises(SystemExit) as exc_info:
            cmd_batch(_ns(operations="[]", file=None, format="table"))
        assert exc_info.value.code == 1
        assert "not run: 1" in capsys.readouterr().out

    def test_both_sources_rejected(self, mock_client):
        with pytest.raises(CliError, match="not both"):
            cmd_batch(_ns(operations="[]", file="ops.json"))

    def test_no_source(self, mock_client):
        with pytest.raises(CliError, match="Operations are required"):
            cmd_batch(_ns(operations=None, file=None))
