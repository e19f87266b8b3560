"""Tests for cli.py: argparse, global flags, command dispatch."""

import json
from unittest.mock import patch

import pytest

from notion_cli import config
from notion_cli.cli import (
    _emit_cli_error,
    _error_type_from_message,
    _extract_global_flags,
    build_parser,
    main,
)
from notion_cli.exceptions import CliError, SetupError

# ---------------------------------------------------------------------------
# _extract_global_flags
# ---------------------------------------------------------------------------


class TestExtractGlobalFlags:
    def test_no_flags(self):
        fmt, workspace_id, quiet, verbose, remaining = _extract_global_flags(["page", "list"])
        assert fmt == "json"
        assert workspace_id is None
        assert quiet is False
        assert verbose is False
        assert remaining == ["page", "list"]

    def test_format_after_command(self):
        fmt, _, _, _, remaining = _extract_global_flags(["page", "get", "p1", "--format", "table"])
        assert fmt == "table"
        assert remaining == ["page", "get", "p1"]

    def test_workspace_anywhere(self):
        _, workspace_id, _, _, remaining = _extract_global_flags(
            ["search", "--workspace-id", "s1", "roadmap"]
        )
        assert workspace_id == "s1"
        assert remaining == ["search", "roadmap"]

    def test_quiet_and_verbose_short_flags(self):
        _, _, quiet, _, _ = _extract_global_flags(["-q", "page", "list"])
        assert quiet is True
        _, _, _, verbose, _ = _extract_global_flags(["page", "list", "-v"])
        assert verbose is True

    def test_quiet_verbose_mutually_exclusive(self):
        with pytest.raises(CliError, match="mutually exclusive"):
            _extract_global_flags(["--quiet", "--verbose", "page", "list"])

    def test_version_exits(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            _extract_global_flags(["--version"])
        assert exc_info.value.code == 0
        assert capsys.readouterr().out.strip() == f"notion-cli {config.VERSION}"

    def test_invalid_format(self):
        with pytest.raises(CliError) as exc_info:
            _extract_global_flags(["--format", "csv"])
        assert "Invalid format 'csv'" in str(exc_info.value)

    def test_format_without_value_kept(self):
        fmt, _, _, _, remaining = _extract_global_flags(["page", "list", "--format"])
        assert fmt == "json"
        assert remaining == ["page", "list", "--format"]


# ---------------------------------------------------------------------------
# build_parser
# ---------------------------------------------------------------------------


class TestBuildParser:
    def setup_method(self):
        self.parser = build_parser()

    def test_page_get(self):
        ns = self.parser.parse_args(["page", "get", "p1", "--backlinks", "--limit", "50"])
        assert ns.command == "page"
        assert ns.action == "get"
        assert ns.page_id == "p1"
        assert ns.backlinks is True
        assert ns.limit == 50

    def test_page_create_requires_title(self):
        with pytest.raises(CliError, match="--title"):
            self.parser.parse_args(["page", "create", "--parent", "p1"])

    def test_page_update_flags(self):
        ns = self.parser.parse_args(
            ["page", "update", "p1", "--content", "[]", "--replace-content"]
        )
        assert ns.replace_content is True
        assert ns.title is None

    def test_search_defaults(self):
        ns = self.parser.parse_args(["search", "road"])
        assert ns.limit == 20
        assert ns.all_blocks is False

    def test_limit_must_be_positive(self):
        with pytest.raises(CliError, match="positive integer"):
            self.parser.parse_args(["search", "road", "--limit", "0"])

    def test_database_query_defaults(self):
        ns = self.parser.parse_args(["database", "query", "c1"])
        assert ns.view_id is None
        assert ns.search_query == ""
        assert ns.timezone == "UTC"
        assert ns.filter is None

    def test_delete_property_requires_property(self):
        with pytest.raises(CliError):
            self.parser.parse_args(["database", "delete-property", "c1"])

    def test_view_update(self):
        ns = self.parser.parse_args(
            ["database", "view-update", "v1", "--show", "Status", "--resize", '{"Status": 200}']
        )
        assert ns.show == "Status"
        assert ns.resize == '{"Status": 200}'
        assert ns.hide is None

    def test_comment_create(self):
        ns = self.parser.parse_args(["comment", "create", "Nice work", "--page", "p1"])
        assert ns.text == "Nice work"
        assert ns.page == "p1"
        assert ns.discussion is None

    def test_batch_inline_or_file(self):
        assert self.parser.parse_args(["batch", "[]"]).operations == "[]"
        ns = self.parser.parse_args(["batch", "--file", "ops.json"])
        assert ns.operations is None
        assert ns.file == "ops.json"

    def test_every_leaf_parser_has_func(self):
        """Every runnable subparser sets a func default for dispatch."""
        groups = {"workspace", "user", "page", "block", "database", "comment"}
        for action in self.parser._subparsers._actions:
            if not hasattr(action, "_name_parser_map"):
                continue
            for name, subparser in action._name_parser_map.items():
                if name not in groups:
                    assert "func" in subparser._defaults, f"'{name}' missing func default"
                    continue
                for sub_action in subparser._subparsers._actions:
                    for leaf, leaf_parser in getattr(sub_action, "_name_parser_map", {}).items():
                        assert leaf_parser._defaults.get("func"), f"'{name} {leaf}' missing func"


# ---------------------------------------------------------------------------
# Error output and main()
# ---------------------------------------------------------------------------


class TestCliErrorOutput:
    def test_error_type_mapping(self):
        assert _error_type_from_message("[TOKEN_EXPIRED] x") == "token_expired"
        assert _error_type_from_message("[SETUP_NEEDED] x") == "setup_needed"
        assert _error_type_from_message("[ERROR] x") == "error"
        assert _error_type_from_message("plain") == "cli_error"

    def test_emit_json_error(self, capsys):
        _emit_cli_error(SetupError("[TOKEN_EXPIRED] stale"), "json")
        payload = json.loads(capsys.readouterr().err.strip())
        assert payload == {
            "ok": False,
            "schema_version": config.CONTRACT_SCHEMA_VERSION,
            "error": {"type": "token_expired", "message": "[TOKEN_EXPIRED] stale", "exit_code": 2},
        }

    def test_emit_table_error(self, capsys):
        _emit_cli_error(CliError("[ERROR] bad input"), "table")
        assert capsys.readouterr().err.strip() == "[ERROR] bad input"


class TestMain:
    def test_no_args_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "Usage: notion-cli" in capsys.readouterr().out

    def test_version_command(self, capsys):
        with pytest.raises(SystemExit):
            main(["version"])
        assert config.VERSION in capsys.readouterr().out

    def test_missing_subcommand(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["page"])
        assert exc_info.value.code == 1
        payload = json.loads(capsys.readouterr().err)
        assert "Missing subcommand for 'page'" in payload["error"]["message"]

    @patch("notion_cli.commands.NotionClient")
    def test_dispatches_with_workspace(self, mock_client_cls, capsys):
        mock_client_cls.return_value.get_page.return_value = {"id": "p1", "title": "T"}
        main(["--workspace-id", "s1", "page", "get", "p1"])
        mock_client_cls.assert_called_once_with(workspace_id="s1")
        mock_client_cls.return_value.get_page.assert_called_once_with(
            "p1", backlinks=False, limit=None
        )
        assert json.loads(capsys.readouterr().out) == {"id": "p1", "title": "T"}

    @patch("notion_cli.commands.NotionClient")
    def test_setup_error_exit_code(self, mock_client_cls, capsys):
        mock_client_cls.side_effect = SetupError("[SETUP_NEEDED] No Notion credentials found.")
        with pytest.raises(SystemExit) as exc_info:
            main(["workspace", "list", "--format", "table"])
        assert exc_info.value.code == 2
        assert capsys.readouterr().err.startswith("[SETUP_NEEDED]")

    @patch("notion_cli.commands.NotionClient")
    def test_verbose_enables_http_log(self, mock_client_cls, capsys):
        mock_client_cls.return_value.list_workspaces.return_value = []
        main(["-v", "workspace", "list"])
        assert config.HTTP_LOG_ENABLED is True
        assert config.RUNTIME_VERBOSE is True
