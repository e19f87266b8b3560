"""Tests for the exception hierarchy and package re-exports."""

from notion_cli.exceptions import (
    CliError,
    HTTPError,
    InconsistencyError,
    NotFoundError,
    PartialFailureError,
    SetupError,
    ValidationError,
)


class TestExceptionHierarchy:
    def test_setup_error_is_cli_error(self):
        assert issubclass(SetupError, CliError)

    def test_domain_errors_are_cli_errors(self):
        for cls in (NotFoundError, ValidationError, InconsistencyError, PartialFailureError):
            assert issubclass(cls, CliError)
            assert cls.exit_code == 1

    def test_http_error_not_cli_error(self):
        assert not issubclass(HTTPError, CliError)

    def test_exit_codes(self):
        assert CliError.exit_code == 1
        assert SetupError.exit_code == 2


class TestPartialFailureError:
    def test_stages(self):
        err = PartialFailureError("[ERROR] half done", completed="clear", failed="append")
        assert str(err) == "[ERROR] half done"
        assert err.completed == "clear"
        assert err.failed == "append"

    def test_stages_default_to_none(self):
        err = PartialFailureError("x")
        assert err.completed is None
        assert err.failed is None


class TestHTTPErrorAttrs:
    def test_http_error_attrs(self):
        err = HTTPError(404, "Not Found", "body text", {"X-Req": "abc"})
        assert err.code == 404
        assert err.reason == "Not Found"
        assert err.body == "body text"
        assert err.headers == {"X-Req": "abc"}

    def test_http_error_default_headers(self):
        assert HTTPError(500, "Server Error", "").headers == {}


class TestReExports:
    def test_init_re_exports(self):
        from notion_cli import CliError as InitCliError
        from notion_cli import SetupError as InitSetupError

        assert InitCliError is CliError
        assert InitSetupError is SetupError

    def test_api_re_exports_http_error(self):
        from notion_cli.api import HTTPError as ApiHTTPError

        assert ApiHTTPError is HTTPError
