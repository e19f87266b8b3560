"""Tests for api.py: security helpers, HTTP error handling, endpoint invocation."""

import io
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from notion_cli.api import (
    HTTPError,
    _error_envelope,
    _http_request,
    _is_sampled_request,
    _mask_token,
    _parse_retry_after,
    _safe_json_parse,
    _sanitize_error,
    invoke,
)
from notion_cli.exceptions import CliError, SetupError
from notion_cli.session import Session

SESSION = Session(token_v2="secret-token-value", user_id="user-1")


class TestMaskToken:
    def test_long_token(self):
        assert _mask_token("abcdef1234567890") == "abcdef..."

    def test_short_token(self):
        assert _mask_token("abc") == "abc"

    def test_exactly_six(self):
        assert _mask_token("abcdef") == "abcdef"


class TestSampling:
    def test_sample_rate_zero_disables(self, monkeypatch):
        monkeypatch.setattr("notion_cli.api.config.HTTP_LOG_SAMPLE_RATE", 0.0)
        assert _is_sampled_request("req-1") is False

    def test_sample_rate_one_enables(self, monkeypatch):
        monkeypatch.setattr("notion_cli.api.config.HTTP_LOG_SAMPLE_RATE", 1.0)
        assert _is_sampled_request("req-1") is True

    def test_sampling_is_deterministic(self, monkeypatch):
        monkeypatch.setattr("notion_cli.api.config.HTTP_LOG_SAMPLE_RATE", 0.5)
        assert _is_sampled_request("req-stable") == _is_sampled_request("req-stable")


class TestSafeJsonParse:
    def test_valid_json(self):
        assert _safe_json_parse('{"a": 1}') == {"a": 1}

    def test_invalid_json(self):
        with pytest.raises(CliError) as exc_info:
            _safe_json_parse("not json", "--properties")
        assert exc_info.value.exit_code == 1
        assert "Invalid JSON in --properties" in str(exc_info.value)


class TestSanitizeError:
    def test_strips_html(self):
        assert _sanitize_error("<h1>Error</h1><p>Details</p>") == "ErrorDetails"

    def test_truncates_long_body(self):
        result = _sanitize_error("x" * 1000)
        assert result.endswith("... [truncated]")

    def test_empty_body(self):
        assert _sanitize_error("") == ""
        assert _sanitize_error(None) == ""


class TestErrorEnvelope:
    def test_meta_suffix(self):
        msg = _error_envelope("Boom", status=500, request_id="r1", retryable=False)
        assert msg == "[ERROR] Boom (status=500, request_id=r1, retryable=no)"

    def test_detail_on_next_line(self):
        assert _error_envelope("Boom", detail="body").endswith("\nbody")


class TestRetryAfter:
    def test_parses_seconds(self):
        assert _parse_retry_after({"Retry-After": "3"}) == 3

    def test_ignores_dates_and_missing(self):
        assert _parse_retry_after({"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"}) is None
        assert _parse_retry_after(None) is None


class TestInvoke:
    @patch("notion_cli.api._http_request")
    def test_posts_to_endpoint_with_cookie(self, mock_http):
        mock_http.return_value = {"recordMap": {}}
        assert invoke(SESSION, "syncRecordValues", {"requests": []}) == {"recordMap": {}}
        url, body, headers = mock_http.call_args.args
        assert url == "https://notion.test/api/v3/syncRecordValues"
        assert body == {"requests": []}
        assert headers["cookie"] == "token_v2=secret-token-value"
        assert headers["x-notion-active-user-header"] == "user-1"
        assert headers["X-Request-Id"]
        assert mock_http.call_args.kwargs["idempotent"] is True

    @patch("notion_cli.api._http_request")
    def test_no_user_header_without_user(self, mock_http):
        invoke(Session(token_v2="tok"), "getSpaces")
        headers = mock_http.call_args.args[2]
        assert "x-notion-active-user-header" not in headers

    @patch("notion_cli.api._http_request")
    def test_writes_are_not_idempotent(self, mock_http):
        invoke(SESSION, "saveTransactions", {"transactions": []})
        assert mock_http.call_args.kwargs["idempotent"] is False

    @pytest.mark.parametrize("code", [401, 403])
    @patch("notion_cli.api._http_request")
    def test_auth_failure_is_setup_error(self, mock_http, code):
        mock_http.side_effect = HTTPError(code, "Unauthorized", "")
        with pytest.raises(SetupError) as exc_info:
            invoke(SESSION, "getSpaces")
        msg = str(exc_info.value)
        assert "[TOKEN_EXPIRED]" in msg
        assert "secret-token-value" not in msg
        assert "secret..." in msg
        assert exc_info.value.exit_code == 2

    @patch("notion_cli.api._http_request")
    def test_rate_limit_message(self, mock_http):
        mock_http.side_effect = HTTPError(429, "Too Many Requests", "")
        with pytest.raises(CliError, match="Rate limit"):
            invoke(SESSION, "search", {})

    @patch("notion_cli.api._http_request")
    def test_server_error_includes_status_and_body(self, mock_http):
        mock_http.side_effect = HTTPError(
            500, "Server Error", "<p>oops</p>", headers={"x-notion-request-id": "nr-1"}
        )
        with pytest.raises(CliError) as exc_info:
            invoke(SESSION, "saveTransactions", {})
        msg = str(exc_info.value)
        assert "500 on saveTransactions" in msg
        assert "request_id=nr-1" in msg
        assert msg.endswith("\noops")


class TestHttpRetries:
    @patch("notion_cli.api.time.sleep")
    @patch("notion_cli.api.urllib.request.urlopen")
    def test_retries_503_for_idempotent_request(self, mock_urlopen, mock_sleep, monkeypatch):
        monkeypatch.setattr("notion_cli.api.config.HTTP_MAX_RETRIES", 2)
        first = urllib.error.HTTPError(
            "https://notion.test/", 503, "Unavailable", {"Retry-After": "0"}, io.BytesIO(b"busy")
        )
        success_cm = MagicMock()
        success_resp = success_cm.__enter__.return_value
        success_resp.headers.get.return_value = "application/json"
        success_resp.read.return_value = b'{"ok": true}'
        mock_urlopen.side_effect = [first, success_cm]

        result = _http_request("https://notion.test/", {}, idempotent=True)
        assert result["ok"] is True
        assert mock_urlopen.call_count == 2
        mock_sleep.assert_called_once_with(0)

    @patch("notion_cli.api.urllib.request.urlopen")
    def test_does_not_retry_writes(self, mock_urlopen, monkeypatch):
        monkeypatch.setattr("notion_cli.api.config.HTTP_MAX_RETRIES", 2)
        mock_urlopen.side_effect = urllib.error.HTTPError(
            "https://notion.test/", 503, "Unavailable", {}, io.BytesIO(b"busy")
        )
        with pytest.raises(HTTPError):
            _http_request("https://notion.test/", {}, idempotent=False)
        assert mock_urlopen.call_count == 1

    @patch("notion_cli.api.urllib.request.urlopen")
    def test_response_size_limit(self, mock_urlopen, monkeypatch):
        monkeypatch.setattr("notion_cli.api.config.HTTP_MAX_RESPONSE_BYTES", 4)
        mock_resp = mock_urlopen.return_value.__enter__.return_value
        mock_resp.read.return_value = b"12345"
        with pytest.raises(CliError, match="Response too large"):
            _http_request("https://notion.test/", {})

    @patch("notion_cli.api.urllib.request.urlopen")
    def test_empty_body_is_empty_dict(self, mock_urlopen):
        mock_urlopen.return_value.__enter__.return_value.read.return_value = b"  "
        assert _http_request("https://notion.test/", {}) == {}

    @patch("notion_cli.api.urllib.request.urlopen")
    def test_invalid_json(self, mock_urlopen):
        mock_urlopen.return_value.__enter__.return_value.read.return_value = b"not json{{"
        with pytest.raises(CliError, match="not valid JSON"):
            _http_request("https://notion.test/", {})

    @patch("notion_cli.api.urllib.request.urlopen")
    def test_connection_failure(self, mock_urlopen):
        mock_urlopen.side_effect = urllib.error.URLError("refused")
        with pytest.raises(CliError, match="Connection failed: refused"):
            _http_request("https://notion.test/", {})

    @patch("notion_cli.api.urllib.request.urlopen")
    def test_timeout(self, mock_urlopen):
        mock_urlopen.side_effect = TimeoutError()
        with pytest.raises(CliError, match="timed out"):
            _http_request("https://notion.test/", {})

    @patch("notion_cli.api.urllib.request.urlopen")
    def test_logs_when_enabled(self, mock_urlopen, monkeypatch, capsys):
        monkeypatch.setattr("notion_cli.api.config.HTTP_LOG_ENABLED", True)
        monkeypatch.setattr("notion_cli.api.config.HTTP_LOG_SAMPLE_RATE", 1.0)
        mock_resp = mock_urlopen.return_value.__enter__.return_value
        mock_resp.status = 200
        mock_resp.headers.get.return_value = "application/json"
        mock_resp.read.return_value = b"{}"
        _http_request("https://notion.test/", {}, headers={"X-Request-Id": "r1"})
        err = capsys.readouterr().err
        assert '[HTTP] {"' in err
        assert '"phase": "request"' in err
        assert '"phase": "response"' in err
