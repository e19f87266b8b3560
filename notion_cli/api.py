"""
HTTP transport for the Notion internal (v3) API.

Every call is a JSON POST to ``{BASE_URL}/{endpoint}`` authenticated with the
``token_v2`` cookie. Status codes are translated into CliError/SetupError
here; callers treat those as opaque and let them propagate.
"""

import hashlib
import json
import re
import sys
import time
import urllib.error
import urllib.request
import uuid

from notion_cli import config
from notion_cli.exceptions import CliError, HTTPError, SetupError

_RETRYABLE_HTTP_CODES = frozenset({429, 502, 503, 504})


# ---------------------------------------------------------------------------
# Security helpers
# ---------------------------------------------------------------------------


def _mask_token(token):
    """Show only first 6 chars of a token for safe logging."""
    return token[:6] + "..." if len(token) > 6 else token


def _safe_json_parse(text, context="input"):
    """Parse JSON with friendly error message on failure."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise CliError(f"[ERROR] Invalid JSON in {context}: {e.msg} at position {e.pos}") from None


def _sanitize_error(body, max_len=500):
    """Truncate and clean error body for safe display."""
    if not body:
        return ""
    cleaned = re.sub(r"<[^>]+>", "", body)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    if len(cleaned) > max_len:
        return cleaned[:max_len] + "... [truncated]"
    return cleaned


# ---------------------------------------------------------------------------
# HTTP request layer
# ---------------------------------------------------------------------------


def _log_http_event(**fields):
    """Emit structured HTTP logs to stderr when enabled."""
    if not config.HTTP_LOG_ENABLED:
        return
    print("[HTTP] " + json.dumps(fields, ensure_ascii=False, sort_keys=True), file=sys.stderr)


def _is_sampled_request(request_id):
    """Decide if a request should be logged based on sample rate."""
    rate = config.HTTP_LOG_SAMPLE_RATE
    if rate <= 0:
        return False
    if rate >= 1:
        return True
    if not request_id:
        return False
    digest = hashlib.sha256(request_id.encode("utf-8")).digest()
    bucket = int.from_bytes(digest[:4], "big") / 4294967295.0
    return bucket < rate


def _error_envelope(message, status=None, request_id=None, retryable=None, detail=None):
    """Build a consistent CLI-safe HTTP error message."""
    meta = []
    if status is not None:
        meta.append(f"status={status}")
    if request_id:
        meta.append(f"request_id={request_id}")
    if retryable is not None:
        meta.append(f"retryable={'yes' if retryable else 'no'}")
    suffix = f" ({', '.join(meta)})" if meta else ""
    body = f"[ERROR] {message}{suffix}"
    if detail:
        body += f"\n{detail}"
    return body


def _parse_retry_after(headers):
    """Return Retry-After seconds from response headers, or None."""
    if not headers:
        return None
    value = headers.get("Retry-After")
    if value is None:
        return None
    try:
        secs = int(str(value).strip())
    except ValueError:
        return None
    return max(0, secs)


def _http_request(url, data=None, headers=None, idempotent=False):
    """POST JSON and return the parsed response.

    Raises HTTPError for HTTP status errors (the caller maps codes) and
    CliError for timeouts, connection failures and unparseable bodies.
    Only idempotent requests are retried.
    """
    body = json.dumps(data if data is not None else {}).encode("utf-8")
    request_id = (headers or {}).get("X-Request-Id")
    sampled = _is_sampled_request(request_id)
    max_attempts = 1 + max(0, config.HTTP_MAX_RETRIES if idempotent else 0)
    timeout = max(1, config.HTTP_TIMEOUT_SECONDS)

    for attempt in range(max_attempts):
        start = time.perf_counter()
        will_retry = idempotent and attempt < max_attempts - 1
        req = urllib.request.Request(url, data=body, headers=headers or {}, method="POST")
        if sampled:
            _log_http_event(
                phase="request",
                url=url,
                attempt=attempt + 1,
                max_attempts=max_attempts,
                idempotent=idempotent,
                request_id=request_id,
                timeout_seconds=timeout,
            )
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                content_type = resp.headers.get("Content-Type", "")
                raw = resp.read(config.HTTP_MAX_RESPONSE_BYTES + 1)
                if len(raw) > config.HTTP_MAX_RESPONSE_BYTES:
                    raise CliError(
                        "[ERROR] Response too large from Notion API "
                        f"(>{config.HTTP_MAX_RESPONSE_BYTES} bytes)."
                    )
                if sampled:
                    _log_http_event(
                        phase="response",
                        url=url,
                        attempt=attempt + 1,
                        status=getattr(resp, "status", 200),
                        content_type=content_type,
                        bytes=len(raw),
                        latency_ms=round((time.perf_counter() - start) * 1000, 2),
                        request_id=request_id,
                    )
                if not raw.strip():
                    return {}
                try:
                    return json.loads(raw.decode("utf-8"))
                except (json.JSONDecodeError, UnicodeDecodeError):
                    raise CliError(
                        "[ERROR] Unexpected response from Notion API (not valid JSON)."
                    ) from None
        except urllib.error.HTTPError as e:
            error_body = (
                e.read(config.HTTP_MAX_RESPONSE_BYTES).decode("utf-8", errors="replace")
                if e.fp
                else ""
            )
            can_retry = will_retry and e.code in _RETRYABLE_HTTP_CODES
            if sampled:
                _log_http_event(
                    phase="response",
                    url=url,
                    attempt=attempt + 1,
                    status=e.code,
                    will_retry=can_retry,
                    latency_ms=round((time.perf_counter() - start) * 1000, 2),
                    request_id=request_id,
                )
            if can_retry:
                retry_after = _parse_retry_after(getattr(e, "headers", None))
                if retry_after is None:
                    retry_after = config.HTTP_RETRY_BASE_SECONDS * (2**attempt)
                time.sleep(retry_after)
                continue
            raise HTTPError(e.code, e.reason, error_body, headers=e.headers) from e
        except TimeoutError as e:
            if sampled:
                _log_http_event(
                    phase="network_error",
                    url=url,
                    attempt=attempt + 1,
                    error="timeout",
                    will_retry=will_retry,
                    request_id=request_id,
                )
            if will_retry:
                time.sleep(config.HTTP_RETRY_BASE_SECONDS * (2**attempt))
                continue
            raise CliError(
                _error_envelope(
                    f"Request timed out after {timeout} seconds. Is Notion reachable?",
                    request_id=request_id,
                    retryable=False,
                )
            ) from e
        except urllib.error.URLError as e:
            if sampled:
                _log_http_event(
                    phase="network_error",
                    url=url,
                    attempt=attempt + 1,
                    error=f"url_error: {e.reason}",
                    will_retry=will_retry,
                    request_id=request_id,
                )
            if will_retry:
                time.sleep(config.HTTP_RETRY_BASE_SECONDS * (2**attempt))
                continue
            raise CliError(
                _error_envelope(
                    f"Connection failed: {e.reason}",
                    request_id=request_id,
                    retryable=False,
                )
            ) from e

    raise CliError(_error_envelope("Request failed.", request_id=request_id))


def invoke(session, endpoint, body=None):
    """Call one internal API endpoint on behalf of *session*.

    Args:
        session: Session carrying ``token_v2`` and an optional ``user_id``
            (sent as the active-user header for multi-account tokens).
        endpoint: Endpoint name, e.g. ``syncRecordValues``.
        body: JSON request body.

    Returns:
        The parsed JSON response (normally a dict).
    """
    url = f"{config.BASE_URL.rstrip('/')}/{endpoint}"
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "cookie": f"token_v2={session.token_v2}",
        "X-Request-Id": str(uuid.uuid4()),
    }
    if session.user_id:
        headers["x-notion-active-user-header"] = session.user_id
    try:
        return _http_request(
            url,
            body or {},
            headers,
            idempotent=endpoint in config.IDEMPOTENT_ENDPOINTS,
        )
    except HTTPError as e:
        if e.code in (401, 403):
            raise SetupError(
                "[TOKEN_EXPIRED] Notion rejected the token_v2 cookie "
                f"({_mask_token(session.token_v2)}). Copy a fresh token_v2 from a "
                "logged-in browser session into NOTION_TOKEN_V2."
            ) from e
        if e.code == 429:
            raise CliError(
                "[ERROR] Rate limit reached on the Notion API. Wait a few seconds and retry."
            ) from e
        raise CliError(
            _error_envelope(
                f"Notion internal API error: {e.code} on {endpoint}",
                status=e.code,
                request_id=e.headers.get("x-notion-request-id") if e.headers else None,
                retryable=e.code in _RETRYABLE_HTTP_CODES,
                detail=_sanitize_error(e.body),
            )
        ) from e
