"""Security: injection detection, output tagging, input validation."""

from __future__ import annotations

import re

from notion_cli import CliError

_INJECTION_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (
        re.compile(r"^(system|assistant|user)\s*:", re.IGNORECASE | re.MULTILINE),
        "role label",
    ),
    (
        re.compile(
            r"<\s*/?\s*(system|instruction|admin|prompt|tool_call|function_call)",
            re.IGNORECASE,
        ),
        "XML-like directive tag",
    ),
    (
        re.compile(
            r"ignore\s+(all\s+)?(previous|prior|above)\s+(instructions|prompts|rules)",
            re.IGNORECASE,
        ),
        "override directive",
    ),
    (
        re.compile(
            r"forget\s+(your|all|the)\s+(rules|instructions|training|guidelines)",
            re.IGNORECASE,
        ),
        "forget directive",
    ),
    (
        re.compile(
            r"you\s+are\s+now\s+(in\s+)?(admin|root|debug|developer|unrestricted|jailbreak)",
            re.IGNORECASE,
        ),
        "mode switching",
    ),
    (
        re.compile(
            r"(execute|call|invoke|run)\s+the\s+(tool|function|command)",
            re.IGNORECASE,
        ),
        "tool invocation directive",
    ),
]


def _check_injection(text: str) -> list[str]:
    """Check text for common prompt injection patterns.

    Returns list of matched pattern descriptions (empty if clean).
    Short strings (< 10 chars) are skipped.
    """
    if len(text) < 10:
        return []
    return [desc for pattern, desc in _INJECTION_PATTERNS if pattern.search(text)]


def _tag_user_text(text: str | None) -> str | None:
    """Wrap user-authored text in [USER_DATA] boundary markers."""
    if text is None:
        return None
    return f"[USER_DATA]{text}[/USER_DATA]"


def _tag_field(item: dict, field: str, label: str, warnings: list[str]) -> dict:
    if isinstance(item.get(field), str):
        item = dict(item)
        for desc in _check_injection(item[field]):
            warnings.append(f"{label}: {desc}")
        item[field] = _tag_user_text(item[field])
    return item


def _tag_blocks(blocks: list, warnings: list[str]) -> list:
    out: list = []
    for block in blocks:
        if isinstance(block, dict):
            block = _tag_field(block, "text", "block.text", warnings)
            if isinstance(block.get("children"), list):
                block = dict(block, children=_tag_blocks(block["children"], warnings))
        out.append(block)
    return out


def _with_warnings(out: dict, warnings: list[str]) -> dict:
    if warnings:
        out["_safety_warnings"] = warnings
    return out


def _sanitize_page(page: dict) -> dict:
    """Tag the page title, every block's text and backlink titles."""
    warnings: list[str] = []
    out = _tag_field(page, "title", "title", warnings)
    if isinstance(out.get("blocks"), list):
        out["blocks"] = _tag_blocks(out["blocks"], warnings)
    if isinstance(out.get("backlinks"), list):
        out["backlinks"] = [
            _tag_field(b, "title", "backlink.title", warnings) if isinstance(b, dict) else b
            for b in out["backlinks"]
        ]
    return _with_warnings(out, warnings)


def _sanitize_listing(data: dict, key: str, field: str) -> dict:
    """Tag *field* on every item of ``data[key]`` (search hits, comments, children)."""
    if not isinstance(data, dict) or not isinstance(data.get(key), list):
        return data
    warnings: list[str] = []
    out = dict(data)
    out[key] = [
        _tag_field(item, field, f"{key}.{field}", warnings) if isinstance(item, dict) else item
        for item in data[key]
    ]
    return _with_warnings(out, warnings)


_TEXT_PROPERTY_TYPES = {"title", "text"}


def _sanitize_rows(data: dict) -> dict:
    """Tag title and text property values of query rows."""
    if not isinstance(data, dict) or not isinstance(data.get("results"), list):
        return data
    warnings: list[str] = []
    rows: list = []
    for row in data["results"]:
        if isinstance(row, dict) and isinstance(row.get("properties"), dict):
            props = {}
            for name, prop in row["properties"].items():
                if isinstance(prop, dict) and prop.get("type") in _TEXT_PROPERTY_TYPES:
                    prop = _tag_field(prop, "value", f"row.{name}", warnings)
                props[name] = prop
            row = dict(row, properties=props)
        rows.append(row)
    return _with_warnings(dict(data, results=rows), warnings)


_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_INPUT_LIMITS = {
    "title": 500,
    "text": 10_000,
    "icon": 2_000,
    "query": 500,
    "content": 200_000,
    "properties": 100_000,
    "operations": 500_000,
}


def _validate_input(text: str, field: str) -> str:
    """Strip control characters and enforce length limits.

    Raises CliError if text is not a string or exceeds the field limit.
    """
    if not isinstance(text, str):
        raise CliError(f"[ERROR] {field} must be a string")
    cleaned = _CONTROL_RE.sub("", text)
    limit = _INPUT_LIMITS.get(field, 50_000)
    if len(cleaned) > limit:
        raise CliError(f"[ERROR] {field} exceeds maximum length of {limit} characters")
    return cleaned


def _validate_optional(text: str | None, field: str) -> str | None:
    return None if text is None else _validate_input(text, field)
