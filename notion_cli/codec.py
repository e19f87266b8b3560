"""
Property value codec.

Row properties travel as arrays of *segments*: ``[text, decorators?]`` where
the optional decorator list holds ``[marker, value]`` pairs. Inline
references use the placeholder text ``"‣"`` with a ``u`` (user), ``p``
(page) or ``d`` (date) decorator.

``decode`` turns a segment array into one of the PropertyValue variants
below, picked by the schema type. ``encode`` is its inverse and produces the
array that the operation builders write with ``set``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Union

from notion_cli.exceptions import ValidationError

MENTION = "‣"

TEXT_TYPES = frozenset({"title", "text", "url", "email", "phone_number"})
SELECT_TYPES = frozenset({"select", "status"})
REFERENCE_MARKERS = {"person": "u", "relation": "p"}
OPTION_TYPES = frozenset({"select", "multi_select"})


# ---------------------------------------------------------------------------
# Value variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Mention:
    """An inline user (``u``) or page (``p``) reference inside rich text."""

    marker: str
    id: str
    name: str | None = None


@dataclass(frozen=True)
class TextValue:
    type: str
    text: str
    mentions: tuple[Mention, ...] = ()

    def to_json(self) -> Any:
        return self.text


@dataclass(frozen=True)
class NumberValue:
    value: float | None
    type: str = "number"

    def to_json(self) -> Any:
        if self.value is not None and self.value.is_integer():
            return int(self.value)
        return self.value


@dataclass(frozen=True)
class CheckboxValue:
    value: bool
    type: str = "checkbox"

    def to_json(self) -> Any:
        return self.value


@dataclass(frozen=True)
class SelectValue:
    type: str
    value: str | None

    def to_json(self) -> Any:
        return self.value


@dataclass(frozen=True)
class MultiSelectValue:
    values: tuple[str, ...]
    type: str = "multi_select"

    def to_json(self) -> Any:
        return list(self.values)


@dataclass(frozen=True)
class DateValue:
    start: str | None
    end: str | None = None
    type: str = "date"

    def to_json(self) -> Any:
        return self.start


@dataclass(frozen=True)
class ReferenceValue:
    """Person or relation ids. ``labels`` maps id to a resolved name/title."""

    type: str
    ids: tuple[str, ...]
    labels: dict[str, str] = field(default_factory=dict, compare=False)

    def to_json(self) -> Any:
        if not self.labels:
            return list(self.ids)
        key = "name" if self.type == "person" else "title"
        out = []
        for ref_id in self.ids:
            if ref_id in self.labels:
                out.append({"id": ref_id, key: self.labels[ref_id]})
            else:
                out.append({"id": ref_id})
        return out


@dataclass(frozen=True)
class OpaqueValue:
    """Rollup, formula and any type this codec does not model: raw text."""

    type: str
    text: str

    def to_json(self) -> Any:
        return self.text


PropertyValue = Union[
    TextValue,
    NumberValue,
    CheckboxValue,
    SelectValue,
    MultiSelectValue,
    DateValue,
    ReferenceValue,
    OpaqueValue,
]


def to_dict(value: PropertyValue) -> dict[str, Any]:
    """Render a decoded value as ``{"type", "value"}`` (plus ``end`` for ranges)."""
    out = {"type": value.type, "value": value.to_json()}
    if isinstance(value, DateValue) and value.end:
        out["end"] = value.end
    return out


# ---------------------------------------------------------------------------
# Segment walking
# ---------------------------------------------------------------------------


def _segments(raw):
    if not isinstance(raw, list):
        return []
    return [seg for seg in raw if isinstance(seg, list) and seg]


def _decorators(segment):
    if len(segment) < 2 or not isinstance(segment[1], list):
        return []
    return [d for d in segment[1] if isinstance(d, list) and len(d) >= 2]


def plain_text(raw) -> str:
    """Concatenate the literal text of every segment (titles, names)."""
    return "".join(seg[0] for seg in _segments(raw) if isinstance(seg[0], str))


def _walk(raw):
    """Yield (text, mentions, dates) with mention spans replaced by their ids."""
    parts: list[str] = []
    mentions: list[Mention] = []
    dates: list[dict] = []
    for seg in _segments(raw):
        text = seg[0] if isinstance(seg[0], str) else ""
        placeholder = text == MENTION
        for marker, val in ((d[0], d[1]) for d in _decorators(seg)):
            if marker in ("u", "p") and isinstance(val, str):
                mentions.append(Mention(marker=marker, id=val))
                if placeholder:
                    parts.append(val)
                    placeholder = False
            elif marker == "d" and isinstance(val, dict):
                dates.append(val)
                start = val.get("start_date")
                if placeholder and isinstance(start, str):
                    parts.append(start)
                    placeholder = False
        if not placeholder and text != MENTION:
            parts.append(text)
    return "".join(parts), mentions, dates


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


def _parse_number(text):
    try:
        number = float(text.strip())
    except (ValueError, AttributeError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def decode(raw, prop_type: str) -> PropertyValue:
    """Decode a segment array for a property of schema type *prop_type*.

    Never raises on malformed input; unparsable numbers and absent dates
    decode to None.
    """
    text, mentions, dates = _walk(raw)
    if prop_type in TEXT_TYPES:
        return TextValue(type=prop_type, text=text, mentions=tuple(mentions))
    if prop_type == "number":
        return NumberValue(value=_parse_number(text))
    if prop_type == "checkbox":
        return CheckboxValue(value=text == "Yes")
    if prop_type in SELECT_TYPES:
        return SelectValue(type=prop_type, value=text or None)
    if prop_type == "multi_select":
        return MultiSelectValue(values=tuple(v.strip() for v in text.split(",") if v.strip()))
    if prop_type == "date":
        if not dates:
            return DateValue(start=None)
        first = dates[0]
        start = first.get("start_date")
        end = first.get("end_date")
        return DateValue(
            start=start if isinstance(start, str) else None,
            end=end if isinstance(end, str) else None,
        )
    if prop_type in REFERENCE_MARKERS:
        ids = []
        for mention in mentions:
            if mention.id not in ids:
                ids.append(mention.id)
        return ReferenceValue(type=prop_type, ids=tuple(ids))
    return OpaqueValue(type=prop_type, text=text)


def reference_ids(value: PropertyValue) -> list[tuple[str, str]]:
    """Return (table, id) pointers that enrichment could resolve for *value*."""
    if isinstance(value, ReferenceValue):
        table = "notion_user" if value.type == "person" else "block"
        return [(table, ref_id) for ref_id in value.ids]
    if isinstance(value, TextValue):
        return [("notion_user" if m.marker == "u" else "block", m.id) for m in value.mentions]
    return []


def enrich(value: PropertyValue, names: dict[str, str]) -> PropertyValue:
    """Attach display names to reference ids; unknown ids stay raw."""
    if not names:
        return value
    if isinstance(value, ReferenceValue):
        labels = {ref_id: names[ref_id] for ref_id in value.ids if ref_id in names}
        return replace(value, labels=labels)
    if isinstance(value, TextValue) and value.mentions:
        text = value.text
        mentions = []
        for mention in value.mentions:
            name = names.get(mention.id)
            if name:
                text = text.replace(mention.id, name)
            mentions.append(replace(mention, name=name))
        return replace(value, text=text, mentions=tuple(mentions))
    return value


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


def _as_list(value, prop_type):
    if value is None:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None and str(v) != ""]
    raise ValidationError(
        f"[ERROR] {prop_type} value must be a string or a list, got {type(value).__name__}."
    )


def _format_number(value):
    if isinstance(value, bool):
        raise ValidationError("[ERROR] number value must be numeric, got a boolean.")
    if isinstance(value, str):
        parsed = _parse_number(value)
        if parsed is None:
            raise ValidationError(f"[ERROR] number value is not numeric: {value!r}")
        value = parsed
    if not isinstance(value, (int, float)):
        raise ValidationError(f"[ERROR] number value must be numeric, got {type(value).__name__}.")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _truthy(value):
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"yes", "true", "1", "on", "checked"}
    return bool(value)


def _date_segment(value):
    if isinstance(value, dict):
        start = value.get("start") or value.get("start_date")
        end = value.get("end") or value.get("end_date")
    else:
        start, end = value, None
    if not isinstance(start, str) or not start:
        raise ValidationError(f"[ERROR] date value must be an ISO date string, got {value!r}")
    payload = {"type": "daterange" if end else "date", "start_date": start}
    if end:
        payload["end_date"] = end
    return [MENTION, [["d", payload]]]


def encode(prop_type: str, value: Any) -> list:
    """Encode a caller value into the segment array for *prop_type*.

    None (and empty strings/lists) clear the property.
    """
    if prop_type == "number":
        return [] if value is None or value == "" else [[_format_number(value)]]
    if prop_type == "checkbox":
        return [["Yes" if _truthy(value) else "No"]]
    if prop_type == "multi_select":
        values = _as_list(value, prop_type)
        return [[",".join(values)]] if values else []
    if prop_type == "date":
        return [] if value in (None, "") else [_date_segment(value)]
    if prop_type in REFERENCE_MARKERS:
        marker = REFERENCE_MARKERS[prop_type]
        return [[MENTION, [[marker, ref_id]]] for ref_id in _as_list(value, prop_type)]
    if value is None:
        return []
    if isinstance(value, (dict, list)):
        raise ValidationError(
            f"[ERROR] {prop_type} value must be a scalar, got {type(value).__name__}."
        )
    text = str(value)
    return [[text]] if text else []


def option_values(prop_type: str, value: Any) -> list[str]:
    """Values of a select/multi-select input that need to exist as options."""
    if prop_type == "select":
        return [str(value)] if value not in (None, "") else []
    if prop_type == "multi_select":
        return _as_list(value, prop_type)
    return []
