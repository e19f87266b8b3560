"""
Typed models for command payloads.
"""

from dataclasses import dataclass, field

from notion_cli.api import _safe_json_parse
from notion_cli.exceptions import ValidationError


def _decode(value, context):
    if isinstance(value, str):
        return _safe_json_parse(value, context)
    return value


@dataclass(frozen=True)
class ObjectPayload:
    """Typed wrapper for raw JSON object payloads."""

    data: dict

    @classmethod
    def from_value(cls, value, context):
        value = _decode(value, context)
        if isinstance(value, dict):
            return cls(data=value)
        raise ValidationError(
            f"[ERROR] {context} must be a JSON object, got {type(value).__name__}."
        )


@dataclass(frozen=True)
class BlockDefinition:
    """One block to create: a type tag plus optional encoded properties."""

    type: str
    properties: dict = field(default_factory=dict)

    @classmethod
    def from_value(cls, value, index, context="content"):
        if not isinstance(value, dict):
            raise ValidationError(f"[ERROR] {context}[{index}] must be a JSON object.")
        block_type = value.get("type")
        if not isinstance(block_type, str) or not block_type.strip():
            raise ValidationError(
                f'[ERROR] {context}[{index}] needs a non-empty string "type".'
            )
        properties = value.get("properties", {})
        if properties is None:
            properties = {}
        if not isinstance(properties, dict):
            raise ValidationError(f'[ERROR] {context}[{index}] "properties" must be a JSON object.')
        return cls(type=block_type.strip(), properties=properties)


def parse_block_definitions(value, context="content"):
    """Parse a JSON array (or already-decoded list) of block definitions."""
    value = _decode(value, context)
    if not isinstance(value, list):
        raise ValidationError(f"[ERROR] {context} must be a JSON array of block definitions.")
    return [BlockDefinition.from_value(item, i, context) for i, item in enumerate(value)]


def parse_name_list(value):
    """Accept ``"A,B"`` or ``["A", "B"]`` and return a clean list of names.

    Repeated names are kept once, at their first position.
    """
    if value is None:
        return []
    if isinstance(value, str) and value.lstrip().startswith("["):
        value = _safe_json_parse(value, "property list")
    if isinstance(value, str):
        names = [v.strip() for v in value.split(",")]
    elif isinstance(value, (list, tuple)):
        names = [str(v).strip() for v in value]
    else:
        raise ValidationError("[ERROR] Property list must be a comma-separated string or a list.")
    return list(dict.fromkeys(n for n in names if n))


@dataclass(frozen=True)
class ViewUpdateSpec:
    """Validated column changes for ``database view-update``."""

    show: tuple = ()
    hide: tuple = ()
    reorder: tuple = ()
    resize: dict = field(default_factory=dict)

    @classmethod
    def from_args(cls, *, show=None, hide=None, reorder=None, resize=None):
        widths = {}
        if resize is not None:
            payload = ObjectPayload.from_value(resize, "--resize").data
            for name, width in payload.items():
                if isinstance(width, bool) or not isinstance(width, (int, float)) or width <= 0:
                    raise ValidationError(
                        f'[ERROR] Width for "{name}" must be a positive number.'
                    )
                widths[name] = int(width)
        spec = cls(
            show=tuple(parse_name_list(show)),
            hide=tuple(parse_name_list(hide)),
            reorder=tuple(parse_name_list(reorder)),
            resize=widths,
        )
        if not (spec.show or spec.hide or spec.reorder or spec.resize):
            raise ValidationError(
                "[ERROR] Nothing to update. Use --show, --hide, --reorder or --resize."
            )
        overlap = set(spec.show) & set(spec.hide)
        if overlap:
            raise ValidationError(
                f"[ERROR] Properties cannot be both shown and hidden: {', '.join(sorted(overlap))}"
            )
        return spec

    def names(self):
        seen = []
        for name in (*self.reorder, *self.show, *self.hide, *self.resize):
            if name not in seen:
                seen.append(name)
        return seen
