"""
Marker grammar shared by the grid parser and the grid generator.

The literal tokens below are part of the external contract: authoring tools
that produce grids and writers that render generated grids must use exactly
these strings.
"""

from typing import Any, Tuple

from grid_tree_codec.core.errors import SchemaViolation
from grid_tree_codec.models.scheme_models import NodeKind


class Markers:
    """Literal marker tokens."""

    PREFIX = "$"
    ARRAY = "$[]"
    MAP = "${}"
    KEY = "$key"
    VALUE = "$value"
    IGNORE = "^"
    SCHEME_END = "$scheme_end"


class SheetLayout:
    """Fixed sheet geometry (1-based rows and columns)."""

    COMMENT_ROW = 1
    SCHEMA_START_ROW = 2
    ROOT_COLUMN = 1


_SUFFIX_KINDS = {
    Markers.ARRAY: NodeKind.ARRAY,
    Markers.MAP: NodeKind.MAP,
    Markers.KEY: NodeKind.KEY,
    Markers.VALUE: NodeKind.VALUE,
}


def cell_text(value: Any) -> str:
    """Render a raw cell value as marker text ('' for empty cells)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def is_scheme_end(value: Any) -> bool:
    return cell_text(value).lower() == Markers.SCHEME_END


def parse_marker(text: str) -> Tuple[NodeKind, str]:
    """Split a schema cell into its node kind and static name.

    Args:
        text: Non-empty schema cell text, e.g. ``items$[]`` or ``name``

    Returns:
        Tuple of (kind, name). The name is empty for anonymous markers.

    Raises:
        SchemaViolation: If the cell carries an unknown ``$`` marker
    """
    if text == Markers.IGNORE:
        return NodeKind.IGNORE, ""

    index = text.find(Markers.PREFIX)
    if index < 0:
        return NodeKind.PROPERTY, text

    name = text[:index]
    suffix = text[index:].lower()
    kind = _SUFFIX_KINDS.get(suffix)
    if kind is None:
        raise SchemaViolation(f"Unknown marker '{text[index:]}' in schema cell '{text}'")
    return kind, name


def format_marker(kind: NodeKind, name: str = "") -> str:
    """Build the schema cell text for a node kind."""
    if kind == NodeKind.ARRAY:
        return f"{name}{Markers.ARRAY}"
    if kind == NodeKind.MAP:
        return f"{name}{Markers.MAP}"
    if kind == NodeKind.KEY:
        return f"{name}{Markers.KEY}"
    if kind == NodeKind.VALUE:
        return f"{name}{Markers.VALUE}"
    if kind == NodeKind.IGNORE:
        return Markers.IGNORE
    return name
