from typing import Optional, Tuple


class CodecError(Exception):
    """Base class for fatal codec errors.

    Carries the offending node kind and either its grid position or its tree
    path so that the message is actionable for the grid author.
    """

    def __init__(
        self,
        message: str,
        node_kind: Optional[str] = None,
        position: Optional[Tuple[int, int]] = None,
        path: Optional[str] = None,
    ):
        self.message = message
        self.node_kind = node_kind
        self.position = position
        self.path = path
        super().__init__(self._format())

    def _format(self) -> str:
        parts = [self.message]
        if self.node_kind:
            parts.append(f"kind={self.node_kind}")
        if self.position:
            row, column = self.position
            parts.append(f"cell=(row {row}, column {column})")
        if self.path is not None:
            parts.append(f"path='{self.path}'")
        return " | ".join(parts)


class SchemaViolation(CodecError):
    """Structural authoring error in a scheme or an unrepresentable tree."""

    pass


class DuplicateContainerName(CodecError):
    """Two sibling regions of a map resolve to the same key."""

    pass


class LayoutOverflow(CodecError):
    """Planned grid does not fit into the grid's supported size."""

    pass
