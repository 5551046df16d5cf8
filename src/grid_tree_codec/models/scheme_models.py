from enum import Enum
from typing import Iterator, List, Optional

from pydantic import BaseModel, Field


class NodeKind(str, Enum):
    """Kinds of schema cells. Closed set."""

    MAP = "map"
    ARRAY = "array"
    PROPERTY = "property"
    KEY = "key"
    VALUE = "value"
    IGNORE = "ignore"


CONTAINER_KINDS = (NodeKind.MAP, NodeKind.ARRAY)
SCALAR_KINDS = (NodeKind.PROPERTY, NodeKind.KEY, NodeKind.VALUE)


class CellPosition(BaseModel):
    """1-based grid coordinate"""

    row: int = Field(ge=1)
    column: int = Field(ge=1)

    def as_tuple(self):
        return (self.row, self.column)


class SchemeNode(BaseModel):
    """One cell region of the schema area"""

    node_id: int
    kind: NodeKind
    name: str = ""
    position: CellPosition
    span: int = Field(default=1, ge=1)
    children: List["SchemeNode"] = Field(default_factory=list)
    # Arena index of the parent; navigation only
    parent_id: Optional[int] = None

    @property
    def is_container(self) -> bool:
        return self.kind in CONTAINER_KINDS

    @property
    def is_leaf(self) -> bool:
        return self.kind in (NodeKind.PROPERTY, NodeKind.VALUE, NodeKind.IGNORE)

    @property
    def end_column(self) -> int:
        return self.position.column + self.span - 1

    def describe(self) -> str:
        return f"{self.name or '<anonymous>'}:{self.kind.value}"


SchemeNode.model_rebuild()


class ParseOptions(BaseModel):
    """Options for reading a grid into a tree"""

    include_empty_fields: bool = Field(
        default=False, description="Keep empty cells as empty strings"
    )
    continuation_rows: bool = Field(
        default=False,
        description="Rows with blank element scalars continue the previous element",
    )
    infer_types: bool = Field(
        default=False, description="Convert numeric/boolean strings to scalars"
    )
    merge_key_paths: Optional[str] = Field(
        default=None,
        description="Merge items sharing an id: idPath|mergePaths|keyPaths|arrayFieldPaths",
    )


class Scheme(BaseModel):
    """Parsed schema region of a grid.

    Nodes live in the ``nodes`` arena; ``SchemeNode.parent_id`` indexes into it.
    """

    root: SchemeNode
    nodes: List[SchemeNode] = Field(default_factory=list)
    schema_start_row: int
    scheme_end_row: int
    first_column: int
    last_column: int

    @property
    def data_start_row(self) -> int:
        return self.scheme_end_row + 1

    def parent_of(self, node: SchemeNode) -> Optional[SchemeNode]:
        if node.parent_id is None:
            return None
        return self.nodes[node.parent_id]

    def depth_of(self, node: SchemeNode) -> int:
        """Schema depth, the root being 0."""
        return node.position.row - self.schema_start_row

    def linear_nodes(self) -> List[SchemeNode]:
        """All nodes below the root in depth-first, column order."""
        return list(self._walk(self.root))[1:]

    def _walk(self, node: SchemeNode) -> Iterator[SchemeNode]:
        yield node
        for child in node.children:
            yield from self._walk(child)
