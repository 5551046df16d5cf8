from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from pydantic import BaseModel, Field

from grid_tree_codec.models.scheme_models import NodeKind


class LayoutStrategy(str, Enum):
    """How a tree is spread over the grid"""

    SIMPLE = "simple"
    HORIZONTAL_EXPANSION = "horizontal_expansion"
    VERTICAL_NESTING = "vertical_nesting"
    MIXED = "mixed"


class AllocationMode(str, Enum):
    """Column allocation of array slots"""

    UNIFIED_WIDTH = "unified_width"
    PER_INDEX = "per_index"
    TEMPLATE = "template"  # single slot, one row per element


class StrategyMetrics(BaseModel):
    """Structural metrics feeding the strategy decision"""

    is_simple_structure: bool = False
    has_large_nested_arrays: bool = False
    array_element_count: int = 0
    has_variable_depth: bool = False
    has_optional_nesting: bool = False
    average_array_size: float = 0.0
    total_properties: int = 0
    total_arrays: int = 0


class LayoutCell(BaseModel):
    """One planned schema cell (and its merged region when span > 1)"""

    kind: NodeKind
    name: str = ""
    marker: str
    row: int
    column: int
    span: int = 1
    path: str = ""
    children: List["LayoutCell"] = Field(default_factory=list)

    @property
    def end_column(self) -> int:
        return self.column + self.span - 1

    def walk(self) -> Iterator["LayoutCell"]:
        yield self
        for child in self.children:
            yield from child.walk()


LayoutCell.model_rebuild()


class ElementLayout(BaseModel):
    """Columns of one array slot"""

    index: int
    start_column: int
    required_columns: int
    properties: List[str] = Field(default_factory=list)
    property_column_map: Dict[str, int] = Field(default_factory=dict)


class ArrayLayout(BaseModel):
    """Planned columns of one array field"""

    array_path: str
    mode: AllocationMode
    element_count: int
    total_columns: int
    elements: List[ElementLayout] = Field(default_factory=list)
    ordered_properties: List[str] = Field(default_factory=list)


class RowGroup(BaseModel):
    """Consecutive data rows; values are keyed by column map path"""

    group_key: Optional[str] = None
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    start_row: int = 0
    end_row: int = 0


class LayoutPlan(BaseModel):
    """Everything the materializer needs to render a grid"""

    strategy: LayoutStrategy
    root: LayoutCell
    total_columns: int
    last_schema_row: int
    scheme_end_row: int
    column_map: Dict[str, int] = Field(default_factory=dict)
    array_layouts: Dict[str, ArrayLayout] = Field(default_factory=dict)
    row_groups: List[RowGroup] = Field(default_factory=list)
    merge_key: Optional[str] = None
    requires_continuation_rows: bool = False
    warnings: List[str] = Field(default_factory=list)

    @property
    def data_row_count(self) -> int:
        return sum(len(group.rows) for group in self.row_groups)

    @property
    def last_row(self) -> int:
        ends = [group.end_row for group in self.row_groups if group.rows]
        return max(ends, default=self.scheme_end_row)
