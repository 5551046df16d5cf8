from abc import ABC, abstractmethod
from typing import Any, List, Optional

from grid_tree_codec.core.errors import SchemaViolation
from grid_tree_codec.core.markers import Markers, SheetLayout
from grid_tree_codec.layout.data_row_mapper import DataRowMapper
from grid_tree_codec.layout.horizontal_expander import FieldOrder, HorizontalExpander
from grid_tree_codec.layout.plan_context import PlanContext
from grid_tree_codec.models.config_models import LayoutThresholds
from grid_tree_codec.models.layout_models import (
    LayoutCell,
    LayoutPlan,
    LayoutStrategy,
    RowGroup,
)
from grid_tree_codec.models.pattern_models import (
    ElementKind,
    PatternType,
    StructurePattern,
)
from grid_tree_codec.models.scheme_models import NodeKind


class BaseLayoutPlanner(ABC):
    """Base class for all layout planners.

    Each planner is responsible for:
    1. Declaring the layout strategy it plans (``strategy``)
    2. Building the schema cells and data rows of a LayoutPlan

    Planners do NOT touch grids - that is GridMaterializer's responsibility.
    """

    strategy: LayoutStrategy = LayoutStrategy.HORIZONTAL_EXPANSION

    def __init__(
        self,
        thresholds: Optional[LayoutThresholds] = None,
        expander: Optional[HorizontalExpander] = None,
    ):
        self.thresholds = thresholds or LayoutThresholds()
        self.expander = expander or HorizontalExpander(self.thresholds)

    def plan(self, pattern: StructurePattern, tree: Any) -> LayoutPlan:
        """Plan the layout of a tree.

        Template method; subclasses implement build_plan.

        Args:
            pattern: StructurePattern of the tree
            tree: The tree itself, used for row values and samples

        Returns:
            LayoutPlan ready for materialization

        Raises:
            SchemaViolation: If the tree root is not a mapping or a sequence
        """
        if pattern.type not in (PatternType.ROOT_ARRAY, PatternType.ROOT_OBJECT):
            raise SchemaViolation(
                f"Tree root must be a mapping or a sequence, got {pattern.type.value}",
                path="",
            )

        context = PlanContext()
        plan = self.build_plan(pattern, tree, context)
        plan.column_map = context.column_map
        plan.array_layouts = context.array_layouts
        plan.warnings = context.warnings + plan.warnings
        return plan

    @abstractmethod
    def build_plan(
        self, pattern: StructurePattern, tree: Any, context: PlanContext
    ) -> LayoutPlan:
        pass

    def build_root(
        self,
        pattern: StructurePattern,
        tree: Any,
        context: PlanContext,
        order: str = FieldOrder.FREQUENCY,
        vertical: bool = False,
    ) -> LayoutCell:
        """Root marker cell at (2, 1) and everything below it."""
        row = SheetLayout.SCHEMA_START_ROW
        column = SheetLayout.ROOT_COLUMN

        if pattern.type == PatternType.ROOT_OBJECT:
            samples = [tree] if order == FieldOrder.FREQUENCY else None
            children, width = self.expander.build_fields(
                pattern.properties, "", row + 1, column, context, order=order, samples=samples
            )
            return LayoutCell(
                kind=NodeKind.MAP,
                marker=Markers.MAP,
                row=row,
                column=column,
                span=max(1, width),
                children=children,
            )

        element = self.build_element(pattern, tree, context, row + 1, column + 1, order, vertical)
        return LayoutCell(
            kind=NodeKind.ARRAY,
            marker=Markers.ARRAY,
            row=row,
            column=column,
            span=1 + element.span,
            children=[element],
        )

    def build_element(
        self,
        pattern: StructurePattern,
        tree: Any,
        context: PlanContext,
        row: int,
        column: int,
        order: str,
        vertical: bool,
    ) -> LayoutCell:
        """Element cell of a root sequence; object fields use plain paths."""
        array = pattern.root_array
        if array is not None and array.element_kind == ElementKind.OBJECT:
            samples = None
            if order == FieldOrder.FREQUENCY:
                samples = [item for item in tree if isinstance(item, dict)]
            children, width = self.expander.build_fields(
                array.element_properties,
                "",
                row + 1,
                column,
                context,
                vertical=vertical,
                order=order,
                samples=samples,
            )
            return LayoutCell(
                kind=NodeKind.MAP,
                marker=Markers.MAP,
                row=row,
                column=column,
                span=max(1, width),
                children=children,
            )

        if array is not None and array.element_kind == ElementKind.ARRAY and array.item_pattern:
            context.warn_once(
                "[]",
                "Root sequence holds sequences directly; nested unnamed arrays are discouraged",
            )
            return self.expander.build_array(array.item_pattern, "", "[]", row, column, context)

        context.claim_column("[]", column)
        return LayoutCell(
            kind=NodeKind.VALUE, marker=Markers.VALUE, row=row, column=column, path="[]"
        )

    def horizontal_row_groups(
        self, root: LayoutCell, tree: Any, mapper: DataRowMapper, start_row: int
    ) -> List[RowGroup]:
        """One single-row group per root element (one group for a mapping)."""
        if root.kind == NodeKind.ARRAY:
            element = root.children[0]
            groups = [RowGroup(rows=mapper.rows_for(element, item)) for item in tree]
        else:
            groups = [RowGroup(rows=mapper.rows_for(root, tree))]

        current = start_row
        for group in groups:
            group.start_row = current
            group.end_row = current + len(group.rows) - 1
            current = group.end_row + 1
        return groups

    def finish_plan(
        self,
        root: LayoutCell,
        context: PlanContext,
        strategy: LayoutStrategy,
    ) -> LayoutPlan:
        last_schema_row = max(cell.row for cell in root.walk())
        return LayoutPlan(
            strategy=strategy,
            root=root,
            total_columns=root.span,
            last_schema_row=last_schema_row,
            scheme_end_row=last_schema_row + 1,
            column_map=context.column_map,
            array_layouts=context.array_layouts,
        )
