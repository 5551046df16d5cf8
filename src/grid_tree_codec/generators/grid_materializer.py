import logging
from typing import Optional, Set, Tuple

from grid_tree_codec.core.errors import LayoutOverflow
from grid_tree_codec.core.grid import GridWriter
from grid_tree_codec.core.markers import Markers, SheetLayout
from grid_tree_codec.models.config_models import GridLimits
from grid_tree_codec.models.layout_models import LayoutCell, LayoutPlan

logger = logging.getLogger(__name__)


class GridMaterializer:
    """Renders a LayoutPlan onto a GridWriter.

    Writes marker cells and merged regions first, then the ``^`` filler for
    every unclaimed schema cell below the root row, the ``$scheme_end`` row and
    finally the data rows of every row group.
    """

    def __init__(self, limits: Optional[GridLimits] = None):
        self.limits = limits or GridLimits()

    def materialize(self, plan: LayoutPlan, writer: GridWriter) -> int:
        """Write a plan to a grid.

        Args:
            plan: LayoutPlan produced by a planner
            writer: Target grid

        Returns:
            Number of merged regions written

        Raises:
            LayoutOverflow: If the plan exceeds the grid limits. Nothing is
                written in that case.
        """
        self.check_limits(plan)

        claimed: Set[Tuple[int, int]] = set()
        merged = 0
        for cell in plan.root.walk():
            writer.set_cell(cell.row, cell.column, cell.marker)
            if cell.span > 1:
                writer.merge_region(cell.row, cell.column, cell.span)
                merged += 1
            claimed.update((cell.row, col) for col in range(cell.column, cell.end_column + 1))

        width = plan.total_columns
        for row in range(SheetLayout.SCHEMA_START_ROW + 1, plan.last_schema_row + 1):
            for col in range(1, width + 1):
                if (row, col) not in claimed:
                    writer.set_cell(row, col, Markers.IGNORE)

        writer.set_cell(plan.scheme_end_row, SheetLayout.ROOT_COLUMN, Markers.SCHEME_END)
        if width > 1:
            writer.merge_region(plan.scheme_end_row, SheetLayout.ROOT_COLUMN, width)
            merged += 1

        written = 0
        for group in plan.row_groups:
            for offset, values in enumerate(group.rows):
                row = group.start_row + offset
                for path, value in values.items():
                    if value is None:
                        continue
                    writer.set_cell(row, plan.column_map[path], value)
                    written += 1

        logger.info(
            f"Materialized {plan.strategy.value} plan: {width} columns, "
            f"schema rows {SheetLayout.SCHEMA_START_ROW}..{plan.scheme_end_row}, "
            f"{plan.data_row_count} data rows, {written} data cells, {merged} merged regions"
        )
        return merged

    def check_limits(self, plan: LayoutPlan) -> None:
        if plan.total_columns > self.limits.max_columns:
            cell = self._overflowing_cell(plan)
            raise LayoutOverflow(
                f"Plan needs {plan.total_columns} columns, "
                f"limit is {self.limits.max_columns}",
                node_kind=cell.kind.value,
                path=cell.path or None,
            )
        if plan.last_row > self.limits.max_rows:
            raise LayoutOverflow(
                f"Plan needs {plan.last_row} rows, limit is {self.limits.max_rows}",
                node_kind=plan.root.kind.value,
                position=(plan.last_row, SheetLayout.ROOT_COLUMN),
            )

    def _overflowing_cell(self, plan: LayoutPlan) -> LayoutCell:
        """Outermost named field reaching past the column limit, else the root."""
        for cell in plan.root.walk():
            if cell.name and cell.end_column > self.limits.max_columns:
                return cell
        return plan.root
