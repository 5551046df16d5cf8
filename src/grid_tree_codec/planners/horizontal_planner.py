import logging
from typing import Any

from grid_tree_codec.layout.data_row_mapper import DataRowMapper
from grid_tree_codec.layout.horizontal_expander import FieldOrder
from grid_tree_codec.layout.plan_context import PlanContext
from grid_tree_codec.models.layout_models import LayoutPlan, LayoutStrategy
from grid_tree_codec.models.pattern_models import StructurePattern
from grid_tree_codec.planners.base_planner import BaseLayoutPlanner

logger = logging.getLogger(__name__)


class HorizontalPlanner(BaseLayoutPlanner):
    """Array elements side by side, one data row per root element.

    Also serves as the fallback planner: any tree with a mapping or sequence
    root can be laid out horizontally.
    """

    strategy = LayoutStrategy.HORIZONTAL_EXPANSION

    def build_plan(
        self, pattern: StructurePattern, tree: Any, context: PlanContext
    ) -> LayoutPlan:
        root = self.build_root(pattern, tree, context, order=FieldOrder.FREQUENCY)
        plan = self.finish_plan(root, context, self.strategy)
        mapper = DataRowMapper(context.array_layouts)
        plan.row_groups = self.horizontal_row_groups(
            root, tree, mapper, plan.scheme_end_row + 1
        )
        logger.info(
            f"Horizontal plan: {plan.total_columns} columns, "
            f"{len(plan.array_layouts)} arrays, {plan.data_row_count} data rows"
        )
        return plan
