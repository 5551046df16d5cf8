from typing import Any

from grid_tree_codec.layout.data_row_mapper import DataRowMapper
from grid_tree_codec.layout.horizontal_expander import FieldOrder
from grid_tree_codec.layout.plan_context import PlanContext
from grid_tree_codec.models.layout_models import LayoutPlan, LayoutStrategy
from grid_tree_codec.models.pattern_models import StructurePattern
from grid_tree_codec.planners.base_planner import BaseLayoutPlanner


class SimplePlanner(BaseLayoutPlanner):
    """Direct property mapping for shallow trees without array fields.

    Fields keep the order in which they were first observed.
    """

    strategy = LayoutStrategy.SIMPLE

    def build_plan(
        self, pattern: StructurePattern, tree: Any, context: PlanContext
    ) -> LayoutPlan:
        root = self.build_root(pattern, tree, context, order=FieldOrder.OCCURRENCE)
        plan = self.finish_plan(root, context, self.strategy)
        mapper = DataRowMapper(context.array_layouts)
        plan.row_groups = self.horizontal_row_groups(
            root, tree, mapper, plan.scheme_end_row + 1
        )
        return plan
