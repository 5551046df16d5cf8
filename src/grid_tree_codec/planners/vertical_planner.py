import logging
from typing import Any

from grid_tree_codec.layout.data_row_mapper import DataRowMapper
from grid_tree_codec.layout.horizontal_expander import FieldOrder
from grid_tree_codec.layout.plan_context import PlanContext
from grid_tree_codec.layout.vertical_nester import VerticalNester
from grid_tree_codec.models.layout_models import LayoutPlan, LayoutStrategy
from grid_tree_codec.models.pattern_models import (
    ElementKind,
    PatternType,
    StructurePattern,
)
from grid_tree_codec.planners.base_planner import BaseLayoutPlanner

logger = logging.getLogger(__name__)


class VerticalPlanner(BaseLayoutPlanner):
    """Root sequence elements stacked as row runs, grouped by a merge key.

    Reading the grid back needs continuation rows enabled, which the plan
    flags with ``requires_continuation_rows``.
    """

    strategy = LayoutStrategy.VERTICAL_NESTING

    def __init__(self, thresholds=None, expander=None, nester=None):
        super().__init__(thresholds, expander)
        self.nester = nester or VerticalNester(self.thresholds)

    def build_plan(
        self, pattern: StructurePattern, tree: Any, context: PlanContext
    ) -> LayoutPlan:
        reason = self._fallback_reason(pattern, tree)
        if reason:
            context.warn_once(
                "vertical_fallback",
                f"Vertical nesting not possible ({reason}); using horizontal expansion",
            )
            return self._horizontal_plan(pattern, tree, context)

        properties = pattern.root_array.element_properties
        root = self.build_root(pattern, tree, context, order=FieldOrder.ELEMENT, vertical=True)
        plan = self.finish_plan(root, context, self.strategy)
        plan.requires_continuation_rows = True

        order = self.expander.order_fields(properties, FieldOrder.ELEMENT)
        plan.merge_key = self.nester.detect_merge_key(tree, properties, order)

        mapper = DataRowMapper(context.array_layouts)
        groups = self.nester.create_row_groups(tree, root.children[0], mapper, plan.merge_key)
        self.nester.assign_row_numbers(
            groups, plan.scheme_end_row + 1, separate_groups=plan.merge_key is not None
        )
        plan.row_groups = groups

        logger.info(
            f"Vertical plan: {plan.total_columns} columns, {len(groups)} row groups, "
            f"{plan.data_row_count} data rows, merge key {plan.merge_key!r}"
        )
        return plan

    def _fallback_reason(self, pattern: StructurePattern, tree: Any) -> str:
        array = pattern.root_array
        if pattern.type != PatternType.ROOT_ARRAY or array is None:
            return "root is not a sequence"
        if array.element_kind != ElementKind.OBJECT:
            return "root elements are not mappings"
        for index, element in enumerate(tree):
            if not self.nester.has_anchor(element, array.element_properties):
                return f"element {index} has no scalar anchor field"
        return ""

    def _horizontal_plan(
        self, pattern: StructurePattern, tree: Any, context: PlanContext
    ) -> LayoutPlan:
        root = self.build_root(pattern, tree, context, order=FieldOrder.FREQUENCY)
        plan = self.finish_plan(root, context, LayoutStrategy.HORIZONTAL_EXPANSION)
        mapper = DataRowMapper(context.array_layouts)
        plan.row_groups = self.horizontal_row_groups(
            root, tree, mapper, plan.scheme_end_row + 1
        )
        return plan
