import logging
from typing import Optional

from grid_tree_codec.models.config_models import LayoutThresholds
from grid_tree_codec.models.layout_models import LayoutStrategy, StrategyMetrics
from grid_tree_codec.models.pattern_models import (
    ArrayPattern,
    PatternType,
    StructurePattern,
)

logger = logging.getLogger(__name__)


class LayoutStrategySelector:
    """Classifies a StructurePattern into one of the four layout strategies.

    The decision is a pure function of the pattern's metrics, so selecting
    twice on the same pattern gives the same strategy.
    """

    STRATEGY_DESCRIPTIONS = {
        LayoutStrategy.SIMPLE: "Simple structure with direct property mapping",
        LayoutStrategy.VERTICAL_NESTING: "Complex structure requiring vertical expansion",
        LayoutStrategy.HORIZONTAL_EXPANSION: "Array-heavy structure requiring horizontal expansion",
        LayoutStrategy.MIXED: "Mixed structure requiring combined strategies",
    }

    def __init__(self, thresholds: Optional[LayoutThresholds] = None):
        self.thresholds = thresholds or LayoutThresholds()

    def select_strategy(self, pattern: StructurePattern) -> LayoutStrategy:
        """Pick the layout strategy for a pattern.

        Args:
            pattern: Result of structure analysis

        Returns:
            LayoutStrategy
        """
        metrics = self.calculate_metrics(pattern)

        if metrics.is_simple_structure:
            strategy = LayoutStrategy.SIMPLE
        elif pattern.type == PatternType.ROOT_ARRAY and pattern.arrays:
            strategy = LayoutStrategy.HORIZONTAL_EXPANSION
        elif (
            metrics.has_large_nested_arrays
            and metrics.array_element_count > self.thresholds.large_array_element_count
        ):
            strategy = LayoutStrategy.HORIZONTAL_EXPANSION
        elif metrics.has_variable_depth or metrics.has_optional_nesting:
            strategy = LayoutStrategy.VERTICAL_NESTING
        else:
            strategy = LayoutStrategy.MIXED

        logger.info(f"Selected layout strategy {strategy.value}: {self.get_strategy_description(strategy)}")
        return strategy

    def calculate_metrics(self, pattern: StructurePattern) -> StrategyMetrics:
        arrays = list(pattern.arrays.values())
        properties = list(pattern.properties.values())

        metrics = StrategyMetrics(
            is_simple_structure=pattern.max_depth <= self.thresholds.simple_max_depth
            and not arrays,
            has_large_nested_arrays=any(
                array.element_width > self.thresholds.large_array_width for array in arrays
            ),
            array_element_count=sum(array.max_size for array in arrays),
            has_variable_depth=any(
                prop.occurrence_ratio < self.thresholds.variable_depth_ratio
                for prop in properties
            ),
            has_optional_nesting=any(
                array.occurrence_ratio < self.thresholds.optional_nesting_ratio
                for array in arrays
            ),
            total_properties=len(properties),
            total_arrays=len(arrays),
        )
        if arrays:
            metrics.average_array_size = sum(array.max_size for array in arrays) / len(arrays)
        return metrics

    def get_strategy_description(self, strategy: LayoutStrategy) -> str:
        return self.STRATEGY_DESCRIPTIONS.get(strategy, "Unknown strategy")

    def requires_schema_optimization(self, pattern: StructurePattern) -> bool:
        limits = self.thresholds.schema_optimization
        metrics = self.calculate_metrics(pattern)
        return (
            metrics.array_element_count > limits.element_count
            or metrics.total_properties > limits.property_count
            or pattern.max_depth > limits.depth
        )

    def should_merge_array_elements(self, array: ArrayPattern) -> bool:
        limits = self.thresholds.merge_elements
        return (
            array.max_size > limits.max_size
            or len(array.element_properties) > limits.property_count
        )

    def estimate_required_columns(
        self, pattern: StructurePattern, strategy: LayoutStrategy
    ) -> int:
        """Rough column estimate, including the ^ marker column."""
        base_columns = sum(1 for prop in pattern.properties.values() if not prop.is_array)
        arrays = list(pattern.arrays.values())

        if strategy == LayoutStrategy.HORIZONTAL_EXPANSION:
            return base_columns + sum(a.max_size * a.element_width for a in arrays) + 1
        if strategy == LayoutStrategy.VERTICAL_NESTING:
            widest = max((a.element_width for a in arrays), default=0)
            return base_columns + widest + 1
        if strategy == LayoutStrategy.MIXED:
            columns = base_columns + 1
            for array in arrays:
                if self.should_merge_array_elements(array):
                    columns += array.max_size * array.element_width
                else:
                    columns += array.element_width
            return columns
        return base_columns + 1
