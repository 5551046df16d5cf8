import logging
import time
from pathlib import Path
from typing import Any, Optional, Union

from grid_tree_codec.analyzers.structure_analyzer import StructureAnalyzer
from grid_tree_codec.core.config_loader import load_codec_config
from grid_tree_codec.core.errors import CodecError
from grid_tree_codec.core.grid import GridReader, GridWriter, InMemoryGrid
from grid_tree_codec.core.planner_registry import PlannerRegistry
from grid_tree_codec.core.scheme_parser import SchemeParser
from grid_tree_codec.core.tree_builder import TreeBuilder
from grid_tree_codec.core.tree_merger import TreeMerger
from grid_tree_codec.generators.grid_materializer import GridMaterializer
from grid_tree_codec.layout.strategy_selector import LayoutStrategySelector
from grid_tree_codec.models.config_models import CodecConfig
from grid_tree_codec.models.conversion_result import (
    ConversionDirection,
    ConversionResult,
)
from grid_tree_codec.models.layout_models import LayoutPlan, LayoutStrategy
from grid_tree_codec.models.merge_models import MergeConfig
from grid_tree_codec.models.pattern_models import StructurePattern
from grid_tree_codec.models.scheme_models import ParseOptions
from grid_tree_codec.planners.base_planner import BaseLayoutPlanner
from grid_tree_codec.planners.horizontal_planner import HorizontalPlanner
from grid_tree_codec.planners.mixed_planner import MixedPlanner
from grid_tree_codec.planners.simple_planner import SimplePlanner
from grid_tree_codec.planners.vertical_planner import VerticalPlanner


class ConversionEngine:
    """Orchestrates both directions of the grid/tree codec.

    Grid to tree:
    1. Scheme parsing
    2. Stack-based tree building
    3. Optional merge of items sharing an id

    Tree to grid:
    1. Structure analysis
    2. Layout strategy selection
    3. Layout planning
    4. Grid materialization
    """

    def __init__(
        self,
        config_path: Optional[Union[str, Path]] = None,
        config: Optional[CodecConfig] = None,
    ):
        """Initialize conversion engine.

        Args:
            config_path: YAML file with layout thresholds and grid limits
            config: Ready-made config; takes precedence over config_path
        """
        self.logger = logging.getLogger(__name__)
        self.config = config or load_codec_config(config_path)
        thresholds = self.config.layout_thresholds

        self.analyzer = StructureAnalyzer(thresholds)
        self.selector = LayoutStrategySelector(thresholds)
        self.materializer = GridMaterializer(self.config.grid_limits)
        self.planner_registry = PlannerRegistry()

        self.register_planner(SimplePlanner(thresholds), priority=1)
        self.register_planner(VerticalPlanner(thresholds), priority=2)
        self.register_planner(MixedPlanner(thresholds), priority=3)
        horizontal = HorizontalPlanner(thresholds)
        self.register_planner(horizontal, priority=4)
        self.planner_registry.register_fallback(horizontal)

    def register_planner(self, planner: BaseLayoutPlanner, priority: int = 100) -> None:
        """Register a planner with the engine.

        Args:
            planner: Planner instance to register
            priority: Priority among planners of the same strategy (lower wins)
        """
        self.planner_registry.register_planner(planner, priority)

    def grid_to_tree(
        self, reader: GridReader, options: Optional[ParseOptions] = None
    ) -> ConversionResult:
        """Read a marker-annotated grid into a tree.

        Args:
            reader: Grid to read
            options: Parse options

        Returns:
            ConversionResult with the tree

        Raises:
            CodecError: On a malformed scheme; no tree is produced
            ConversionError: On any unexpected failure
        """
        options = options or ParseOptions()
        start = time.perf_counter()

        try:
            scheme = SchemeParser(reader).parse()
            builder = TreeBuilder(scheme, reader, options)
            tree = builder.build()
            if options.merge_key_paths:
                merger = TreeMerger(MergeConfig.from_config_string(options.merge_key_paths))
                tree = merger.merge(tree)
        except CodecError as e:
            self.logger.error(f"Grid parsing failed: {e}", exc_info=True)
            raise
        except Exception as e:
            self.logger.error(f"Grid parsing failed: {str(e)}", exc_info=True)
            raise ConversionError(f"Failed to read grid: {str(e)}") from e

        result = ConversionResult(direction=ConversionDirection.GRID_TO_TREE, tree=tree)
        result.stats.rows = reader.row_count
        result.stats.columns = scheme.last_column - scheme.first_column + 1
        result.stats.merged_regions = len(list(reader.merged_regions()))
        result.stats.data_rows = builder.rows_processed
        result.stats.processing_time = time.perf_counter() - start
        for warning in builder.warnings:
            result.add_warning(warning)
        result.update_status()

        self.logger.info(
            f"Grid to tree finished: {builder.rows_processed} data rows, "
            f"status {result.status.value}"
        )
        return result

    def tree_to_grid(
        self, tree: Any, writer: Optional[GridWriter] = None
    ) -> ConversionResult:
        """Lay a tree out as a marker-annotated grid.

        Args:
            tree: dict or list tree value
            writer: Target grid; a new InMemoryGrid when omitted

        Returns:
            ConversionResult with the grid, the chosen strategy and the plan

        Raises:
            CodecError: On an unrepresentable tree or a grid overflow
            ConversionError: On any unexpected failure
        """
        writer = writer if writer is not None else InMemoryGrid()
        start = time.perf_counter()

        try:
            pattern = self.analyze(tree)
            strategy = self.select_strategy(pattern)
            estimate = self.estimate_columns(pattern, strategy)
            plan = self.plan(pattern, tree, strategy)
            merged = self.materialize(plan, writer)
        except CodecError as e:
            self.logger.error(f"Grid generation failed: {e}", exc_info=True)
            raise
        except Exception as e:
            self.logger.error(f"Grid generation failed: {str(e)}", exc_info=True)
            raise ConversionError(f"Failed to generate grid: {str(e)}") from e

        result = ConversionResult(
            direction=ConversionDirection.TREE_TO_GRID,
            tree=tree,
            grid=writer,
            strategy=plan.strategy,
            plan=plan,
            conflicts=pattern.conflicts,
        )
        result.stats.rows = plan.last_row
        result.stats.columns = plan.total_columns
        result.stats.estimated_columns = estimate
        result.stats.merged_regions = merged
        result.stats.data_rows = plan.data_row_count
        result.stats.processing_time = time.perf_counter() - start
        for warning in plan.warnings:
            result.add_warning(warning)
        result.update_status()

        self.logger.info(
            f"Tree to grid finished: strategy {plan.strategy.value}, "
            f"{plan.total_columns} columns, {plan.last_row} rows, "
            f"status {result.status.value}"
        )
        return result

    def analyze(self, tree: Any) -> StructurePattern:
        return self.analyzer.analyze(tree)

    def select_strategy(self, pattern: StructurePattern) -> LayoutStrategy:
        return self.selector.select_strategy(pattern)

    def estimate_columns(self, pattern: StructurePattern, strategy: LayoutStrategy) -> int:
        estimate = self.selector.estimate_required_columns(pattern, strategy)
        self.logger.info(f"Estimated {estimate} columns for {strategy.value}")
        if self.selector.requires_schema_optimization(pattern):
            self.logger.warning(
                f"Large structure ({len(pattern.properties)} properties, depth "
                f"{pattern.max_depth}); the grid may be wide"
            )
        if estimate > self.config.grid_limits.max_columns:
            self.logger.warning(
                f"Estimated {estimate} columns exceeds the limit of "
                f"{self.config.grid_limits.max_columns}"
            )
        return estimate

    def plan(
        self, pattern: StructurePattern, tree: Any, strategy: LayoutStrategy
    ) -> LayoutPlan:
        planner = self.planner_registry.get_planner(strategy)
        if planner is None:
            raise ConversionError(f"No planner registered for strategy {strategy.value}")
        self.logger.info(f"Using {planner.__class__.__name__} for {strategy.value}")
        return planner.plan(pattern, tree)

    def materialize(self, plan: LayoutPlan, writer: GridWriter) -> int:
        return self.materializer.materialize(plan, writer)


class ConversionError(Exception):
    """Raised when a conversion fails for a reason other than a codec error"""

    pass
