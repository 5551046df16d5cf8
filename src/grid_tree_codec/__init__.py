"""Grid/tree codec.

This library converts marker-annotated two-dimensional cell grids into
hierarchical document trees and lays trees back out as such grids.
"""

from grid_tree_codec.core.conversion_engine import ConversionEngine, ConversionError
from grid_tree_codec.core.errors import (
    CodecError,
    DuplicateContainerName,
    LayoutOverflow,
    SchemaViolation,
)
from grid_tree_codec.core.grid import GridReader, GridWriter, InMemoryGrid
from grid_tree_codec.core.planner_registry import PlannerRegistry
from grid_tree_codec.core.tree_merger import TreeMerger
from grid_tree_codec.planners.base_planner import BaseLayoutPlanner
from grid_tree_codec.models.merge_models import MergeConfig
from grid_tree_codec.models.scheme_models import ParseOptions

# Version
__version__ = "0.1.0"

# Public API
__all__ = [
    # Core components
    "ConversionEngine",
    "PlannerRegistry",
    "BaseLayoutPlanner",
    "ParseOptions",
    "TreeMerger",
    "MergeConfig",
    # Grids
    "GridReader",
    "GridWriter",
    "InMemoryGrid",
    # Errors
    "CodecError",
    "SchemaViolation",
    "DuplicateContainerName",
    "LayoutOverflow",
    "ConversionError",
    # Version
    "__version__",
]
