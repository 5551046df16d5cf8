from .errors import CodecError, DuplicateContainerName, LayoutOverflow, SchemaViolation
from .planner_registry import PlannerRegistry
from .tree_merger import TreeMerger
from .conversion_engine import ConversionEngine, ConversionError

__all__ = [
    "CodecError",
    "SchemaViolation",
    "DuplicateContainerName",
    "LayoutOverflow",
    "PlannerRegistry",
    "TreeMerger",
    "ConversionEngine",
    "ConversionError",
]
