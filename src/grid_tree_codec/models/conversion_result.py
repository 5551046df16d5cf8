from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from grid_tree_codec.models.layout_models import LayoutPlan, LayoutStrategy
from grid_tree_codec.models.pattern_models import MergeConflict


class ConversionStatus(str, Enum):
    """Status of a conversion"""

    SUCCESS = "success"
    PARTIAL = "partial"  # Converted, but with warnings or recovered conflicts


class ConversionDirection(str, Enum):
    GRID_TO_TREE = "grid_to_tree"
    TREE_TO_GRID = "tree_to_grid"


class ConversionStats(BaseModel):
    """Statistics about the conversion"""

    rows: int = 0
    columns: int = 0
    merged_regions: int = 0
    data_rows: int = 0
    estimated_columns: int = 0  # selector estimate before planning
    processing_time: float = 0.0  # in seconds


class ConversionResult(BaseModel):
    """Complete results of a conversion in either direction"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: ConversionStatus = ConversionStatus.SUCCESS
    direction: ConversionDirection
    tree: Any = None
    grid: Any = None
    strategy: Optional[LayoutStrategy] = None
    plan: Optional[LayoutPlan] = None
    stats: ConversionStats = Field(default_factory=ConversionStats)
    warnings: List[str] = Field(default_factory=list)
    conflicts: List[MergeConflict] = Field(default_factory=list)

    @property
    def requires_continuation_rows(self) -> bool:
        return self.plan is not None and self.plan.requires_continuation_rows

    def add_warning(self, warning: str):
        """Add a warning message"""
        self.warnings.append(warning)

    def update_status(self):
        """Update the overall status based on warnings and conflicts"""
        if self.warnings or self.conflicts:
            self.status = ConversionStatus.PARTIAL
        else:
            self.status = ConversionStatus.SUCCESS
