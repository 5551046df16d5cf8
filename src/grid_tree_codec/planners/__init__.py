# Layout planners, one per layout strategy

from .base_planner import BaseLayoutPlanner
from .simple_planner import SimplePlanner
from .horizontal_planner import HorizontalPlanner
from .vertical_planner import VerticalPlanner
from .mixed_planner import MixedPlanner

__all__ = [
    "BaseLayoutPlanner",
    "SimplePlanner",
    "HorizontalPlanner",
    "VerticalPlanner",
    "MixedPlanner",
]
