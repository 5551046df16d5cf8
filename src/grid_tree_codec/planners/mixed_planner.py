from grid_tree_codec.models.layout_models import LayoutStrategy
from grid_tree_codec.planners.horizontal_planner import HorizontalPlanner


class MixedPlanner(HorizontalPlanner):
    """Mixed structures are laid out horizontally for now."""

    strategy = LayoutStrategy.MIXED
