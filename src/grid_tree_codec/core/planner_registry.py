import logging
from typing import Dict, List, Optional, Tuple

from grid_tree_codec.models.layout_models import LayoutStrategy
from grid_tree_codec.planners.base_planner import BaseLayoutPlanner

logger = logging.getLogger(__name__)


class PlannerRegistry:
    """Routes each layout strategy to the planner that lays it out.

    Planners register under their ``strategy``. When several planners claim
    one strategy the lowest priority number wins; strategies nobody claims go
    to the fallback planner.
    """

    def __init__(self):
        # strategy -> [(priority, planner)], sorted by priority
        self._routes: Dict[LayoutStrategy, List[Tuple[int, BaseLayoutPlanner]]] = {}
        self._fallback: Optional[BaseLayoutPlanner] = None

    def register_planner(self, planner: BaseLayoutPlanner, priority: int = 100) -> None:
        """Register a planner for its strategy.

        Args:
            planner: Planner instance to register
            priority: Priority level (lower number = higher priority)

        Raises:
            ValueError: If planner is not a BaseLayoutPlanner instance
        """
        if not isinstance(planner, BaseLayoutPlanner):
            raise ValueError("Planner must be an instance of BaseLayoutPlanner")

        routes = self._routes.setdefault(planner.strategy, [])
        routes.append((priority, planner))
        routes.sort(key=lambda route: route[0])
        logger.debug(
            f"Registered {planner.__class__.__name__} for {planner.strategy.value} "
            f"(priority {priority})"
        )

    def register_fallback(self, planner: BaseLayoutPlanner) -> None:
        if not isinstance(planner, BaseLayoutPlanner):
            raise ValueError("Fallback planner must be an instance of BaseLayoutPlanner")
        self._fallback = planner

    def get_planner(self, strategy: LayoutStrategy) -> Optional[BaseLayoutPlanner]:
        """Planner for a strategy, the fallback when none claims it."""
        routes = self._routes.get(strategy)
        if routes:
            return routes[0][1]
        if self._fallback is not None:
            logger.debug(
                f"No planner for {strategy.value}, using "
                f"{self._fallback.__class__.__name__}"
            )
        return self._fallback

    def strategy_routes(self) -> Dict[LayoutStrategy, BaseLayoutPlanner]:
        """Winning planner of every claimed strategy."""
        return {strategy: routes[0][1] for strategy, routes in self._routes.items()}

    def clear(self) -> None:
        """Remove all registered planners."""
        self._routes.clear()
        self._fallback = None
