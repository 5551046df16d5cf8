"""Unit tests for the planner registry."""

import pytest

from grid_tree_codec.core.planner_registry import PlannerRegistry
from grid_tree_codec.models.layout_models import LayoutStrategy
from grid_tree_codec.planners.horizontal_planner import HorizontalPlanner
from grid_tree_codec.planners.mixed_planner import MixedPlanner
from grid_tree_codec.planners.simple_planner import SimplePlanner
from grid_tree_codec.planners.vertical_planner import VerticalPlanner


class CompactSimplePlanner(SimplePlanner):
    pass


@pytest.fixture
def registry():
    registry = PlannerRegistry()
    registry.register_planner(SimplePlanner(), priority=1)
    registry.register_planner(VerticalPlanner(), priority=2)
    registry.register_planner(MixedPlanner(), priority=3)
    registry.register_fallback(HorizontalPlanner())
    return registry


@pytest.mark.parametrize(
    ("strategy", "planner_class"),
    [
        (LayoutStrategy.SIMPLE, SimplePlanner),
        (LayoutStrategy.VERTICAL_NESTING, VerticalPlanner),
        (LayoutStrategy.MIXED, MixedPlanner),
        (LayoutStrategy.HORIZONTAL_EXPANSION, HorizontalPlanner),
    ],
)
def test_strategy_routes_to_planner(registry, strategy, planner_class):
    assert type(registry.get_planner(strategy)) is planner_class


def test_fallback_handles_unclaimed_strategies():
    registry = PlannerRegistry()
    fallback = HorizontalPlanner()
    registry.register_fallback(fallback)
    assert registry.get_planner(LayoutStrategy.MIXED) is fallback


def test_lowest_priority_wins_within_a_strategy(registry):
    compact = CompactSimplePlanner()
    registry.register_planner(compact, priority=0)
    assert registry.get_planner(LayoutStrategy.SIMPLE) is compact

    registry.register_planner(CompactSimplePlanner(), priority=50)
    assert registry.get_planner(LayoutStrategy.SIMPLE) is compact


def test_strategy_routes(registry):
    routes = registry.strategy_routes()
    assert {strategy: type(planner) for strategy, planner in routes.items()} == {
        LayoutStrategy.SIMPLE: SimplePlanner,
        LayoutStrategy.VERTICAL_NESTING: VerticalPlanner,
        LayoutStrategy.MIXED: MixedPlanner,
    }


def test_only_planners_can_register(registry):
    with pytest.raises(ValueError):
        registry.register_planner(object())
    with pytest.raises(ValueError):
        registry.register_fallback("planner")


def test_clear(registry):
    registry.clear()
    assert registry.strategy_routes() == {}
    assert registry.get_planner(LayoutStrategy.SIMPLE) is None
