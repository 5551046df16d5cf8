"""Unit tests for horizontal expansion planning."""

import pytest

from grid_tree_codec.analyzers.structure_analyzer import StructureAnalyzer
from grid_tree_codec.core.errors import SchemaViolation
from grid_tree_codec.layout.horizontal_expander import HorizontalExpander
from grid_tree_codec.models.config_models import LayoutThresholds, PerIndexLimits
from grid_tree_codec.models.layout_models import AllocationMode, LayoutStrategy
from grid_tree_codec.planners.horizontal_planner import HorizontalPlanner


@pytest.fixture
def analyzer():
    return StructureAnalyzer()


@pytest.fixture
def planner():
    return HorizontalPlanner()


def plan_for(analyzer, planner, tree):
    return planner.plan(analyzer.analyze(tree), tree)


def test_scalar_array_width_uses_widest_instance(analyzer, planner):
    plan = plan_for(analyzer, planner, [{"id": 1, "tags": [1, 2]}, {"id": 2, "tags": [1, 2, 3]}])

    tags = plan.array_layouts["tags"]
    assert tags.mode == AllocationMode.UNIFIED_WIDTH
    assert tags.element_count == 3
    assert tags.total_columns == 3
    assert plan.column_map == {"id": 2, "tags[0]": 3, "tags[1]": 4, "tags[2]": 5}
    assert plan.total_columns == 5
    assert plan.strategy == LayoutStrategy.HORIZONTAL_EXPANSION


def test_root_array_geometry(analyzer, planner):
    plan = plan_for(analyzer, planner, [{"id": 1, "tags": [1, 2]}])

    root = plan.root
    assert (root.marker, root.row, root.column, root.span) == ("$[]", 2, 1, 4)
    [element] = root.children
    assert (element.marker, element.row, element.column, element.span) == ("${}", 3, 2, 3)
    assert [child.marker for child in element.children] == ["id", "tags$[]"]
    assert plan.last_schema_row == 5
    assert plan.scheme_end_row == 6


def test_map_root_with_objects_and_arrays(analyzer, planner):
    tree = {"name": "n", "meta": {"a": 1}, "items": [{"id": 1, "q": 2}, {"id": 2}]}
    plan = plan_for(analyzer, planner, tree)

    assert [cell.marker for cell in plan.root.children] == ["name", "meta${}", "items$[]"]
    assert plan.column_map == {
        "name": 1,
        "meta.a": 2,
        "items[0].id": 3,
        "items[0].q": 4,
        "items[1].id": 5,
        "items[1].q": 6,
    }
    [group] = plan.row_groups
    assert group.start_row == group.end_row == 7
    assert group.rows == [
        {"name": "n", "meta.a": 1, "items[0].id": 1, "items[0].q": 2, "items[1].id": 2}
    ]


def test_per_index_slots_size_each_position_separately(analyzer, planner):
    tree = [
        {"id": 1, "steps": [{"a": 1}, {"b": 2}]},
        {"id": 2, "steps": [{"a": 3}, {"b": 4}]},
    ]
    plan = plan_for(analyzer, planner, tree)

    steps = plan.array_layouts["steps"]
    assert steps.mode == AllocationMode.PER_INDEX
    assert steps.total_columns == 2
    assert [element.properties for element in steps.elements] == [["a"], ["b"]]
    assert "steps[0].a" in plan.column_map
    assert "steps[0].b" not in plan.column_map


def test_per_index_needs_enough_instances(analyzer):
    tree = [{"steps": [{"a": 1}, {"b": 2}]}, {"steps": [{"a": 3}, {"b": 4}]}]
    array = analyzer.analyze(tree).arrays["steps"]

    assert HorizontalExpander().choose_allocation_mode(array) == AllocationMode.PER_INDEX
    strict = LayoutThresholds(per_index=PerIndexLimits(min_instances=3))
    assert HorizontalExpander(strict).choose_allocation_mode(array) == AllocationMode.UNIFIED_WIDTH


def test_unified_width_covers_every_element_field(analyzer, planner):
    tree = [{"items": [{"a": 1}, {"a": 2, "b": 3}]}]
    plan = plan_for(analyzer, planner, tree)

    items = plan.array_layouts["items"]
    assert items.mode == AllocationMode.UNIFIED_WIDTH
    assert items.total_columns == 4
    assert all(element.required_columns == 2 for element in items.elements)


def test_empty_array_keeps_one_column(analyzer, planner):
    plan = plan_for(analyzer, planner, {"name": "x", "tags": []})
    assert plan.array_layouts["tags"].total_columns == 1
    assert plan.total_columns == 2


@pytest.mark.parametrize("key", ["", "a$b", "^", "price$value"])
def test_keys_colliding_with_markers_are_rejected(analyzer, planner, key):
    with pytest.raises(SchemaViolation):
        plan_for(analyzer, planner, {key: 1})


def test_dotted_key_clashing_with_nested_path(analyzer, planner):
    with pytest.raises(SchemaViolation, match="same column path"):
        plan_for(analyzer, planner, {"a.b": 1, "a": {"b": 2}})


def test_scalar_root_is_rejected(analyzer, planner):
    with pytest.raises(SchemaViolation):
        plan_for(analyzer, planner, 5)
