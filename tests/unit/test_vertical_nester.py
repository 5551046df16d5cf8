"""Unit tests for vertical nesting."""

import pytest

from grid_tree_codec.analyzers.structure_analyzer import StructureAnalyzer
from grid_tree_codec.layout.data_row_mapper import DataRowMapper
from grid_tree_codec.layout.vertical_nester import VerticalNester
from grid_tree_codec.models.config_models import LayoutThresholds
from grid_tree_codec.models.layout_models import AllocationMode, LayoutStrategy, RowGroup
from grid_tree_codec.planners.vertical_planner import VerticalPlanner


@pytest.fixture
def analyzer():
    return StructureAnalyzer()


@pytest.fixture
def orders():
    """Orders with a variable number of lines."""
    return [
        {"order": "A", "lines": [{"sku": "x"}, {"sku": "y"}]},
        {"order": "B", "lines": [{"sku": "z"}]},
    ]


@pytest.fixture
def regions():
    return [
        {"id": 1, "region": "eu"},
        {"id": 2, "region": "eu"},
        {"id": 3, "region": "eu"},
        {"id": 4, "region": "us"},
        {"id": 5, "region": "us"},
    ]


def test_template_arrays_take_one_row_per_item(analyzer, orders):
    plan = VerticalPlanner().plan(analyzer.analyze(orders), orders)

    assert plan.strategy == LayoutStrategy.VERTICAL_NESTING
    assert plan.requires_continuation_rows
    lines = plan.array_layouts["lines"]
    assert lines.mode == AllocationMode.TEMPLATE
    assert lines.element_count == 1
    assert plan.column_map == {"order": 2, "lines[0].sku": 3}

    [group] = plan.row_groups
    assert group.rows == [
        {"order": "A", "lines[0].sku": "x"},
        {"lines[0].sku": "y"},
        {"order": "B", "lines[0].sku": "z"},
    ]
    assert (group.start_row, group.end_row) == (plan.scheme_end_row + 1, plan.scheme_end_row + 3)


def test_merge_key_detection(analyzer, regions):
    properties = analyzer.analyze(regions).properties
    nester = VerticalNester()

    assert nester.detect_merge_key(regions, properties) == "region"
    # id is unique per element and never qualifies
    assert nester.detect_merge_key(regions[:1], properties) is None


def test_groups_are_separated_by_blank_rows(analyzer, regions):
    plan = VerticalPlanner().plan(analyzer.analyze(regions), regions)

    assert plan.merge_key == "region"
    first, second = plan.row_groups
    assert (first.group_key, len(first.rows)) == ("eu", 3)
    assert (second.group_key, len(second.rows)) == ("us", 2)
    assert second.start_row == first.end_row + 2


def test_contiguous_runs_versus_gathered_groups(analyzer):
    elements = [{"k": "a"}, {"k": "b"}, {"k": "a"}]
    plan = VerticalPlanner().plan(analyzer.analyze(elements), elements)
    element_cell = plan.root.children[0]
    mapper = DataRowMapper(plan.array_layouts)

    runs = VerticalNester().create_row_groups(elements, element_cell, mapper, "k")
    assert [group.group_key for group in runs] == ["a", "b", "a"]

    gathering = VerticalNester(LayoutThresholds(vertical_gather_groups=True))
    gathered = gathering.create_row_groups(elements, element_cell, mapper, "k")
    assert [group.group_key for group in gathered] == ["a", "b"]
    assert len(gathered[0].rows) == 2


def test_assign_row_numbers():
    groups = [RowGroup(rows=[{}, {}]), RowGroup(rows=[{}])]
    nester = VerticalNester()

    assert nester.assign_row_numbers(groups, 10) == 14
    assert [(g.start_row, g.end_row) for g in groups] == [(10, 11), (13, 13)]
    assert nester.assign_row_numbers(groups, 10, separate_groups=False) == 13
    assert VerticalNester.calculate_required_rows(groups[0]) == 2


def test_falls_back_to_horizontal_without_scalar_anchor(analyzer):
    tree = [{"id": 1, "meta": {"x": 1}}, {"meta": {"x": 2}}]
    plan = VerticalPlanner().plan(analyzer.analyze(tree), tree)

    assert plan.strategy == LayoutStrategy.HORIZONTAL_EXPANSION
    assert not plan.requires_continuation_rows
    assert any("element 1" in warning for warning in plan.warnings)


def test_falls_back_for_mapping_root(analyzer):
    tree = {"a": {"b": 1}}
    plan = VerticalPlanner().plan(analyzer.analyze(tree), tree)
    assert plan.strategy == LayoutStrategy.HORIZONTAL_EXPANSION
    assert len(plan.warnings) == 1
