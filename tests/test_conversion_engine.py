"""Tests for the conversion engine orchestration."""

import pytest

from grid_tree_codec.core.conversion_engine import ConversionEngine, ConversionError
from grid_tree_codec.core.errors import LayoutOverflow, SchemaViolation
from grid_tree_codec.core.grid import InMemoryGrid
from grid_tree_codec.models.config_models import CodecConfig, GridLimits
from grid_tree_codec.models.conversion_result import (
    ConversionDirection,
    ConversionStatus,
)
from grid_tree_codec.models.layout_models import LayoutStrategy
from grid_tree_codec.models.scheme_models import ParseOptions


@pytest.fixture
def engine():
    return ConversionEngine()


class ExplodingGrid(InMemoryGrid):
    def set_cell(self, row, col, value):
        raise RuntimeError("disk full")


def test_tree_to_grid_result(engine):
    result = engine.tree_to_grid([{"id": 1, "tags": [1, 2]}, {"id": 2, "tags": [1, 2, 3]}])

    assert result.direction == ConversionDirection.TREE_TO_GRID
    assert result.status == ConversionStatus.SUCCESS
    assert result.strategy == LayoutStrategy.HORIZONTAL_EXPANSION
    assert isinstance(result.grid, InMemoryGrid)
    assert result.stats.columns == 5
    assert result.stats.estimated_columns == 5
    assert result.stats.rows == 8
    assert result.stats.data_rows == 2
    assert result.stats.merged_regions == 4
    assert not result.requires_continuation_rows


def test_grid_to_tree_result(engine):
    written = engine.tree_to_grid({"name": "x"})
    result = engine.grid_to_tree(written.grid)

    assert result.direction == ConversionDirection.GRID_TO_TREE
    assert result.tree == {"name": "x"}
    assert result.stats.data_rows == 1
    assert result.status == ConversionStatus.SUCCESS


def test_uses_supplied_writer(engine):
    grid = InMemoryGrid()
    result = engine.tree_to_grid({"name": "x"}, writer=grid)
    assert result.grid is grid
    assert grid.cell_value(2, 1) == "${}"


def test_conflicts_make_result_partial(engine):
    result = engine.tree_to_grid([{"meta": "n/a"}, {"meta": {"k": 1}}])

    assert result.status == ConversionStatus.PARTIAL
    assert [conflict.path for conflict in result.conflicts] == ["[].meta"]


def test_vertical_fallback_warning_is_reported(engine):
    tree = [{"id": 1, "meta": {"x": 1}}, {"meta": {"x": 2}}]
    result = engine.tree_to_grid(tree)

    assert result.strategy == LayoutStrategy.HORIZONTAL_EXPANSION
    assert result.status == ConversionStatus.PARTIAL
    assert len(result.warnings) == 1
    assert engine.grid_to_tree(result.grid).tree == tree


@pytest.mark.parametrize("tree", [None, 5, "text"])
def test_scalar_roots_are_rejected(engine, tree):
    with pytest.raises(SchemaViolation):
        engine.tree_to_grid(tree)


def test_schema_violation_produces_no_tree(engine):
    grid = InMemoryGrid.from_rows([[None], ["${}"], ["$value"], ["$scheme_end"], ["x"]])
    result = None
    with pytest.raises(SchemaViolation):
        result = engine.grid_to_tree(grid)
    assert result is None


def test_unexpected_failures_are_wrapped(engine):
    with pytest.raises(ConversionError) as exc_info:
        engine.tree_to_grid({"name": "x"}, writer=ExplodingGrid())
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_grid_limits_come_from_config():
    engine = ConversionEngine(config=CodecConfig(grid_limits=GridLimits(max_columns=2)))
    with pytest.raises(LayoutOverflow):
        engine.tree_to_grid({"a": 1, "b": 2, "c": 3})


def test_config_path(tmp_path):
    config_file = tmp_path / "codec.yaml"
    config_file.write_text("layout_thresholds:\n  simple_max_depth: 0\n")
    engine = ConversionEngine(config_path=config_file)

    assert engine.config.layout_thresholds.simple_max_depth == 0
    result = engine.tree_to_grid({"a": 1})
    assert result.strategy == LayoutStrategy.MIXED


@pytest.fixture
def split_orders_grid():
    """Order 1 spread over two rows that repeat its id."""
    rows = [
        [None],
        ["$[]", None, None],
        ["^", "${}", None],
        ["^", "id", "lines$[]"],
        ["^", "^", "${}"],
        ["^", "^", "sku"],
        ["$scheme_end", None, None],
        [None, 1, "a"],
        [None, 1, "b"],
        [None, 2, "c"],
    ]
    return InMemoryGrid.from_rows(rows, merged_regions=[(2, 1, 3), (3, 2, 2), (7, 1, 3)])


def test_grid_to_tree_merges_items_sharing_an_id(engine, split_orders_grid):
    plain = engine.grid_to_tree(split_orders_grid)
    assert len(plain.tree) == 3

    merged = engine.grid_to_tree(split_orders_grid, ParseOptions(merge_key_paths="id|lines"))
    assert merged.tree == [
        {"id": 1, "lines": [{"sku": "a"}, {"sku": "b"}]},
        {"id": 2, "lines": [{"sku": "c"}]},
    ]
    assert merged.stats.data_rows == 3


def test_invalid_merge_config_is_wrapped(engine, split_orders_grid):
    with pytest.raises(ConversionError) as exc_info:
        engine.grid_to_tree(split_orders_grid, ParseOptions(merge_key_paths="id||a:b:c"))
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_overflow_names_the_widest_field(caplog):
    engine = ConversionEngine(config=CodecConfig(grid_limits=GridLimits(max_columns=4)))
    with pytest.raises(LayoutOverflow) as exc_info:
        engine.tree_to_grid([{"id": 1, "tags": [1, 2]}, {"id": 2, "tags": [1, 2, 3]}])

    assert exc_info.value.path == "tags"
    assert exc_info.value.node_kind == "array"
    assert "Estimated 5 columns exceeds the limit of 4" in caplog.text
