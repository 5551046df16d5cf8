"""Unit tests for merging parsed items that share an id."""

import pytest

from grid_tree_codec.core.tree_merger import MISSING, TreeMerger, get_path, set_path
from grid_tree_codec.models.merge_models import (
    ArrayFieldStrategy,
    KeyPathStrategy,
    MergeConfig,
)


def merge(tree, config_string):
    return TreeMerger(MergeConfig.from_config_string(config_string)).merge(tree)


def test_config_string_parts():
    config = MergeConfig.from_config_string("id|levels;rewards|level:match,name:contains|items:prepend;tags")

    assert config.id_path == "id"
    assert config.merge_paths == ["levels", "rewards"]
    assert config.key_paths == {
        "level": KeyPathStrategy.MATCH,
        "name": KeyPathStrategy.CONTAINS,
    }
    assert config.array_field_paths == {
        "items": ArrayFieldStrategy.PREPEND,
        "tags": ArrayFieldStrategy.APPEND,
    }


def test_config_string_defaults():
    config = MergeConfig.from_config_string("id||level|items")
    assert config.merge_paths == []
    assert config.key_paths == {"level": KeyPathStrategy.MATCH}
    assert config.array_field_paths == {"items": ArrayFieldStrategy.APPEND}

    assert MergeConfig.from_config_string("").is_empty
    assert MergeConfig.from_config_string("id").id_path == "id"


@pytest.mark.parametrize("text", ["id||level:sometimes", "id||a:b:c"])
def test_invalid_config_string_raises(text):
    with pytest.raises(ValueError):
        MergeConfig.from_config_string(text)


def test_items_sharing_an_id_are_deep_merged():
    tree = [
        {"id": 1, "name": "Ada", "tags": ["a"], "meta": {"x": 1}},
        {"id": 2, "name": "Bob"},
        {"id": 1, "tags": ["b"], "meta": {"y": 2}},
    ]

    assert merge(tree, "id") == [
        {"id": 1, "name": "Ada", "tags": ["a", "b"], "meta": {"x": 1, "y": 2}},
        {"id": 2, "name": "Bob"},
    ]
    # Inputs are left untouched
    assert tree[0]["tags"] == ["a"]


def test_items_without_id_form_one_group():
    tree = [{"id": 1, "v": [1]}, {"v": [2]}, {"v": [3]}]
    assert merge(tree, "id") == [{"id": 1, "v": [1]}, {"v": [2, 3]}]


def test_nested_id_path():
    tree = [{"key": {"id": "a"}, "n": [1]}, {"key": {"id": "a"}, "n": [2]}]
    assert merge(tree, "key.id") == [{"key": {"id": "a"}, "n": [1, 2]}]


def test_merge_paths_limit_what_is_merged():
    tree = [
        {"id": 1, "name": "first", "levels": [1], "other": [1]},
        {"id": 1, "name": "second", "levels": [2], "other": [2]},
    ]
    assert merge(tree, "id|levels") == [
        {"id": 1, "name": "first", "levels": [1, 2], "other": [1]}
    ]


def test_merge_path_missing_in_target_is_copied():
    tree = [{"id": 1}, {"id": 1, "stats": {"hp": 3}}]
    assert merge(tree, "id|stats.hp") == [{"id": 1, "stats": {"hp": 3}}]


def test_key_paths_match_array_items_and_append_their_arrays():
    tree = [
        {"id": 1, "levels": [{"level": 1, "rewards": ["gold"]}]},
        {"id": 1, "levels": [{"level": 1, "rewards": ["gem"]}, {"level": 2, "rewards": []}]},
    ]

    assert merge(tree, "id|levels|level|rewards") == [
        {
            "id": 1,
            "levels": [
                {"level": 1, "rewards": ["gold", "gem"]},
                {"level": 2, "rewards": []},
            ],
        }
    ]


def test_array_field_strategies():
    first = {"id": 1, "levels": [{"level": 1, "items": ["a"]}]}
    second = {"id": 1, "levels": [{"level": 1, "items": ["b"]}]}

    prepended = merge([first, second], "id|levels|level|items:prepend")
    assert prepended[0]["levels"][0]["items"] == ["b", "a"]

    replaced = merge([first, second], "id|levels|level|items:replace")
    assert replaced[0]["levels"][0]["items"] == ["b"]


def test_update_strategy_overwrites_matched_items():
    tree = [
        {"id": 1, "levels": [{"level": 1, "score": 10, "name": "x"}]},
        {"id": 1, "levels": [{"level": 1, "score": 20}]},
    ]
    merged = merge(tree, "id|levels|level:update")
    assert merged[0]["levels"] == [{"level": 1, "score": 20, "name": "x"}]


def test_contains_strategy_compares_string_forms():
    tree = [
        {"id": 1, "quests": [{"name": "dragon hunt", "done": ["a"]}]},
        {"id": 1, "quests": [{"name": "dragon", "done": ["b"]}]},
    ]
    merged = merge(tree, "id|quests|name:contains|done")
    assert merged[0]["quests"] == [{"name": "dragon hunt", "done": ["a", "b"]}]


def test_mapping_root_and_empty_config_are_unchanged():
    tree = {"id": 1}
    assert merge(tree, "id") is tree

    items = [{"id": 1}, {"id": 1}]
    assert merge(items, "") is items


def test_non_mapping_items_keep_their_position():
    tree = ["x", {"id": 1, "v": [1]}, 5, {"id": 1, "v": [2]}]
    assert merge(tree, "id") == ["x", {"id": 1, "v": [1, 2]}, 5]


def test_path_helpers():
    data = {"a": {"b": 1}}
    assert get_path(data, "a.b") == 1
    assert get_path(data, "a.c") is MISSING
    assert get_path(data, "a.b.c") is MISSING

    set_path(data, "a.c.d", 2)
    set_path(data, "e", 3)
    assert data == {"a": {"b": 1, "c": {"d": 2}}, "e": 3}
