import copy
import logging
from typing import Any, Dict, List, Optional, Tuple

from grid_tree_codec.models.merge_models import (
    ArrayFieldStrategy,
    KeyPathStrategy,
    MergeConfig,
)

logger = logging.getLogger(__name__)

DEFAULT_GROUP = "default"
MISSING = object()


class TreeMerger:
    """Merges items of a parsed sequence that share an id.

    Grids often spread one logical record over several rows, each carrying the
    same id and a part of the record's arrays. Items are grouped by the value
    at ``id_path``; every group collapses into one item, later members merged
    into a copy of the first.
    """

    def __init__(self, config: MergeConfig):
        self.config = config

    def merge(self, tree: Any) -> Any:
        """Merge a parsed tree.

        Args:
            tree: Output of the tree builder

        Returns:
            A new list with one item per id group. Mapping roots and empty
            configurations are returned unchanged.
        """
        if not isinstance(tree, list) or self.config.is_empty:
            return tree

        groups: Dict[str, List[Dict[str, Any]]] = {}
        # (group id, None) for a group, (None, item) for a non-mapping item
        order: List[Tuple[Optional[str], Any]] = []
        for item in tree:
            if not isinstance(item, dict):
                order.append((None, item))
                continue
            group_id = self._group_id(item)
            if group_id not in groups:
                groups[group_id] = []
                order.append((group_id, None))
            groups[group_id].append(item)

        result = []
        for group_id, item in order:
            if group_id is None:
                result.append(item)
            else:
                result.append(self.merge_group(groups[group_id]))

        logger.info(
            f"Merged {len(tree)} items into {len(result)} "
            f"(id path '{self.config.id_path}', {len(groups)} groups)"
        )
        return result

    def merge_group(self, items: List[Dict[str, Any]]) -> Dict[str, Any]:
        if len(items) == 1:
            return items[0]
        merged = copy.deepcopy(items[0])
        for item in items[1:]:
            self.merge_properties(merged, item)
        return merged

    def merge_properties(self, target: Dict[str, Any], source: Dict[str, Any]) -> None:
        """Merge ``source`` into ``target`` in place.

        With merge paths only those paths are merged: missing targets are
        copied, arrays are combined item by item and anything else is
        overwritten. Without merge paths the whole item is deep merged and
        arrays are concatenated.
        """
        if not self.config.merge_paths:
            self._deep_merge(target, source)
            return

        for path in self.config.merge_paths:
            source_value = get_path(source, path)
            if source_value is MISSING:
                continue
            target_value = get_path(target, path)
            if isinstance(source_value, list) and isinstance(target_value, list):
                self._merge_arrays(target_value, source_value)
            else:
                set_path(target, path, copy.deepcopy(source_value))

    def _merge_arrays(self, target: List[Any], source: List[Any]) -> None:
        for source_item in source:
            match = self._find_match(target, source_item)
            if match is None:
                target.append(copy.deepcopy(source_item))
            elif self.config.updates_matches:
                match.update(copy.deepcopy(source_item))
            else:
                self._merge_array_fields(match, source_item)

    def _find_match(self, target: List[Any], source_item: Any) -> Optional[Dict[str, Any]]:
        if not self.config.key_paths or not isinstance(source_item, dict):
            return None
        for target_item in target:
            if isinstance(target_item, dict) and self._keys_match(target_item, source_item):
                return target_item
        return None

    def _keys_match(self, target_item: Dict[str, Any], source_item: Dict[str, Any]) -> bool:
        for path, strategy in self.config.key_paths.items():
            source_key = get_path(source_item, path)
            target_key = get_path(target_item, path)
            if source_key is MISSING or target_key is MISSING:
                return False
            if strategy == KeyPathStrategy.MATCH and str(source_key) != str(target_key):
                return False
            if strategy == KeyPathStrategy.CONTAINS and str(source_key) not in str(target_key):
                return False
        return True

    def _merge_array_fields(self, target_item: Dict[str, Any], source_item: Dict[str, Any]) -> None:
        for path, strategy in self.config.array_field_paths.items():
            source_items = get_path(source_item, path)
            if not isinstance(source_items, list):
                continue
            target_items = get_path(target_item, path)
            if not isinstance(target_items, list):
                target_items = []
                set_path(target_item, path, target_items)

            copied = copy.deepcopy(source_items)
            if strategy == ArrayFieldStrategy.APPEND:
                target_items.extend(copied)
            elif strategy == ArrayFieldStrategy.PREPEND:
                target_items[:0] = copied
            else:
                target_items[:] = copied

    def _deep_merge(self, target: Dict[str, Any], source: Dict[str, Any]) -> None:
        for key, value in source.items():
            existing = target.get(key, MISSING)
            if isinstance(existing, dict) and isinstance(value, dict):
                self._deep_merge(existing, value)
            elif isinstance(existing, list) and isinstance(value, list):
                existing.extend(copy.deepcopy(value))
            else:
                target[key] = copy.deepcopy(value)

    def _group_id(self, item: Dict[str, Any]) -> str:
        if not self.config.id_path:
            return DEFAULT_GROUP
        value = get_path(item, self.config.id_path)
        if value is MISSING or value is None:
            return DEFAULT_GROUP
        return str(value)


def get_path(value: Any, path: str) -> Any:
    """Follow a dotted path through mappings; MISSING when absent."""
    current = value
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return MISSING
        current = current[part]
    return current


def set_path(target: Dict[str, Any], path: str, value: Any) -> None:
    """Set a dotted path, creating intermediate mappings."""
    parts = path.split(".")
    current = target
    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]
    current[parts[-1]] = value
