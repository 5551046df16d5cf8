"""
Vertical nesting - one element per run of rows instead of per column run.

Arrays that are not nested in another array get a single template slot; an
element whose longest such array holds ``n`` items takes ``n`` rows. Only the
first row of an element carries its scalars, so a reader continues the
previous element on rows whose direct scalar cells are blank.
"""

import logging
from typing import Any, Dict, List, Optional

from grid_tree_codec.layout.data_row_mapper import DataRowMapper
from grid_tree_codec.models.config_models import LayoutThresholds
from grid_tree_codec.models.layout_models import LayoutCell, RowGroup
from grid_tree_codec.models.pattern_models import PropertyPattern

logger = logging.getLogger(__name__)


class VerticalNester:
    def __init__(self, thresholds: Optional[LayoutThresholds] = None):
        self.thresholds = thresholds or LayoutThresholds()

    def detect_merge_key(
        self,
        elements: List[Any],
        properties: Dict[str, PropertyPattern],
        order: Optional[List[str]] = None,
    ) -> Optional[str]:
        """First direct scalar field whose values repeat across elements.

        A field qualifies when its distinct value count is below the element
        count and below ``merge_key_unique_ratio`` times the element count.
        """
        items = [element for element in elements if isinstance(element, dict)]
        if not items:
            return None

        limit = self.thresholds.merge_key_unique_ratio * len(items)
        for name in order or list(properties):
            prop = properties.get(name)
            if prop is None or not prop.is_scalar:
                continue
            values = [
                element[name]
                for element in items
                if name in element and self._is_hashable(element[name])
            ]
            unique = len(set(values))
            if values and unique < len(items) and unique < limit:
                logger.debug(f"Merge key '{name}': {unique} distinct values over {len(items)}")
                return name
        return None

    def has_anchor(self, element: Any, properties: Dict[str, PropertyPattern]) -> bool:
        """True when the element has a non-blank direct scalar field."""
        if not isinstance(element, dict):
            return False
        for key, value in element.items():
            prop = properties.get(str(key))
            if prop is None or not prop.is_scalar:
                continue
            if value is not None and value != "" and not isinstance(value, (dict, list)):
                return True
        return False

    def create_row_groups(
        self,
        elements: List[Any],
        element_cell: LayoutCell,
        mapper: DataRowMapper,
        merge_key: Optional[str] = None,
    ) -> List[RowGroup]:
        """Group element rows by merge key value.

        Without a merge key every element lands in one group. Groups are
        contiguous runs of equal key values unless ``vertical_gather_groups``
        collects every element sharing a value into the group of its first
        occurrence.
        """
        groups: List[RowGroup] = []
        by_key: Dict[str, RowGroup] = {}

        for element in elements:
            key = self._group_key(element, merge_key)
            if merge_key is None:
                group = groups[0] if groups else None
            elif self.thresholds.vertical_gather_groups:
                group = by_key.get(key)
            else:
                group = groups[-1] if groups and groups[-1].group_key == key else None

            if group is None:
                group = RowGroup(group_key=key)
                groups.append(group)
                by_key.setdefault(key, group)

            group.rows.extend(mapper.rows_for(element_cell, element))

        return groups

    @staticmethod
    def calculate_required_rows(group: RowGroup) -> int:
        return len(group.rows)

    def assign_row_numbers(
        self, groups: List[RowGroup], start_row: int, separate_groups: bool = True
    ) -> int:
        """Give every group its row range; returns the next free row."""
        current = start_row
        for index, group in enumerate(groups):
            if separate_groups and index > 0:
                current += 1  # blank separator row
            group.start_row = current
            group.end_row = current + self.calculate_required_rows(group) - 1
            current = group.end_row + 1
        return current

    @staticmethod
    def _group_key(element: Any, merge_key: Optional[str]) -> Optional[str]:
        if merge_key is None or not isinstance(element, dict):
            return None
        value = element.get(merge_key)
        return None if value is None else str(value)

    @staticmethod
    def _is_hashable(value: Any) -> bool:
        return value is not None and not isinstance(value, (dict, list))
