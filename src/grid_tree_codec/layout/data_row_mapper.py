import logging
from typing import Any, Dict, List, Optional

from grid_tree_codec.models.layout_models import AllocationMode, ArrayLayout, LayoutCell
from grid_tree_codec.models.scheme_models import NodeKind

logger = logging.getLogger(__name__)


class DataRowMapper:
    """Maps tree values onto planned schema cells.

    A mapped row is a dict of column map path to scalar value. Template arrays
    (one element per row) place their item ``k`` on row ``k``; every other cell
    is written on the first row of its element only.
    """

    def __init__(self, array_layouts: Optional[Dict[str, ArrayLayout]] = None):
        self.array_layouts = array_layouts or {}

    def rows_for(self, cell: LayoutCell, value: Any) -> List[Dict[str, Any]]:
        """All data rows of one value laid out under ``cell``."""
        count = self.required_rows(cell, value)
        rows = []
        for row_index in range(count):
            row: Dict[str, Any] = {}
            self._collect(cell, value, row, row_index)
            rows.append(row)
        return rows

    def required_rows(self, cell: LayoutCell, value: Any) -> int:
        """max(1, longest template array below ``cell``)."""
        longest = 1
        if cell.kind == NodeKind.MAP and isinstance(value, dict):
            fields = self._fields(value)
            for child in cell.children:
                longest = max(longest, self.required_rows(child, fields.get(child.name)))
        elif cell.kind == NodeKind.ARRAY and self._is_template(cell):
            longest = max(longest, len(self._items(value)))
        return longest

    def _collect(self, cell: LayoutCell, value: Any, row: Dict[str, Any], row_index: int) -> None:
        if cell.kind == NodeKind.MAP:
            if not isinstance(value, dict):
                return
            fields = self._fields(value)
            for child in cell.children:
                self._collect(child, fields.get(child.name), row, row_index)
            return

        if cell.kind == NodeKind.ARRAY:
            items = self._items(value)
            if self._is_template(cell):
                if cell.children and row_index < len(items):
                    self._collect(cell.children[0], items[row_index], row, 0)
                return
            if row_index != 0:
                return
            for slot, item in zip(cell.children, items):
                self._collect(slot, item, row, 0)
            return

        # property or $value leaf
        if row_index != 0 or value is None or isinstance(value, (dict, list)):
            return
        row[cell.path] = value

    def _is_template(self, cell: LayoutCell) -> bool:
        layout = self.array_layouts.get(cell.path)
        return layout is not None and layout.mode == AllocationMode.TEMPLATE

    @staticmethod
    def _items(value: Any) -> List[Any]:
        if value is None:
            return []
        # Mixed fields hold non-list values as single items
        return value if isinstance(value, list) else [value]

    @staticmethod
    def _fields(value: Dict[Any, Any]) -> Dict[str, Any]:
        return {str(key): item for key, item in value.items()}
