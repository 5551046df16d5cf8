import logging
from typing import Dict, List, Optional, Tuple

from grid_tree_codec.core.errors import DuplicateContainerName, SchemaViolation
from grid_tree_codec.core.grid import GridReader
from grid_tree_codec.core.markers import (
    Markers,
    SheetLayout,
    cell_text,
    is_scheme_end,
    parse_marker,
)
from grid_tree_codec.models.scheme_models import (
    CONTAINER_KINDS,
    CellPosition,
    NodeKind,
    Scheme,
    SchemeNode,
)

logger = logging.getLogger(__name__)


class SchemeParser:
    """Builds the scheme tree from the marker rows of a grid.

    The schema starts at row 2 with the root marker and ends at the row holding
    ``$scheme_end``. Children of a container are the cells of the next row that
    fall inside the container's merged column range.
    """

    def __init__(self, grid: GridReader):
        self.grid = grid
        self._spans: Dict[Tuple[int, int], int] = {}
        self._nodes: List[SchemeNode] = []

    def parse(self) -> Scheme:
        """Parse the schema region.

        Returns:
            Scheme with its node arena and row/column bounds

        Raises:
            SchemaViolation: On a malformed schema region
            DuplicateContainerName: When two map siblings share a key
        """
        self._spans = {
            (row, col_start): col_span
            for row, col_start, col_span in self.grid.merged_regions()
        }
        self._nodes = []

        start_row = SheetLayout.SCHEMA_START_ROW
        end_row = self._find_scheme_end_row(start_row)
        first_column, last_column = self._used_columns(start_row)
        if first_column is None:
            raise SchemaViolation(
                "Schema start row is empty",
                position=(start_row, SheetLayout.ROOT_COLUMN),
            )

        root = self._create_node(start_row, first_column, None)
        if root.kind not in CONTAINER_KINDS:
            raise SchemaViolation(
                "Scheme root must be a map or an array",
                node_kind=root.kind.value,
                position=root.position.as_tuple(),
            )
        if root.span == 1 and last_column > first_column:
            # Unmerged root covers every used column of its row
            root.span = last_column - first_column + 1

        self._parse_children(root, start_row + 1, end_row)

        scheme = Scheme(
            root=root,
            nodes=self._nodes,
            schema_start_row=start_row,
            scheme_end_row=end_row,
            first_column=first_column,
            last_column=max(last_column, root.end_column),
        )
        logger.info(
            f"Parsed scheme: root={root.kind.value}, nodes={len(self._nodes)}, "
            f"rows {start_row}..{end_row}, columns {scheme.first_column}..{scheme.last_column}"
        )
        return scheme

    def _find_scheme_end_row(self, start_row: int) -> int:
        for row in range(start_row, self.grid.row_count + 1):
            if is_scheme_end(self.grid.cell_value(row, SheetLayout.ROOT_COLUMN)):
                return row
        raise SchemaViolation(
            "Missing $scheme_end marker",
            position=(start_row, SheetLayout.ROOT_COLUMN),
        )

    def _used_columns(self, row: int) -> Tuple[Optional[int], int]:
        first, last = None, 0
        for col in range(1, self.grid.max_column + 1):
            if cell_text(self.grid.cell_value(row, col)):
                if first is None:
                    first = col
                last = col
        return first, last

    def _create_node(
        self, row: int, col: int, parent: Optional[SchemeNode], kind: NodeKind = None
    ) -> SchemeNode:
        text = cell_text(self.grid.cell_value(row, col))
        try:
            parsed_kind, name = parse_marker(text)
        except SchemaViolation as e:
            raise SchemaViolation(e.message, position=(row, col)) from e

        node = SchemeNode(
            node_id=len(self._nodes),
            kind=kind or parsed_kind,
            name=name,
            position=CellPosition(row=row, column=col),
            span=self._spans.get((row, col), 1),
            parent_id=parent.node_id if parent is not None else None,
        )
        self._nodes.append(node)
        if parent is not None:
            parent.children.append(node)
        return node

    def _parse_children(self, parent: SchemeNode, row: int, end_row: int) -> None:
        if row >= end_row:
            return

        col = parent.position.column
        last_col = parent.end_column
        seen_names: Dict[str, SchemeNode] = {}

        while col <= last_col:
            text = cell_text(self.grid.cell_value(row, col))
            span = self._spans.get((row, col), 1)
            if not text or text == Markers.IGNORE:
                col += span
                continue

            if col + span - 1 > last_col:
                raise SchemaViolation(
                    f"Region '{text}' runs past its parent '{parent.describe()}' "
                    f"(columns {parent.position.column}..{last_col})",
                    position=(row, col),
                )

            node = self._create_node(row, col, parent)
            col += span

            if parent.kind == NodeKind.MAP and node.name and node.kind != NodeKind.KEY:
                if node.name in seen_names:
                    other = seen_names[node.name]
                    raise DuplicateContainerName(
                        f"Key '{node.name}' is declared twice under "
                        f"'{parent.describe()}' (also at row {other.position.row}, "
                        f"column {other.position.column})",
                        node_kind=node.kind.value,
                        position=node.position.as_tuple(),
                    )
                seen_names[node.name] = node

            if node.kind == NodeKind.KEY:
                if col > last_col:
                    raise SchemaViolation(
                        "$key has no paired value cell",
                        node_kind=node.kind.value,
                        position=node.position.as_tuple(),
                    )
                value_node = self._create_node(row, col, node, kind=NodeKind.VALUE)
                col += value_node.span
                logger.debug(
                    f"Key node at ({row}, {node.position.column}) paired with value "
                    f"at column {value_node.position.column}"
                )
            elif node.is_container:
                self._parse_children(node, row + 1, end_row)
