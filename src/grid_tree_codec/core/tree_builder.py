import logging
from typing import Any, Dict, List, Optional, Set

from grid_tree_codec.core.errors import SchemaViolation
from grid_tree_codec.core.grid import GridReader
from grid_tree_codec.core.markers import cell_text
from grid_tree_codec.models.scheme_models import (
    CONTAINER_KINDS,
    NodeKind,
    ParseOptions,
    Scheme,
    SchemeNode,
)

logger = logging.getLogger(__name__)

# Stack entry for a container whose whole region is blank in the current row
_ABSENT = object()


class TreeBuilder:
    """Stack machine turning the data rows of a grid into a tree.

    The scheme tree is linearized once. For every data row the linear nodes are
    walked; a node's schema depth is compared to the stack depth and containers
    are popped until they match, so the same columns can re-enter nested
    containers on successive rows. After each row the stack is unwound to the
    root container.
    """

    def __init__(
        self,
        scheme: Scheme,
        grid: GridReader,
        options: Optional[ParseOptions] = None,
    ):
        self.scheme = scheme
        self.grid = grid
        self.options = options or ParseOptions()
        self.warnings: List[str] = []
        self.rows_processed = 0
        self._warned_nodes: Set[int] = set()

    def build(self) -> Any:
        """Build the tree for every data row.

        Returns:
            list for an array root, dict for a map root

        Raises:
            SchemaViolation: On an unnamed value or container under a map.
                Nothing is returned in that case.
        """
        root_node = self.scheme.root
        if root_node.kind == NodeKind.MAP:
            root: Any = {}
        elif root_node.kind == NodeKind.ARRAY:
            root = []
        else:
            raise SchemaViolation(
                "Scheme root must be a map or an array",
                node_kind=root_node.kind.value,
                position=root_node.position.as_tuple(),
            )

        linear_nodes = self.scheme.linear_nodes()
        element_node = self._continuation_element(root_node)
        anchors = (
            [child for child in element_node.children if child.kind in (NodeKind.PROPERTY, NodeKind.KEY)]
            if element_node is not None
            else []
        )

        for row in range(self.scheme.data_start_row, self.grid.row_count + 1):
            if self._is_blank_row(row):
                continue

            continuing = bool(
                anchors
                and root
                and isinstance(root[-1], dict)
                and all(self._is_empty(self._read(node, row)) for node in anchors)
            )
            stack: List[Any] = [root]

            for node in linear_nodes:
                depth = self.scheme.depth_of(node)
                while len(stack) > depth:
                    stack.pop()
                parent = stack[-1]
                if parent is _ABSENT or self._is_absent_slot(node, parent, row):
                    if node.kind in CONTAINER_KINDS:
                        stack.append(_ABSENT)
                    continue

                if node.kind in (NodeKind.MAP, NodeKind.ARRAY):
                    if continuing and node is element_node:
                        stack.append(root[-1])
                    else:
                        stack.append(self._open_container(node, parent, row))
                elif node.kind in (NodeKind.PROPERTY, NodeKind.VALUE):
                    self._add_value(node, parent, row)
                elif node.kind == NodeKind.KEY:
                    self._add_key_value(node, parent, row)
                # NodeKind.IGNORE carries no data

            # Unwind to the root for the next row
            del stack[1:]
            self.rows_processed += 1

        if not self.options.include_empty_fields:
            self._prune_empty(root)

        logger.info(
            f"Built tree from {self.rows_processed} data rows "
            f"(root={root_node.kind.value}, warnings={len(self.warnings)})"
        )
        return root

    def _continuation_element(self, root_node: SchemeNode) -> Optional[SchemeNode]:
        if not self.options.continuation_rows or root_node.kind != NodeKind.ARRAY:
            return None
        for child in root_node.children:
            if child.kind == NodeKind.MAP and not child.name:
                return child
        return None

    def _open_container(self, node: SchemeNode, parent: Any, row: int) -> Any:
        key = node.name
        if isinstance(parent, dict):
            if not key:
                raise SchemaViolation(
                    "Container under a map has no name",
                    node_kind=node.kind.value,
                    position=(row, node.position.column),
                )
            existing = parent.get(key)
            if isinstance(existing, (dict, list)):
                return existing
            container = {} if node.kind == NodeKind.MAP else []
            parent[key] = container
            return container

        container = {} if node.kind == NodeKind.MAP else []
        if key:
            parent.append({key: container})
        else:
            if node.kind == NodeKind.ARRAY:
                self._warn_once(
                    node,
                    f"Array nested directly in an array without a name at "
                    f"row {node.position.row}, column {node.position.column} is discouraged",
                )
            parent.append(container)
        return container

    def _add_value(self, node: SchemeNode, parent: Any, row: int) -> None:
        owner = self.scheme.parent_of(node)
        if node.kind == NodeKind.VALUE and owner is not None and owner.kind == NodeKind.KEY:
            return

        key = node.name
        if isinstance(parent, dict) and not key:
            raise SchemaViolation(
                "Value under a map has no key",
                node_kind=node.kind.value,
                position=(row, node.position.column),
            )

        value = self._read(node, row)
        if self._is_empty(value):
            if not self.options.include_empty_fields:
                return
            value = ""

        if isinstance(parent, dict):
            parent[key] = value
        elif not key:
            parent.append(value)
        else:
            parent.append({key: value})

    def _add_key_value(self, node: SchemeNode, parent: Any, row: int) -> None:
        key = cell_text(self.grid.cell_value(row, node.position.column))
        if not key:
            logger.debug(f"Empty $key cell at ({row}, {node.position.column}), skipped")
            return

        value_node = next(
            (child for child in node.children if child.kind == NodeKind.VALUE), None
        )
        if value_node is None:
            raise SchemaViolation(
                "$key has no paired value cell",
                node_kind=node.kind.value,
                position=node.position.as_tuple(),
            )

        value = self._read(value_node, row)
        if self._is_empty(value):
            if not self.options.include_empty_fields:
                return
            value = ""

        if isinstance(parent, dict):
            parent[key] = value
        else:
            parent.append({key: value})

    def _read(self, node: SchemeNode, row: int) -> Any:
        value = self.grid.cell_value(row, node.position.column)
        if self.options.infer_types and isinstance(value, str):
            return infer_scalar(value)
        return value

    def _is_absent_slot(self, node: SchemeNode, parent: Any, row: int) -> bool:
        """An anonymous array slot with a blank region holds no item.

        Shorter arrays leave their trailing slots blank; those never become
        items, even when empty fields are kept.
        """
        if not isinstance(parent, list) or node.name:
            return False
        if node.kind not in (NodeKind.MAP, NodeKind.ARRAY, NodeKind.VALUE):
            return False
        return all(
            self._is_empty(self.grid.cell_value(row, col))
            for col in range(node.position.column, node.end_column + 1)
        )

    def _is_blank_row(self, row: int) -> bool:
        return all(
            self._is_empty(self.grid.cell_value(row, col))
            for col in range(self.scheme.first_column, self.scheme.last_column + 1)
        )

    @staticmethod
    def _is_empty(value: Any) -> bool:
        return value is None or value == ""

    def _warn_once(self, node: SchemeNode, message: str) -> None:
        if node.node_id in self._warned_nodes:
            return
        self._warned_nodes.add(node.node_id)
        self.warnings.append(message)
        logger.warning(message)

    def _prune_empty(self, container: Any) -> bool:
        """Drop empty containers below ``container``; True if it ends up empty."""
        if isinstance(container, dict):
            for key in list(container.keys()):
                value = container[key]
                if isinstance(value, (dict, list)) and self._prune_empty(value):
                    del container[key]
            return not container
        if isinstance(container, list):
            container[:] = [
                item
                for item in container
                if not (isinstance(item, (dict, list)) and self._prune_empty(item))
            ]
            return not container
        return False


def infer_scalar(text: str) -> Any:
    """Convert boolean and numeric looking strings to typed scalars."""
    stripped = text.strip()
    lowered = stripped.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(stripped)
    except ValueError:
        pass
    if any(ch in stripped for ch in ".eE"):
        try:
            return float(stripped)
        except ValueError:
            pass
    return text
