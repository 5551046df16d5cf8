import logging
from typing import Dict, List, Set

from grid_tree_codec.core.errors import SchemaViolation
from grid_tree_codec.models.layout_models import ArrayLayout

logger = logging.getLogger(__name__)


class PlanContext:
    """Mutable state of one planning call.

    Collects the global column map, per-array layouts and warnings while the
    schema cells are built. One context per plan; never shared.
    """

    def __init__(self):
        self.column_map: Dict[str, int] = {}
        self.array_layouts: Dict[str, ArrayLayout] = {}
        self.warnings: List[str] = []
        self._warned: Set[str] = set()

    def claim_column(self, path: str, column: int) -> None:
        if path in self.column_map:
            raise SchemaViolation(
                f"Two fields render to the same column path (column {self.column_map[path]})",
                path=path,
            )
        self.column_map[path] = column

    def warn_once(self, key: str, message: str) -> None:
        if key in self._warned:
            return
        self._warned.add(key)
        self.warnings.append(message)
        logger.warning(message)
