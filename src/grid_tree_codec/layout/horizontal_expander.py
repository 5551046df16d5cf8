"""
Horizontal expansion - lays array elements side by side as column runs.

Widths are always computed from the unified (post-merge) patterns, never from
the first element seen, so a merged region covers every field any element
can carry.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from grid_tree_codec.analyzers.structure_analyzer import join_path
from grid_tree_codec.core.errors import SchemaViolation
from grid_tree_codec.core.markers import Markers, format_marker
from grid_tree_codec.layout.plan_context import PlanContext
from grid_tree_codec.layout.property_orderer import PropertyOrderer
from grid_tree_codec.models.config_models import LayoutThresholds
from grid_tree_codec.models.layout_models import (
    AllocationMode,
    ArrayLayout,
    ElementLayout,
    LayoutCell,
)
from grid_tree_codec.models.pattern_models import (
    ArrayPattern,
    ElementKind,
    PropertyPattern,
)
from grid_tree_codec.models.scheme_models import NodeKind

logger = logging.getLogger(__name__)


class FieldOrder:
    """Ordering rules for a run of sibling fields"""

    OCCURRENCE = "occurrence"
    FREQUENCY = "frequency"
    ELEMENT = "element"


class HorizontalExpander:
    """Builds schema cells for objects and arrays laid out horizontally.

    Scalars come first, then nested objects, then arrays. Every array slot of
    a unified-width array has the same width; per-index arrays size each slot
    from the fields observed at that index across all instances. With
    ``vertical`` set, arrays not nested in another array get one template slot
    (one element per data row instead of one per column run).
    """

    def __init__(
        self,
        thresholds: Optional[LayoutThresholds] = None,
        orderer: Optional[PropertyOrderer] = None,
    ):
        self.thresholds = thresholds or LayoutThresholds()
        self.orderer = orderer or PropertyOrderer(self.thresholds)

    # Column allocation decision
    def choose_allocation_mode(self, array: ArrayPattern) -> AllocationMode:
        limits = self.thresholds.per_index
        if array.element_kind != ElementKind.OBJECT or not array.index_patterns:
            return AllocationMode.UNIFIED_WIDTH
        if array.instance_count < limits.min_instances or array.max_size > limits.max_slots:
            return AllocationMode.UNIFIED_WIDTH
        if array.cross_similarity - array.intra_similarity > limits.similarity_margin:
            return AllocationMode.PER_INDEX
        return AllocationMode.UNIFIED_WIDTH

    # Cells
    def build_fields(
        self,
        fields: Dict[str, PropertyPattern],
        path: str,
        row: int,
        column: int,
        context: PlanContext,
        vertical: bool = False,
        order: str = FieldOrder.FREQUENCY,
        samples: Optional[List[Dict[str, Any]]] = None,
    ) -> Tuple[List[LayoutCell], int]:
        """Place sibling fields left to right starting at ``column``.

        Returns:
            Tuple of (cells, total width); width is 0 for no fields
        """
        cells = []
        current = column
        for name in self.order_fields(fields, order, samples):
            cell = self.build_field(
                fields[name], join_path(path, name), row, current, context, vertical
            )
            cells.append(cell)
            current += cell.span
        return cells, current - column

    def order_fields(
        self,
        fields: Dict[str, PropertyPattern],
        order: str,
        samples: Optional[List[Dict[str, Any]]] = None,
    ) -> List[str]:
        if order == FieldOrder.OCCURRENCE:
            names = self.orderer.occurrence_order(fields)
        elif order == FieldOrder.ELEMENT:
            names = self.orderer.order_properties_for_array_element(fields)
        else:
            names = self.orderer.determine_property_order(fields)
            if samples:
                names = self.orderer.optimize_for_horizontal_layout(names, samples)

        def category(name: str) -> int:
            prop = fields[name]
            if prop.is_array:
                return 2
            return 1 if prop.is_object else 0

        return sorted(names, key=category)

    def build_field(
        self,
        prop: PropertyPattern,
        path: str,
        row: int,
        column: int,
        context: PlanContext,
        vertical: bool = False,
    ) -> LayoutCell:
        self._check_name(prop.name, path)

        if prop.is_array and prop.array_pattern is not None:
            return self.build_array(
                prop.array_pattern, prop.name, path, row, column, context, vertical
            )

        if prop.is_object:
            children, width = self.build_fields(
                prop.object_fields, path, row + 1, column, context, vertical
            )
            return LayoutCell(
                kind=NodeKind.MAP,
                name=prop.name,
                marker=format_marker(NodeKind.MAP, prop.name),
                row=row,
                column=column,
                span=max(1, width),
                path=path,
                children=children,
            )

        context.claim_column(path, column)
        return LayoutCell(
            kind=NodeKind.PROPERTY,
            name=prop.name,
            marker=prop.name,
            row=row,
            column=column,
            path=path,
        )

    def build_array(
        self,
        array: ArrayPattern,
        name: str,
        path: str,
        row: int,
        column: int,
        context: PlanContext,
        vertical: bool = False,
    ) -> LayoutCell:
        """Array marker cell plus one slot per element position."""
        mode = AllocationMode.TEMPLATE if vertical else self.choose_allocation_mode(array)
        slot_count = 1 if mode == AllocationMode.TEMPLATE else array.max_size

        cell = LayoutCell(
            kind=NodeKind.ARRAY,
            name=name,
            marker=format_marker(NodeKind.ARRAY, name),
            row=row,
            column=column,
            path=path,
        )
        layout = ArrayLayout(
            array_path=path, mode=mode, element_count=slot_count, total_columns=0
        )

        current = column
        for index in range(slot_count):
            slot_path = f"{path}[{index}]"
            slot_cell = self._build_slot(array, index, mode, slot_path, row + 1, current, context)
            cell.children.append(slot_cell)
            layout.elements.append(self._element_layout(index, slot_cell))
            current += slot_cell.span

        cell.span = max(1, current - column)
        layout.total_columns = cell.span
        if array.element_kind == ElementKind.OBJECT:
            layout.ordered_properties = self.orderer.order_properties_for_array_element(
                array.element_properties
            )
        context.array_layouts[path] = layout

        logger.debug(
            f"Array '{path}' -> {mode.value}, {slot_count} slots, "
            f"columns {column}..{cell.end_column}"
        )
        return cell

    def _build_slot(
        self,
        array: ArrayPattern,
        index: int,
        mode: AllocationMode,
        slot_path: str,
        row: int,
        column: int,
        context: PlanContext,
    ) -> LayoutCell:
        if array.element_kind == ElementKind.OBJECT:
            children, width = self.build_fields(
                self._slot_fields(array, index, mode),
                slot_path,
                row + 1,
                column,
                context,
                order=FieldOrder.ELEMENT,
            )
            return LayoutCell(
                kind=NodeKind.MAP,
                marker=Markers.MAP,
                row=row,
                column=column,
                span=max(1, width),
                path=slot_path,
                children=children,
            )

        if array.element_kind == ElementKind.ARRAY and array.item_pattern is not None:
            context.warn_once(
                array.path,
                f"Array '{array.path or '<root>'}' holds arrays directly; "
                f"nested unnamed arrays are discouraged",
            )
            return self.build_array(array.item_pattern, "", slot_path, row, column, context)

        context.claim_column(slot_path, column)
        return LayoutCell(
            kind=NodeKind.VALUE,
            marker=Markers.VALUE,
            row=row,
            column=column,
            path=slot_path,
        )

    @staticmethod
    def _slot_fields(
        array: ArrayPattern, index: int, mode: AllocationMode
    ) -> Dict[str, PropertyPattern]:
        if mode == AllocationMode.PER_INDEX and index < len(array.index_patterns):
            return array.index_patterns[index]
        return array.element_properties

    @staticmethod
    def _element_layout(index: int, slot_cell: LayoutCell) -> ElementLayout:
        scalars = [child for child in slot_cell.children if child.kind == NodeKind.PROPERTY]
        return ElementLayout(
            index=index,
            start_column=slot_cell.column,
            required_columns=slot_cell.span,
            properties=[child.name for child in slot_cell.children],
            property_column_map={child.name: child.column for child in scalars},
        )

    @staticmethod
    def _check_name(name: str, path: str) -> None:
        if not name:
            raise SchemaViolation("Mapping key is empty", node_kind="property", path=path)
        if Markers.PREFIX in name or name.strip() == Markers.IGNORE:
            raise SchemaViolation(
                f"Mapping key '{name}' collides with the marker grammar",
                node_kind="property",
                path=path,
            )
