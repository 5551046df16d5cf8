"""
Structure analysis - infers a unified schema from an arbitrary tree.

Every sibling element contributes its own field set: a field seen only in the
50th of 100 elements is still part of the unified pattern. Array fields are
collected across every same-path instance before their elements are merged,
so nested arrays unify over all of their occurrences rather than one sample.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from grid_tree_codec.models.config_models import LayoutThresholds
from grid_tree_codec.models.pattern_models import (
    ArrayPattern,
    ElementKind,
    MergeConflict,
    PatternType,
    PropertyPattern,
    StructurePattern,
)

logger = logging.getLogger(__name__)


def type_name(value: Any) -> str:
    """Tree-level type name of a value."""
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    return "string"


def join_path(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


class AnalysisContext:
    """Per-call state threaded through the analyzer.

    Holds the thresholds in effect and the merge conflicts recovered so far.
    A quiet context collects nothing; it is used for the secondary per-index
    pass so conflicts are reported once.
    """

    def __init__(self, thresholds: LayoutThresholds, quiet: bool = False):
        self.thresholds = thresholds
        self.quiet = quiet
        self.conflicts: List[MergeConflict] = []

    def record_conflict(self, path: str, observed: List[str], resolution: str) -> None:
        if self.quiet:
            return
        conflict = MergeConflict(path=path, observed=observed, resolution=resolution)
        self.conflicts.append(conflict)
        logger.warning(
            f"Merge conflict at '{path}': observed {', '.join(observed)}; {resolution}"
        )

    def quiet_copy(self) -> "AnalysisContext":
        return AnalysisContext(self.thresholds, quiet=True)


class StructureAnalyzer:
    """Infers StructurePattern objects from trees."""

    def __init__(self, thresholds: Optional[LayoutThresholds] = None):
        self.thresholds = thresholds or LayoutThresholds()

    def analyze(self, tree: Any) -> StructurePattern:
        """Analyze a tree.

        Args:
            tree: list, dict or scalar tree value

        Returns:
            StructurePattern with unified properties and arrays
        """
        context = AnalysisContext(self.thresholds)

        if isinstance(tree, list):
            root_array = self.analyze_arrays([tree], "", "", context)
            pattern = StructurePattern(
                type=PatternType.ROOT_ARRAY,
                root_array=root_array,
                properties=root_array.element_properties,
                total_elements=len(tree),
            )
        elif isinstance(tree, dict):
            pattern = StructurePattern(
                type=PatternType.ROOT_OBJECT,
                properties=self.unify_objects([tree], "", context),
                total_elements=1,
            )
        elif tree is None:
            pattern = StructurePattern(type=PatternType.EMPTY)
        else:
            pattern = StructurePattern(type=PatternType.SCALAR, total_elements=1)

        pattern.arrays = {
            name: prop.array_pattern
            for name, prop in pattern.properties.items()
            if prop.is_array and prop.array_pattern is not None
        }
        pattern.max_depth = self.calculate_max_depth(tree)
        pattern.consistency_score = self.calculate_consistency_score(pattern)
        pattern.conflicts = context.conflicts

        logger.info(
            f"Analyzed {pattern.type.value}: {len(pattern.properties)} properties, "
            f"{len(pattern.arrays)} arrays, depth {pattern.max_depth}, "
            f"{len(pattern.conflicts)} conflicts"
        )
        return pattern

    def unify_objects(
        self, instances: List[Dict[str, Any]], path: str, context: AnalysisContext
    ) -> Dict[str, PropertyPattern]:
        """Merge the field sets of sibling mappings into one unified schema.

        Args:
            instances: Every mapping instance sharing the same tree path
            path: Tree path of the instances, used in conflict reports
            context: Analysis context

        Returns:
            Field name to PropertyPattern, in order of discovery
        """
        properties: Dict[str, PropertyPattern] = {}
        values: Dict[str, List[Any]] = {}

        for index, instance in enumerate(instances):
            for raw_key, value in instance.items():
                key = str(raw_key)
                if context.thresholds.skip_private_keys and key.startswith("_"):
                    continue

                prop = properties.get(key)
                if prop is None:
                    prop = PropertyPattern(
                        name=key,
                        path=join_path(path, key),
                        first_appearance_index=index,
                        discovery_order=len(properties),
                    )
                    properties[key] = prop
                    values[key] = []

                prop.occurrence_count += 1
                prop.types.add(type_name(value))
                values[key].append(value)

        total = len(instances)
        for key, prop in properties.items():
            self._resolve_shape(prop, values[key], context)
            prop.occurrence_ratio = prop.occurrence_count / total if total else 0.0
            prop.is_required = prop.occurrence_ratio > context.thresholds.required_ratio
            if prop.array_pattern is not None:
                prop.array_pattern.occurrence_ratio = prop.occurrence_ratio

        return properties

    def _resolve_shape(
        self, prop: PropertyPattern, values: List[Any], context: AnalysisContext
    ) -> None:
        lists = [v for v in values if isinstance(v, list)]
        dicts = [v for v in values if isinstance(v, dict)]
        scalars = [v for v in values if v is not None and not isinstance(v, (list, dict))]

        if lists:
            prop.is_array = True
            instances = lists
            if dicts or scalars:
                prop.has_shape_conflict = True
                context.record_conflict(
                    prop.path,
                    sorted(prop.types),
                    "flattened into an array of mixed items",
                )
                instances = [
                    v if isinstance(v, list) else [v] for v in values if v is not None
                ]
            prop.array_pattern = self.analyze_arrays(instances, prop.name, prop.path, context)
            prop.array_pattern.is_mixed = prop.has_shape_conflict
        elif dicts:
            prop.is_object = True
            if scalars:
                prop.has_shape_conflict = True
                context.record_conflict(
                    prop.path, sorted(prop.types), "object shape supersedes scalar values"
                )
            prop.object_fields = self.unify_objects(dicts, prop.path, context)
            prop.object_properties = list(prop.object_fields)

    def analyze_arrays(
        self,
        instances: List[List[Any]],
        name: str,
        path: str,
        context: AnalysisContext,
    ) -> ArrayPattern:
        """Build one ArrayPattern from every instance of a same-path array.

        Args:
            instances: All list values found at the path
            name: Field name of the array (empty for anonymous arrays)
            path: Tree path of the array
            context: Analysis context

        Returns:
            ArrayPattern unified over every element of every instance
        """
        thresholds = context.thresholds
        sizes = [len(instance) for instance in instances]
        pattern = ArrayPattern(
            name=name,
            path=path,
            instance_count=len(instances),
            max_size=max(sizes, default=0),
            min_size=min(sizes, default=0),
        )

        items = [item for instance in instances for item in instance]
        pattern.total_elements = len(items)
        dict_items = [item for item in items if isinstance(item, dict)]
        list_items = [item for item in items if isinstance(item, list)]
        scalar_items = [
            item for item in items if item is not None and not isinstance(item, (list, dict))
        ]
        item_path = f"{path}[]"

        if dict_items:
            pattern.element_kind = ElementKind.OBJECT
            if list_items or scalar_items:
                context.record_conflict(
                    item_path,
                    sorted({type_name(item) for item in items}),
                    "object items supersede scalar and list items",
                )
            pattern.element_properties = self.unify_objects(dict_items, item_path, context)
            pattern.has_variable_structure = any(
                prop.occurrence_ratio < 1.0 for prop in pattern.element_properties.values()
            )
            if pattern.max_size <= thresholds.per_index.max_slots:
                pattern.index_patterns = self._unify_by_index(instances, path, context)
            pattern.intra_similarity, pattern.cross_similarity = self._similarities(instances)
        elif list_items:
            pattern.element_kind = ElementKind.ARRAY
            if scalar_items:
                context.record_conflict(
                    item_path,
                    sorted({type_name(item) for item in items}),
                    "list items supersede scalar items",
                )
            pattern.item_pattern = self.analyze_arrays(list_items, "", item_path, context)
            pattern.has_variable_structure = (
                pattern.item_pattern.min_size != pattern.item_pattern.max_size
            )
        elif scalar_items:
            pattern.element_kind = ElementKind.SCALAR
            pattern.has_variable_structure = len({type_name(item) for item in scalar_items}) > 1
        else:
            pattern.element_kind = ElementKind.EMPTY

        pattern.requires_multiple_rows = (
            pattern.max_size > thresholds.multiple_rows_max_size
            or pattern.min_size != pattern.max_size
        )
        logger.debug(
            f"Array '{path or '<root>'}': {pattern.instance_count} instances, "
            f"size {pattern.min_size}..{pattern.max_size}, "
            f"{pattern.element_kind.value} items"
        )
        return pattern

    def _unify_by_index(
        self, instances: List[List[Any]], path: str, context: AnalysisContext
    ) -> List[Dict[str, PropertyPattern]]:
        quiet = context.quiet_copy()
        max_size = max((len(instance) for instance in instances), default=0)
        slots = []
        for index in range(max_size):
            at_index = [
                instance[index]
                for instance in instances
                if index < len(instance) and isinstance(instance[index], dict)
            ]
            slots.append(self.unify_objects(at_index, f"{path}[{index}]", quiet))
        return slots

    @staticmethod
    def _similarities(instances: List[List[Any]]) -> Tuple[float, float]:
        """Jaccard similarity of element key sets, within and across instances.

        Intra compares neighbouring elements of one instance; cross compares
        the elements at the same index of neighbouring instances.
        """

        def keys(item: Any) -> frozenset:
            return frozenset(str(k) for k in item) if isinstance(item, dict) else frozenset()

        def jaccard(a: frozenset, b: frozenset) -> float:
            union = a | b
            return len(a & b) / len(union) if union else 1.0

        intra = [
            jaccard(keys(instance[i]), keys(instance[i + 1]))
            for instance in instances
            for i in range(len(instance) - 1)
        ]
        cross = [
            jaccard(keys(first[i]), keys(second[i]))
            for first, second in zip(instances, instances[1:])
            for i in range(min(len(first), len(second)))
        ]
        intra_score = sum(intra) / len(intra) if intra else 1.0
        cross_score = sum(cross) / len(cross) if cross else 1.0
        return intra_score, cross_score

    def calculate_max_depth(self, node: Any, current_depth: int = 0) -> int:
        if isinstance(node, dict):
            children = node.values()
        elif isinstance(node, list):
            children = node
        else:
            return current_depth

        max_depth = current_depth
        for child in children:
            max_depth = max(max_depth, self.calculate_max_depth(child, current_depth + 1))
        return max_depth

    @staticmethod
    def calculate_consistency_score(pattern: StructurePattern) -> float:
        if not pattern.properties:
            return 0.0
        required = sum(1 for prop in pattern.properties.values() if prop.is_required)
        return required / len(pattern.properties)
