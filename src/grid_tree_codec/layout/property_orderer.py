from itertools import combinations
from typing import Any, Dict, List, Optional

from grid_tree_codec.models.config_models import LayoutThresholds
from grid_tree_codec.models.pattern_models import PropertyPattern

IDENTIFIER_NAMES = ("id", "key", "name", "code")


class PropertyOrderer:
    """Deterministic column order for unified properties."""

    def __init__(self, thresholds: Optional[LayoutThresholds] = None):
        self.thresholds = thresholds or LayoutThresholds()

    def occurrence_order(self, properties: Dict[str, PropertyPattern]) -> List[str]:
        """Order in which fields were first observed."""
        return [
            prop.name
            for prop in sorted(
                properties.values(),
                key=lambda p: (p.first_appearance_index, p.discovery_order),
            )
        ]

    def determine_property_order(self, properties: Dict[str, PropertyPattern]) -> List[str]:
        """Frequent fields first, then by first appearance."""
        ordered = sorted(
            properties.values(),
            key=lambda p: (
                -p.occurrence_ratio,
                p.first_appearance_index,
                p.discovery_order,
            ),
        )
        return [prop.name for prop in ordered]

    def order_properties_for_array_element(
        self, properties: Dict[str, PropertyPattern]
    ) -> List[str]:
        """Required fields first, identifier-like names ahead of the rest."""
        ordered = sorted(
            properties.values(),
            key=lambda p: (
                not p.is_required,
                -p.occurrence_ratio,
                not self._is_identifier(p.name),
                p.first_appearance_index,
                p.discovery_order,
            ),
        )
        return [prop.name for prop in ordered]

    def optimize_for_horizontal_layout(
        self, ordered: List[str], samples: List[Dict[str, Any]]
    ) -> List[str]:
        """Keep fields that usually appear together next to each other.

        Two fields co-occur when both are present in more than
        ``co_occurrence_threshold`` of the samples holding either of them.
        Groups are placed at the position of their earliest member.
        """
        groups = self.find_co_occurrence_groups(ordered, samples)
        group_of = {name: group for group in groups for name in group}

        result: List[str] = []
        placed = set()
        for name in ordered:
            if name in placed:
                continue
            members = group_of.get(name, [name])
            for member in members:
                if member not in placed:
                    result.append(member)
                    placed.add(member)
        return result

    def find_co_occurrence_groups(
        self, names: List[str], samples: List[Dict[str, Any]]
    ) -> List[List[str]]:
        presence = {
            name: {i for i, sample in enumerate(samples) if name in sample}
            for name in names
        }
        threshold = self.thresholds.co_occurrence_threshold

        # Union-find over co-occurring pairs
        parent = {name: name for name in names}

        def find(name: str) -> str:
            while parent[name] != name:
                parent[name] = parent[parent[name]]
                name = parent[name]
            return name

        for first, second in combinations(names, 2):
            either = presence[first] | presence[second]
            if not either:
                continue
            both = presence[first] & presence[second]
            if len(both) / len(either) > threshold:
                parent[find(second)] = find(first)

        grouped: Dict[str, List[str]] = {}
        for name in names:
            grouped.setdefault(find(name), []).append(name)
        return [group for group in grouped.values() if len(group) > 1]

    @staticmethod
    def _is_identifier(name: str) -> bool:
        lowered = name.lower()
        return any(
            lowered == ident or lowered.endswith(f"_{ident}") or name.endswith(ident.capitalize())
            for ident in IDENTIFIER_NAMES
        )
