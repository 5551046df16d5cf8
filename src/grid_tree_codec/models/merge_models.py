"""
Pydantic models for merging sibling items of a parsed tree.

A merge configuration is usually given as one string:
``idPath|mergePaths|keyPaths|arrayFieldPaths``.
"""

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, Field


class KeyPathStrategy(str, Enum):
    """How two array items are compared on one key path."""

    MATCH = "match"  # string forms are equal
    CONTAINS = "contains"  # target string contains the source string
    UPDATE = "update"  # any present value matches; matched items are overwritten


class ArrayFieldStrategy(str, Enum):
    """How an array field of two matched items is combined."""

    APPEND = "append"
    PREPEND = "prepend"
    REPLACE = "replace"


class MergeConfig(BaseModel):
    """Rules for merging items that share an id."""

    id_path: str = Field(default="", description="Dotted path of the grouping id")
    merge_paths: List[str] = Field(
        default_factory=list, description="Dotted paths merged from later items"
    )
    key_paths: Dict[str, KeyPathStrategy] = Field(
        default_factory=dict,
        description="Paths identifying the same array item across group members",
    )
    array_field_paths: Dict[str, ArrayFieldStrategy] = Field(
        default_factory=dict,
        description="Array fields combined inside matched array items",
    )

    @property
    def is_empty(self) -> bool:
        return not self.id_path and not self.key_paths

    @property
    def updates_matches(self) -> bool:
        return KeyPathStrategy.UPDATE in self.key_paths.values()

    @classmethod
    def from_config_string(cls, text: str) -> "MergeConfig":
        """Parse ``idPath|mergePaths|keyPaths|arrayFieldPaths``.

        List parts are separated by ``;`` or ``,``. Key and array field entries
        take an optional ``:strategy`` suffix; key paths default to ``match`` and
        array fields to ``append``.

        Raises:
            ValueError: On an entry with more than one strategy or an unknown
                strategy name
        """
        parts = (text or "").split("|")
        parts += [""] * (4 - len(parts))

        return cls(
            id_path=parts[0].strip(),
            merge_paths=_split_list(parts[1]),
            key_paths=_parse_strategies(parts[2], KeyPathStrategy.MATCH),
            array_field_paths=_parse_strategies(parts[3], ArrayFieldStrategy.APPEND),
        )


def _split_list(text: str) -> List[str]:
    return [item.strip() for item in text.replace(",", ";").split(";") if item.strip()]


def _parse_strategies(text: str, default: Enum) -> Dict[str, str]:
    strategies = {}
    for entry in _split_list(text):
        pieces = entry.split(":")
        if len(pieces) > 2:
            raise ValueError(f"Invalid merge rule '{entry}'")
        path = pieces[0].strip()
        strategy = pieces[1].strip().lower() if len(pieces) == 2 else default.value
        strategies[path] = strategy
    return strategies
