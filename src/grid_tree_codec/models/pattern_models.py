from enum import Enum
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, Field


class PatternType(str, Enum):
    """Kind of the analyzed tree root"""

    ROOT_ARRAY = "root_array"
    ROOT_OBJECT = "root_object"
    SCALAR = "scalar"
    EMPTY = "empty"


class ElementKind(str, Enum):
    """Unified shape of the items of an array"""

    SCALAR = "scalar"
    OBJECT = "object"
    ARRAY = "array"
    EMPTY = "empty"


class MergeConflict(BaseModel):
    """Shape clash recovered while unifying sibling values"""

    path: str
    observed: List[str] = Field(default_factory=list)
    resolution: str


class PropertyPattern(BaseModel):
    """Inferred shape of one named field across all of its instances"""

    name: str
    path: str = ""
    occurrence_count: int = 0
    occurrence_ratio: float = 0.0
    first_appearance_index: int = 0
    discovery_order: int = 0
    is_required: bool = False
    types: Set[str] = Field(default_factory=set)
    is_array: bool = False
    is_object: bool = False
    object_properties: List[str] = Field(default_factory=list)
    object_fields: Dict[str, "PropertyPattern"] = Field(default_factory=dict)
    array_pattern: Optional["ArrayPattern"] = None
    has_shape_conflict: bool = False

    @property
    def is_scalar(self) -> bool:
        return not self.is_array and not self.is_object


class ArrayPattern(BaseModel):
    """Unified shape of the elements of every same-path array instance"""

    name: str
    path: str = ""
    element_kind: ElementKind = ElementKind.EMPTY
    element_properties: Dict[str, PropertyPattern] = Field(default_factory=dict)
    item_pattern: Optional["ArrayPattern"] = None
    index_patterns: List[Dict[str, PropertyPattern]] = Field(default_factory=list)
    max_size: int = 0
    min_size: int = 0
    instance_count: int = 0
    total_elements: int = 0
    occurrence_ratio: float = 1.0
    has_variable_structure: bool = False
    requires_multiple_rows: bool = False
    is_mixed: bool = False
    intra_similarity: float = 1.0
    cross_similarity: float = 1.0

    @property
    def element_width(self) -> int:
        """Unified field count of one element (1 for scalar items)."""
        if self.element_kind == ElementKind.OBJECT:
            return max(1, len(self.element_properties))
        return 1


PropertyPattern.model_rebuild()
ArrayPattern.model_rebuild()


class StructurePattern(BaseModel):
    """Result of analyzing a whole tree"""

    type: PatternType
    properties: Dict[str, PropertyPattern] = Field(default_factory=dict)
    arrays: Dict[str, ArrayPattern] = Field(default_factory=dict)
    root_array: Optional[ArrayPattern] = None
    max_depth: int = 0
    consistency_score: float = 0.0
    total_elements: int = 0
    conflicts: List[MergeConflict] = Field(default_factory=list)
