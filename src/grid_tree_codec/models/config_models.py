from pydantic import BaseModel, Field


class SchemaOptimizationLimits(BaseModel):
    element_count: int = 10
    property_count: int = 20
    depth: int = 4


class ElementMergeLimits(BaseModel):
    max_size: int = 8
    property_count: int = 5


class PerIndexLimits(BaseModel):
    """When to give every array slot its own field set"""

    similarity_margin: float = Field(
        default=0.2,
        description="Cross-instance similarity must beat intra-instance similarity by this much",
    )
    max_slots: int = 8
    min_instances: int = 2


class LayoutThresholds(BaseModel):
    """Empirically tuned thresholds driving analysis and layout"""

    required_ratio: float = 0.8
    simple_max_depth: int = 2
    large_array_width: int = 3
    large_array_element_count: int = 5
    variable_depth_ratio: float = 1.0
    optional_nesting_ratio: float = 1.0
    multiple_rows_max_size: int = 5
    merge_key_unique_ratio: float = 0.5
    co_occurrence_threshold: float = 0.7
    skip_private_keys: bool = False
    vertical_gather_groups: bool = False
    schema_optimization: SchemaOptimizationLimits = Field(
        default_factory=SchemaOptimizationLimits
    )
    merge_elements: ElementMergeLimits = Field(default_factory=ElementMergeLimits)
    per_index: PerIndexLimits = Field(default_factory=PerIndexLimits)


class GridLimits(BaseModel):
    """Largest grid the materializer may produce"""

    max_columns: int = 16384
    max_rows: int = 1048576


class CodecConfig(BaseModel):
    layout_thresholds: LayoutThresholds = Field(default_factory=LayoutThresholds)
    grid_limits: GridLimits = Field(default_factory=GridLimits)
