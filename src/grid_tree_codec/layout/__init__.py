# Layout building blocks shared by the planners

from .strategy_selector import LayoutStrategySelector
from .property_orderer import PropertyOrderer
from .horizontal_expander import HorizontalExpander
from .vertical_nester import VerticalNester
from .data_row_mapper import DataRowMapper

__all__ = [
    "LayoutStrategySelector",
    "PropertyOrderer",
    "HorizontalExpander",
    "VerticalNester",
    "DataRowMapper",
]
