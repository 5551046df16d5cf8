from .structure_analyzer import StructureAnalyzer

__all__ = ["StructureAnalyzer"]
