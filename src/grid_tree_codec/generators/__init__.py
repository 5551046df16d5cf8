from .grid_materializer import GridMaterializer

__all__ = ["GridMaterializer"]
