from .adapter import SoroswapAdapter

__all__ = ["SoroswapAdapter"]
