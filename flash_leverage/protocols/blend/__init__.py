from .adapter import BlendPoolAdapter

__all__ = ["BlendPoolAdapter"]
