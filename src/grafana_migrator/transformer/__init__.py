"""Entity transformation rules."""

from .transformer import entity_uid, transform

__all__ = ["entity_uid", "transform"]
