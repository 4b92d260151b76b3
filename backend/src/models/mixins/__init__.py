"""
Model mixins shared by the roster entities.
"""

from backend.src.models.mixins.guid import GuidMixin, UUIDType

__all__ = ["GuidMixin", "UUIDType"]
