"""
Payments Domain

Maps payment provider outcomes onto booking payment state.
"""

from .router import router

__all__ = ["router"]
