"""
API v1 - versioned router
"""

from .endpoints import router

__all__ = ["router"]
