"""
API Routes Module
"""
from .health import router as health_router
from .bought_together import router as bought_together_router

__all__ = [
    "health_router",
    "bought_together_router",
]
