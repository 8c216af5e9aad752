"""
Routers package for Reports module
"""

from .financial import router as financial_router

__all__ = [
    "financial_router"
]
