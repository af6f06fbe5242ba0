"""
BreachWatch - API Module

FastAPI routers for the breach engine.
"""

from breachwatch.api.routes import categories_router, router

__all__ = ["router", "categories_router"]
