"""
Route modules. Import and include in main app.
"""

from api.routes.accessibility import router as accessibility_router
from api.routes.health import router as health_router

__all__ = ["accessibility_router", "health_router"]
