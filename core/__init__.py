"""
Core package: configuration, failure taxonomy, request dependencies and middleware.
Kept apart from routes and services so the app can be assembled with any store.
"""

from core.config import get_settings

__all__ = ["get_settings"]
