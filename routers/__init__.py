"""
API Routers Package
"""

from .sessions import router as sessions_router
from .rest_timer import router as rest_timer_router
from .analytics import router as analytics_router
from .predictions import router as predictions_router

__all__ = ['sessions_router', 'rest_timer_router', 'analytics_router', 'predictions_router']
