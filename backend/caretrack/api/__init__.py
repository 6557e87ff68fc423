"""API module."""

from .tracking import router as tracking_router
from .notes import router as notes_router
from .messages import router as messages_router
from .rarescope import router as rarescope_router

__all__ = ['tracking_router', 'notes_router', 'messages_router', 'rarescope_router']
