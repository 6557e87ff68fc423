"""Services module - tracking engine and record services."""

from .insights import InsightGenerator
from .tracking_service import TrackingService
from .notes_service import NotesService
from .messages_service import MessagesService
from .rarescope_service import RarescopeService

__all__ = [
    'InsightGenerator',
    'TrackingService',
    'NotesService',
    'MessagesService',
    'RarescopeService',
]
