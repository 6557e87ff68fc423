"""Models module."""

from .tracking import (
    ConditionType, GeoPoint, PostictalState, SeizureDetails, TrackingEntry,
    Medication, ImportMetadata, Insight, ParsedTracking, TrackingRecord,
    TrackingStatistics, ImportRequest, EntryRequest, InsightsRequest, DeleteRangeRequest,
)
from .notes import Note, NoteCreate, NoteUpdate
from .messages import MessageThread, MessagesSave
from .rarescope import RarescopeRecord, RarescopeSave, Pagination

__all__ = [
    'ConditionType', 'GeoPoint', 'PostictalState', 'SeizureDetails', 'TrackingEntry',
    'Medication', 'ImportMetadata', 'Insight', 'ParsedTracking', 'TrackingRecord',
    'TrackingStatistics', 'ImportRequest', 'EntryRequest', 'InsightsRequest',
    'DeleteRangeRequest',
    'Note', 'NoteCreate', 'NoteUpdate',
    'MessageThread', 'MessagesSave',
    'RarescopeRecord', 'RarescopeSave', 'Pagination',
]
