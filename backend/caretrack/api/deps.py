"""
Shared FastAPI dependencies.

The document store and insight generator are created once in the application
lifespan and live on app.state; services are cheap wrappers built per request.
Identifier tokens from the URL are decrypted here so services only ever see
internal ids.
"""

from fastapi import Request

from ..config import settings
from ..services import (
    MessagesService,
    NotesService,
    RarescopeService,
    TrackingService,
)
from ..storage.interface import DocumentStore
from ..utils.crypt import decrypt


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_tracking_service(request: Request) -> TrackingService:
    return TrackingService(
        get_store(request),
        request.app.state.insight_generator,
        cache_ttl_minutes=settings.insights_cache_ttl_minutes,
    )


def get_notes_service(request: Request) -> NotesService:
    return NotesService(get_store(request))


def get_messages_service(request: Request) -> MessagesService:
    return MessagesService(get_store(request))


def get_rarescope_service(request: Request) -> RarescopeService:
    return RarescopeService(get_store(request))


def decrypted_patient_id(patient_id: str) -> str:
    return decrypt(patient_id)


def decrypted_user_id(user_id: str) -> str:
    return decrypt(user_id)


def decrypted_note_id(note_id: str) -> str:
    return decrypt(note_id)
