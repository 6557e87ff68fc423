"""
Notes Service - Free-text notes written about a patient.
"""

import logging
from typing import List, Optional

from ..core.errors import RecordNotFoundError
from ..core.logging_config import mask_identifier
from ..models.base import utcnow
from ..models.notes import Note, NoteUpdate
from ..storage.interface import DocumentStore

logger = logging.getLogger(__name__)

COLLECTION = "notes"


class NotesService:
    """CRUD over the "notes" collection, always scoped by patient."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def list_notes(self, patient_id: str) -> List[Note]:
        """All notes of a patient, newest first."""
        documents = await self.store.find_many(
            COLLECTION, {"createdBy": patient_id}, sort=[("date", -1)]
        )
        return [Note.model_validate(document) for document in documents]

    async def create_note(self, patient_id: str, user_id: str, content: Optional[str]) -> Note:
        note = Note(content=content or "", date=utcnow(), created_by=patient_id, added_by=user_id)
        document = await self.store.save(COLLECTION, note.to_document())

        logger.info(
            "Note saved",
            extra={"extra_fields": {"patient_id": mask_identifier(patient_id), "note_id": document["_id"]}}
        )
        return Note.model_validate(document)

    async def update_note(self, patient_id: str, note_id: str, user_id: str, update: NoteUpdate) -> Note:
        """
        Apply a partial update; the author becomes the calling user.

        Raises:
            RecordNotFoundError: No such note for this patient
        """
        document = await self.store.find_one(COLLECTION, {"_id": note_id, "createdBy": patient_id})
        if document is None:
            raise RecordNotFoundError("Note not found")

        note = Note.model_validate({
            **Note.model_validate(document).model_dump(),
            **update.model_dump(exclude_unset=True, exclude_none=True),
            "added_by": user_id,
        })
        saved = await self.store.save(COLLECTION, note.to_document())
        return Note.model_validate(saved)

    async def delete_note(self, patient_id: str, note_id: str) -> int:
        deleted = await self.store.delete_many(COLLECTION, {"_id": note_id, "createdBy": patient_id})
        logger.info(
            "Note deleted",
            extra={"extra_fields": {"patient_id": mask_identifier(patient_id), "deleted": deleted}}
        )
        return deleted
