"""
Notes API endpoints.
"""

from fastapi import APIRouter, Depends

from ..models.notes import NoteCreate, NoteUpdate
from ..services import NotesService
from ..utils.auth import get_current_user_id
from ..utils.crypt import encrypt
from .deps import decrypted_note_id, decrypted_patient_id, decrypted_user_id, get_notes_service

router = APIRouter(
    prefix="/notes",
    tags=["notes"],
    dependencies=[Depends(get_current_user_id)],
)


@router.get("/{patient_id}")
async def get_notes(
    patient: str = Depends(decrypted_patient_id),
    service: NotesService = Depends(get_notes_service),
):
    """Notes of a patient with their ids re-encrypted; author fields are not exposed."""
    notes = await service.list_notes(patient)
    return {
        "notes": [
            {**note.model_dump(mode="json", by_alias=True, exclude={"created_by", "added_by"}),
             "_id": encrypt(note.id)}
            for note in notes
        ]
    }


@router.post("/{patient_id}/{user_id}")
async def save_note(
    body: NoteCreate,
    patient: str = Depends(decrypted_patient_id),
    user: str = Depends(decrypted_user_id),
    service: NotesService = Depends(get_notes_service),
):
    note = await service.create_note(patient, user, body.content)
    return {"message": "Notes saved", "noteId": encrypt(note.id)}


@router.put("/{patient_id}/{note_id}/{user_id}")
async def update_note(
    body: NoteUpdate,
    patient: str = Depends(decrypted_patient_id),
    note: str = Depends(decrypted_note_id),
    user: str = Depends(decrypted_user_id),
    service: NotesService = Depends(get_notes_service),
):
    await service.update_note(patient, note, user, body)
    return {"message": "Note updated"}


@router.delete("/{patient_id}/{note_id}")
async def delete_note(
    patient: str = Depends(decrypted_patient_id),
    note: str = Depends(decrypted_note_id),
    service: NotesService = Depends(get_notes_service),
):
    await service.delete_note(patient, note)
    return {"message": "The note has been eliminated"}
