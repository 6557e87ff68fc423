"""
Messages API endpoints - Saved assistant conversations per (user, patient).
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ..models.messages import MessagesSave
from ..services import MessagesService
from ..utils.auth import get_current_user_id
from .deps import decrypted_patient_id, decrypted_user_id, get_messages_service

router = APIRouter(
    prefix="/messages",
    tags=["messages"],
    dependencies=[Depends(get_current_user_id)],
)


@router.get("/{user_id}/{patient_id}")
async def get_messages(
    user: str = Depends(decrypted_user_id),
    patient: str = Depends(decrypted_patient_id),
    service: MessagesService = Depends(get_messages_service),
):
    thread = await service.get_thread(patient, user)
    if thread is None:
        return JSONResponse(status_code=status.HTTP_202_ACCEPTED, content={"message": "There are no messages"})
    return {"messages": thread.messages, "lastSuggestions": thread.last_suggestions}


@router.post("/{user_id}/{patient_id}")
async def save_messages(
    body: MessagesSave,
    user: str = Depends(decrypted_user_id),
    patient: str = Depends(decrypted_patient_id),
    service: MessagesService = Depends(get_messages_service),
):
    created = await service.save_thread(patient, user, body.messages, body.last_suggestions)
    return {"message": "Messages saved" if created else "Messages updated"}


@router.delete("/{user_id}/{patient_id}")
async def delete_messages(
    user: str = Depends(decrypted_user_id),
    patient: str = Depends(decrypted_patient_id),
    service: MessagesService = Depends(get_messages_service),
):
    if not await service.delete_thread(patient, user):
        return JSONResponse(status_code=status.HTTP_202_ACCEPTED, content={"message": "The messages do not exist"})
    return {"message": "The messages have been eliminated"}
