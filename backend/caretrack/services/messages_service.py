"""
Messages Service - One saved chat conversation per (patient, user).
"""

import logging
from typing import Any, List, Optional

from ..core.logging_config import mask_identifier
from ..models.base import utcnow
from ..models.messages import MessageThread
from ..storage.interface import DocumentStore

logger = logging.getLogger(__name__)

COLLECTION = "messages"


class MessagesService:

    def __init__(self, store: DocumentStore):
        self.store = store

    @staticmethod
    def _filter(patient_id: str, user_id: str) -> dict:
        return {"createdBy": patient_id, "userId": user_id}

    async def get_thread(self, patient_id: str, user_id: str) -> Optional[MessageThread]:
        document = await self.store.find_one(COLLECTION, self._filter(patient_id, user_id))
        return MessageThread.model_validate(document) if document else None

    async def save_thread(
        self,
        patient_id: str,
        user_id: str,
        messages: List[Any],
        last_suggestions: Optional[List[str]] = None,
    ) -> bool:
        """
        Replace the stored conversation, creating it on first save.

        Returns:
            bool: True when a new thread was created
        """
        thread = await self.get_thread(patient_id, user_id)
        created = thread is None
        if created:
            thread = MessageThread(created_by=patient_id, user_id=user_id)

        thread.messages = messages
        thread.date = utcnow()
        if last_suggestions is not None:
            thread.last_suggestions = last_suggestions

        await self.store.save(COLLECTION, thread.to_document())
        logger.info(
            "Messages saved",
            extra={"extra_fields": {
                "patient_id": mask_identifier(patient_id),
                "count": len(messages),
                "created": created,
            }}
        )
        return created

    async def delete_thread(self, patient_id: str, user_id: str) -> bool:
        """Returns False when there was nothing to delete."""
        return await self.store.delete_many(COLLECTION, self._filter(patient_id, user_id)) > 0
