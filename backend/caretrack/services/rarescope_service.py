"""
Rarescope Service - Needs questionnaire answers, one record per (patient, role).

Clinicians and patients keep separate lists for the same patient, so the role
is part of the record key. A missing or empty role is a key of its own.
"""

import logging
import math
from typing import Any, List, Optional, Tuple

from ..core.errors import InvalidEntryError, RecordNotFoundError
from ..core.logging_config import mask_identifier
from ..models.base import utcnow
from ..models.rarescope import Pagination, RarescopeRecord, RarescopeSave
from ..storage.interface import DocumentStore

logger = logging.getLogger(__name__)

COLLECTION = "rarescope"


def _role_key(role: Any) -> Optional[str]:
    """Record key for a role; None and "" both mean "no role"."""
    if role is None or role == "":
        return None
    return str(role)


class RarescopeService:

    def __init__(self, store: DocumentStore):
        self.store = store

    async def load(self, patient_id: str, role: Any = None) -> Optional[RarescopeRecord]:
        document = await self.store.find_one(
            COLLECTION, {"patientId": patient_id, "role": _role_key(role)}
        )
        return RarescopeRecord.model_validate(document) if document else None

    async def save(self, patient_id: str, data: RarescopeSave) -> RarescopeRecord:
        """
        Upsert the record for (patient, role).

        A non-empty main need replaces the stored one; a provided list of
        additional needs replaces the stored list.

        Raises:
            InvalidEntryError: Neither a main need nor any additional need
        """
        if not data.main_need and not data.additional_needs:
            raise InvalidEntryError("At least one main need or additional need is required")

        role = _role_key(data.role)
        now = utcnow()
        record = await self.load(patient_id, role)

        if record is None:
            record = RarescopeRecord(
                patient_id=patient_id,
                main_need=data.main_need or "",
                additional_needs=data.additional_needs or [],
                role=role,
                created_at=now,
                updated_at=now,
            )
        else:
            if data.main_need:
                record.main_need = data.main_need
            if data.additional_needs is not None:
                record.additional_needs = data.additional_needs
            record.updated_at = now

        document = await self.store.save(COLLECTION, record.to_document())
        logger.info(
            "Rarescope data saved",
            extra={"extra_fields": {"patient_id": mask_identifier(patient_id), "role": role}}
        )
        return RarescopeRecord.model_validate(document)

    async def history(
        self,
        patient_id: str,
        limit: int = 10,
        page: int = 1,
    ) -> Tuple[List[RarescopeRecord], Pagination]:
        """Records of a patient, most recently updated first."""
        filter = {"patientId": patient_id}
        documents = await self.store.find_many(
            COLLECTION, filter, sort=[("updatedAt", -1)], skip=(page - 1) * limit, limit=limit
        )
        total = await self.store.count(COLLECTION, filter)

        pagination = Pagination(
            current_page=page,
            total_pages=math.ceil(total / limit),
            total_records=total,
            limit=limit,
        )
        return [RarescopeRecord.model_validate(d) for d in documents], pagination

    async def delete_all(self, patient_id: str) -> int:
        """
        Raises:
            RecordNotFoundError: The patient had no records
        """
        deleted = await self.store.delete_many(COLLECTION, {"patientId": patient_id})
        if deleted == 0:
            raise RecordNotFoundError("No Rarescope data found to delete")
        return deleted
