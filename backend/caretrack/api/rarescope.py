"""
Rarescope API endpoints - Needs questionnaire per (patient, role).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..models.rarescope import RarescopeSave
from ..services import RarescopeService
from ..utils.auth import get_current_user_id
from .deps import decrypted_patient_id, get_rarescope_service

router = APIRouter(
    prefix="/rarescope",
    tags=["rarescope"],
    dependencies=[Depends(get_current_user_id)],
)


@router.post("/save/{patient_id}")
async def save_rarescope_data(
    body: RarescopeSave,
    patient: str = Depends(decrypted_patient_id),
    service: RarescopeService = Depends(get_rarescope_service),
):
    record = await service.save(patient, body)
    return {"success": True, "message": "Rarescope data saved", "data": record.to_wire()}


@router.get("/load/{patient_id}")
async def load_rarescope_data(
    patient: str = Depends(decrypted_patient_id),
    role: Optional[str] = Query(None),
    service: RarescopeService = Depends(get_rarescope_service),
):
    record = await service.load(patient, role)
    if record is None:
        return {"success": True, "message": "No Rarescope data for this patient and role", "data": None}
    return {"success": True, "message": "Rarescope data loaded", "data": record.to_wire()}


@router.get("/history/{patient_id}")
async def get_rarescope_history(
    patient: str = Depends(decrypted_patient_id),
    limit: int = Query(10, ge=1),
    page: int = Query(1, ge=1),
    service: RarescopeService = Depends(get_rarescope_service),
):
    history, pagination = await service.history(patient, limit=limit, page=page)
    return {
        "success": True,
        "data": {
            "history": [record.to_wire() for record in history],
            "pagination": pagination.to_wire(),
        },
    }


@router.delete("/delete/{patient_id}")
async def delete_rarescope_data(
    patient: str = Depends(decrypted_patient_id),
    service: RarescopeService = Depends(get_rarescope_service),
):
    deleted = await service.delete_all(patient)
    return {"success": True, "message": f"{deleted} Rarescope records deleted"}
