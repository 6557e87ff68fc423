"""
Tracking API endpoints - Import, manual entries, statistics and insights.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..models.tracking import (
    ConditionType,
    DeleteRangeRequest,
    EntryRequest,
    ImportRequest,
    InsightsRequest,
)
from ..services import TrackingService
from ..utils.auth import get_current_user_id
from .deps import decrypted_patient_id, get_tracking_service

router = APIRouter(
    prefix="/tracking",
    tags=["tracking"],
    dependencies=[Depends(get_current_user_id)],
)

CONDITION_QUERY = Query(ConditionType.EPILEPSY, alias="conditionType")


@router.get("/{patient_id}/data")
async def get_tracking_data(
    patient: str = Depends(decrypted_patient_id),
    condition_type: ConditionType = CONDITION_QUERY,
    service: TrackingService = Depends(get_tracking_service),
):
    """Stored record for the patient and condition, or null."""
    record = await service.get_record(patient, condition_type)
    return {"success": True, "data": record.to_wire() if record else None}


@router.post("/{patient_id}/import")
async def import_tracking_data(
    body: ImportRequest,
    patient: str = Depends(decrypted_patient_id),
    service: TrackingService = Depends(get_tracking_service),
):
    """
    Import a SeizureTracker export or a generic JSON document.

    Entries already stored with the same timestamp are skipped.
    """
    outcome = await service.import_data(patient, body)
    return {
        "success": True,
        "message": "Data imported successfully",
        "data": outcome.record.to_wire(),
        "added": outcome.added,
        "skipped": outcome.skipped,
    }


@router.post("/{patient_id}/entry")
async def add_tracking_entry(
    body: EntryRequest,
    patient: str = Depends(decrypted_patient_id),
    service: TrackingService = Depends(get_tracking_service),
):
    record = await service.add_entry(patient, body.entry, body.condition_type)
    return {"success": True, "message": "Entry saved successfully", "data": record.to_wire()}


@router.post("/{patient_id}/insights")
async def generate_insights(
    body: InsightsRequest,
    patient: str = Depends(decrypted_patient_id),
    service: TrackingService = Depends(get_tracking_service),
):
    """
    Insights for the record. Reused while younger than the cache TTL;
    `cached` tells the client which happened.
    """
    insights, cached = await service.generate_insights(patient, body.lang, body.condition_type)
    return {
        "success": True,
        "insights": [insight.to_wire() for insight in insights],
        "cached": cached,
    }


@router.get("/{patient_id}/stats")
async def get_statistics(
    patient: str = Depends(decrypted_patient_id),
    condition_type: ConditionType = CONDITION_QUERY,
    service: TrackingService = Depends(get_tracking_service),
):
    stats = await service.get_statistics(patient, condition_type)
    return {"success": True, "stats": stats.to_wire()}


@router.delete("/{patient_id}")
async def delete_tracking_data(
    patient: str = Depends(decrypted_patient_id),
    condition_type: Optional[ConditionType] = Query(None, alias="conditionType"),
    service: TrackingService = Depends(get_tracking_service),
):
    """Delete one condition's record, or all of the patient's records when no conditionType is given."""
    deleted = await service.delete_record(patient, condition_type)
    return {"success": True, "message": "Tracking data deleted successfully", "deletedCount": deleted}


@router.post("/{patient_id}/delete-range")
async def delete_entries_in_range(
    body: DeleteRangeRequest,
    patient: str = Depends(decrypted_patient_id),
    service: TrackingService = Depends(get_tracking_service),
):
    deleted = await service.delete_range(patient, body.start_date, body.end_date, body.condition_type)
    return {
        "success": True,
        "message": f"{deleted} entries deleted",
        "deletedCount": deleted,
    }


@router.delete("/{patient_id}/entry/{entry_id}")
async def delete_tracking_entry(
    entry_id: str,
    patient: str = Depends(decrypted_patient_id),
    condition_type: ConditionType = CONDITION_QUERY,
    service: TrackingService = Depends(get_tracking_service),
):
    record = await service.delete_entry(patient, entry_id, condition_type)
    return {"success": True, "message": "Entry deleted successfully", "data": record.to_wire()}
