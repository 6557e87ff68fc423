"""
Tracking Service - Record lifecycle for condition tracking.
Reads and writes tracking records through the document store and delegates
parsing, merging, statistics and insights to the pure modules beside it.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from ..core.errors import (
    EntryNotFoundError,
    InvalidEntryError,
    NoTrackingDataError,
    RecordNotFoundError,
    UnsupportedFormatError,
)
from ..core.logging_config import ContextLogger, mask_identifier
from ..models.base import ensure_utc, utcnow
from ..models.tracking import (
    ConditionType,
    Insight,
    ImportRequest,
    TrackingRecord,
    TrackingStatistics,
)
from ..storage.interface import DocumentStore
from .insights import InsightGenerator
from .tracking_merge import (
    MergeOutcome,
    add_entry,
    merge_import,
    remove_entries_in_range,
    remove_entry,
)
from .tracking_parser import parse_manual_entry, parse_tracking_data
from .tracking_stats import calculate_statistics

logger = logging.getLogger(__name__)

COLLECTION = "tracking"


class TrackingService:
    """
    One tracking record per (patient, condition type).

    Read-modify-write without version tokens: concurrent writers to the same
    record race and the last save wins.
    """

    def __init__(
        self,
        store: DocumentStore,
        insight_generator: Optional[InsightGenerator] = None,
        cache_ttl_minutes: int = 60,
    ):
        """
        Args:
            store: Document store holding the "tracking" collection
            insight_generator: Generator used on cache misses
            cache_ttl_minutes: How long stored insights are reused
        """
        self.store = store
        self.insight_generator = insight_generator or InsightGenerator()
        self.cache_ttl = timedelta(minutes=cache_ttl_minutes)

    def _log(self, patient_id: str, condition_type: Optional[ConditionType] = None) -> ContextLogger:
        context = {"patient_id": mask_identifier(patient_id)}
        if condition_type is not None:
            context["condition_type"] = condition_type.value
        return ContextLogger(logger, context)

    @staticmethod
    def _filter(patient_id: str, condition_type: ConditionType) -> dict:
        return {"patientId": patient_id, "conditionType": condition_type.value}

    async def _save(self, record: TrackingRecord) -> TrackingRecord:
        document = await self.store.save(COLLECTION, record.to_document())
        return TrackingRecord.model_validate(document)

    async def get_record(
        self,
        patient_id: str,
        condition_type: ConditionType = ConditionType.EPILEPSY,
    ) -> Optional[TrackingRecord]:
        document = await self.store.find_one(COLLECTION, self._filter(patient_id, condition_type))
        return TrackingRecord.model_validate(document) if document else None

    async def import_data(
        self,
        patient_id: str,
        request: ImportRequest,
        now: Optional[datetime] = None,
    ) -> MergeOutcome:
        """
        Parse a raw export and merge it into the patient's record.

        Raises:
            UnsupportedFormatError: rawData missing or of no known shape
        """
        if request.raw_data is None:
            raise UnsupportedFormatError("No data provided")

        parsed = parse_tracking_data(request.raw_data, request.detected_type)
        if request.condition_type is not None:
            parsed.condition_type = request.condition_type
        if request.file_name:
            parsed.metadata.original_file = request.file_name

        log = self._log(patient_id, parsed.condition_type)
        existing = await self.get_record(patient_id, parsed.condition_type)
        outcome = merge_import(existing, parsed, patient_id, now)
        outcome.record = await self._save(outcome.record)

        log.info(
            "Tracking data imported",
            extra={"extra_fields": {
                "source": parsed.metadata.source,
                "added": outcome.added,
                "skipped": outcome.skipped,
                "created": outcome.created,
                "total_entries": len(outcome.record.entries),
            }}
        )
        return outcome

    async def add_entry(
        self,
        patient_id: str,
        entry_data: Optional[dict],
        condition_type: ConditionType = ConditionType.EPILEPSY,
        now: Optional[datetime] = None,
    ) -> TrackingRecord:
        """
        Record a single manual entry, creating the record when needed.

        Raises:
            InvalidEntryError: Entry missing or without a usable date
        """
        if not entry_data:
            raise InvalidEntryError("Entry data is required")

        entry = parse_manual_entry(entry_data)
        existing = await self.get_record(patient_id, condition_type)
        record = await self._save(add_entry(existing, entry, patient_id, condition_type, now))

        self._log(patient_id, condition_type).info(
            "Manual entry added",
            extra={"extra_fields": {"entry_id": entry.id, "total_entries": len(record.entries)}}
        )
        return record

    async def generate_insights(
        self,
        patient_id: str,
        lang: str = "en",
        condition_type: ConditionType = ConditionType.EPILEPSY,
        now: Optional[datetime] = None,
    ) -> Tuple[List[Insight], bool]:
        """
        Return insights for a record, reusing stored ones while still fresh.

        Returns:
            (insights, cached)

        Raises:
            NoTrackingDataError: No record or a record without entries
        """
        record = await self.get_record(patient_id, condition_type)
        if record is None or not record.entries:
            raise NoTrackingDataError()

        now = now or utcnow()
        log = self._log(patient_id, condition_type)

        generated_at = record.insights_generated_at
        if record.insights and generated_at is not None and now - generated_at < self.cache_ttl:
            log.debug("Returning cached insights")
            return record.insights, True

        insights = await self.insight_generator.generate(record, lang, now)
        record.insights = insights
        record.insights_generated_at = now
        await self._save(record)

        log.info("Insights generated", extra={"extra_fields": {"count": len(insights), "lang": lang}})
        return insights, False

    async def get_statistics(
        self,
        patient_id: str,
        condition_type: ConditionType = ConditionType.EPILEPSY,
        now: Optional[datetime] = None,
    ) -> TrackingStatistics:
        record = await self.get_record(patient_id, condition_type)
        if record is None:
            return TrackingStatistics()
        return calculate_statistics(record.entries, now)

    async def delete_record(
        self,
        patient_id: str,
        condition_type: Optional[ConditionType] = None,
    ) -> int:
        """Delete one condition record, or every record of the patient when condition_type is None."""
        if condition_type is None:
            filter = {"patientId": patient_id}
        else:
            filter = self._filter(patient_id, condition_type)

        deleted = await self.store.delete_many(COLLECTION, filter)
        self._log(patient_id, condition_type).info(
            "Tracking data deleted", extra={"extra_fields": {"deleted": deleted}}
        )
        return deleted

    async def delete_range(
        self,
        patient_id: str,
        start: Optional[datetime],
        end: Optional[datetime],
        condition_type: ConditionType = ConditionType.EPILEPSY,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Remove entries dated within [start, end].

        Returns:
            Number of removed entries

        Raises:
            InvalidEntryError: start or end missing
            RecordNotFoundError: No record for the pair
        """
        if start is None or end is None:
            raise InvalidEntryError("startDate and endDate are required")

        record = await self.get_record(patient_id, condition_type)
        if record is None:
            raise RecordNotFoundError()

        removed = remove_entries_in_range(record, ensure_utc(start), ensure_utc(end), now)
        await self._save(record)

        self._log(patient_id, condition_type).info(
            "Entries deleted by date range",
            extra={"extra_fields": {"deleted": removed, "remaining": len(record.entries)}}
        )
        return removed

    async def delete_entry(
        self,
        patient_id: str,
        entry_id: str,
        condition_type: ConditionType = ConditionType.EPILEPSY,
        now: Optional[datetime] = None,
    ) -> TrackingRecord:
        """
        Raises:
            RecordNotFoundError: No record for the pair
            EntryNotFoundError: No entry with that id
        """
        record = await self.get_record(patient_id, condition_type)
        if record is None:
            raise RecordNotFoundError()
        if not remove_entry(record, entry_id, now):
            raise EntryNotFoundError()

        self._log(patient_id, condition_type).info(
            "Entry deleted", extra={"extra_fields": {"entry_id": entry_id}}
        )
        return await self._save(record)
