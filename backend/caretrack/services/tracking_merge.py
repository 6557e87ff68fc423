"""
Merge engine for tracking records.

Every function here returns a record whose entries are sorted newest first.
Imported entries are deduplicated by their exact millisecond timestamp: two
distinct events recorded in the same millisecond collide and only the stored
one is kept.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from ..models.base import utcnow
from ..models.tracking import (
    ConditionType,
    ImportMetadata,
    ParsedTracking,
    TrackingEntry,
    TrackingRecord,
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


@dataclass
class MergeOutcome:
    """Result of merging an import into a patient's record."""
    record: TrackingRecord
    added: int
    skipped: int
    created: bool = False


def timestamp_key(entry: TrackingEntry) -> int:
    """Exact millisecond timestamp of an entry's date."""
    return (entry.date - _EPOCH) // _MILLISECOND


def sort_entries(entries: Iterable[TrackingEntry]) -> List[TrackingEntry]:
    return sorted(entries, key=lambda e: e.date, reverse=True)


def _without_duplicates(entries: Iterable[TrackingEntry], seen: set) -> List[TrackingEntry]:
    kept = []
    for entry in entries:
        key = timestamp_key(entry)
        if key in seen:
            continue
        seen.add(key)
        kept.append(entry)
    return kept


def merge_import(
    existing: Optional[TrackingRecord],
    parsed: ParsedTracking,
    patient_id: str,
    now: Optional[datetime] = None,
) -> MergeOutcome:
    """
    Merge freshly parsed data into the stored record for the same condition.

    Args:
        existing: Stored record, or None for a first import
        parsed: Parser output
        patient_id: Internal patient id
        now: Clock override for tests

    Returns:
        MergeOutcome with the record to persist
    """
    now = now or utcnow()

    if existing is None:
        entries = _without_duplicates(parsed.entries, set())
        record = TrackingRecord(
            patient_id=patient_id,
            condition_type=parsed.condition_type,
            entries=sort_entries(entries),
            medications=parsed.medications,
            metadata=parsed.metadata,
            created_at=now,
            updated_at=now,
        )
        return MergeOutcome(
            record=record,
            added=len(entries),
            skipped=len(parsed.entries) - len(entries),
            created=True,
        )

    seen = {timestamp_key(entry) for entry in existing.entries}
    new_entries = _without_duplicates(parsed.entries, seen)

    record = existing.model_copy(deep=True)
    record.entries = sort_entries([*record.entries, *new_entries])

    # Medications are a snapshot of the current regimen, not a history
    if parsed.medications:
        record.medications = parsed.medications

    record.metadata = ImportMetadata(**{
        **record.metadata.model_dump(),
        **parsed.metadata.model_dump(exclude_unset=True),
        "import_date": now,
    })
    record.updated_at = now

    return MergeOutcome(
        record=record,
        added=len(new_entries),
        skipped=len(parsed.entries) - len(new_entries),
    )


def add_entry(
    existing: Optional[TrackingRecord],
    entry: TrackingEntry,
    patient_id: str,
    condition_type: ConditionType,
    now: Optional[datetime] = None,
) -> TrackingRecord:
    """Insert a manually recorded entry, creating the record on first use."""
    now = now or utcnow()

    if existing is None:
        record = TrackingRecord(
            patient_id=patient_id,
            condition_type=condition_type,
            metadata=ImportMetadata(source="manual", import_date=now),
            created_at=now,
        )
    else:
        record = existing.model_copy(deep=True)

    record.entries = sort_entries([entry, *record.entries])
    record.updated_at = now
    return record


def remove_entries_in_range(
    record: TrackingRecord,
    start: datetime,
    end: datetime,
    now: Optional[datetime] = None,
) -> int:
    """Remove entries with start <= date <= end in place. Returns the number removed."""
    original_count = len(record.entries)
    record.entries = [e for e in record.entries if e.date < start or e.date > end]
    record.updated_at = now or utcnow()
    return original_count - len(record.entries)


def remove_entry(record: TrackingRecord, entry_id: str, now: Optional[datetime] = None) -> bool:
    """Remove a single entry by id in place. Returns False when no entry matched."""
    remaining = [e for e in record.entries if e.id != entry_id]
    if len(remaining) == len(record.entries):
        return False
    record.entries = remaining
    record.updated_at = now or utcnow()
    return True
