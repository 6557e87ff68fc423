"""
Unit tests for the merge engine.
"""

from datetime import datetime, timedelta, timezone

from caretrack.models.tracking import (
    ConditionType,
    ImportMetadata,
    Medication,
    ParsedTracking,
    TrackingEntry,
)
from caretrack.services.tracking_merge import (
    add_entry,
    merge_import,
    remove_entries_in_range,
    remove_entry,
    timestamp_key,
)
from caretrack.services.tracking_parser import parse_tracking_data


def entry(day, hour=10, **kwargs):
    return TrackingEntry(date=datetime(2024, 1, day, hour, tzinfo=timezone.utc), **kwargs)


def parsed(*entries, **kwargs):
    return ParsedTracking(condition_type=ConditionType.EPILEPSY, entries=list(entries), **kwargs)


def assert_sorted_desc(record):
    dates = [e.date for e in record.entries]
    assert dates == sorted(dates, reverse=True)


class TestMergeImport:

    def test_fresh_import_creates_record(self, now):
        outcome = merge_import(None, parsed(entry(1), entry(3)), "patient-1", now)

        assert outcome.created is True
        assert outcome.added == 2
        assert outcome.record.patient_id == "patient-1"
        assert outcome.record.created_at == now
        assert_sorted_desc(outcome.record)

    def test_reimport_is_idempotent(self, now):
        raw = {"Seizures": [
            {"Date_Time": "2024-01-15T14:30:00Z", "length_min": 1},
            {"Date_Time": "2024-01-20T08:00:00Z", "length_min": 2},
        ]}
        first = merge_import(None, parse_tracking_data(raw), "patient-1", now)
        second = merge_import(first.record, parse_tracking_data(raw), "patient-1", now)

        assert len(second.record.entries) == 2
        assert second.added == 0
        assert second.skipped == 2

    def test_new_entries_are_merged_sorted(self, now):
        existing = merge_import(None, parsed(entry(1), entry(10)), "patient-1", now).record
        outcome = merge_import(existing, parsed(entry(5), entry(10)), "patient-1", now)

        assert outcome.added == 1
        assert outcome.skipped == 1
        assert [e.date.day for e in outcome.record.entries] == [10, 5, 1]

    def test_duplicates_within_one_batch(self, now):
        outcome = merge_import(None, parsed(entry(1), entry(1)), "patient-1", now)
        assert outcome.added == 1
        assert outcome.skipped == 1

    def test_millisecond_precision(self, now):
        base = entry(1)
        later = TrackingEntry(date=base.date + timedelta(milliseconds=1))
        assert timestamp_key(base) != timestamp_key(later)

        outcome = merge_import(None, parsed(base, later), "patient-1", now)
        assert outcome.added == 2

    def test_medications_replaced_only_when_provided(self, now):
        existing = merge_import(
            None, parsed(entry(1), medications=[Medication(name="Lamotrigine")]), "patient-1", now
        ).record

        kept = merge_import(existing, parsed(entry(2)), "patient-1", now).record
        assert [m.name for m in kept.medications] == ["Lamotrigine"]

        replaced = merge_import(
            existing, parsed(entry(2), medications=[Medication(name="Valproate")]), "patient-1", now
        ).record
        assert [m.name for m in replaced.medications] == ["Valproate"]

    def test_metadata_merge(self, now):
        existing = merge_import(
            None,
            parsed(entry(1), metadata=ImportMetadata(source="seizuretracker", patient_name="Ana")),
            "patient-1",
            now,
        ).record
        later = now + timedelta(days=1)
        merged = merge_import(
            existing, parsed(metadata=ImportMetadata(original_file="export.json")), "patient-1", later
        ).record

        assert merged.metadata.source == "seizuretracker"
        assert merged.metadata.patient_name == "Ana"
        assert merged.metadata.original_file == "export.json"
        assert merged.metadata.import_date == later
        assert merged.updated_at == later
        assert merged.created_at == now

    def test_existing_record_is_not_mutated(self, now):
        existing = merge_import(None, parsed(entry(1)), "patient-1", now).record
        merge_import(existing, parsed(entry(2)), "patient-1", now)
        assert len(existing.entries) == 1


class TestManualEntries:

    def test_creates_manual_record(self, now):
        record = add_entry(None, entry(1), "patient-1", ConditionType.MIGRAINE, now)
        assert record.condition_type == ConditionType.MIGRAINE
        assert record.metadata.source == "manual"
        assert len(record.entries) == 1

    def test_inserted_in_date_order(self, now):
        record = merge_import(None, parsed(entry(1), entry(20)), "patient-1", now).record
        record = add_entry(record, entry(10), "patient-1", ConditionType.EPILEPSY, now)
        assert [e.date.day for e in record.entries] == [20, 10, 1]


class TestRemoval:

    def test_range_is_inclusive(self, now):
        record = merge_import(None, parsed(entry(1), entry(5), entry(10), entry(15)), "patient-1", now).record

        removed = remove_entries_in_range(record, entry(5).date, entry(10).date, now)

        assert removed == 2
        assert [e.date.day for e in record.entries] == [15, 1]

    def test_remove_single_entry(self, now):
        target = entry(5)
        record = merge_import(None, parsed(entry(1), target), "patient-1", now).record

        assert remove_entry(record, target.id, now) is True
        assert remove_entry(record, target.id, now) is False
        assert len(record.entries) == 1
