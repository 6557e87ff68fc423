"""
Unit tests for the tracking import parser.
"""

from datetime import datetime, timezone

import pytest

from caretrack.core.errors import InvalidEntryError, UnsupportedFormatError
from caretrack.models.tracking import ConditionType
from caretrack.services.tracking_parser import (
    parse_date,
    parse_manual_entry,
    parse_tracking_data,
    seizure_duration_seconds,
    seizure_triggers,
)


def seizure_export(**overrides):
    seizure = {
        "Date_Time": "2024-01-15T14:30:00Z",
        "type": "Tonic-clonic",
        "length_hr": 0,
        "length_min": 2,
        "length_sec": 30,
        "triggerstress": True,
        "triggertired": "false",
        "descriptaura": 1,
        "descriptnotes": "After dinner",
        "EventLocationLAT": "40.4",
        "EventLocationLNG": "-3.7",
    }
    seizure.update(overrides)
    return {
        "Info": [{
            "First Name": "Ana",
            "Last Name": "García",
            "Download version": "3.2",
            "Download date": "2024-02-01T09:00:00Z",
        }],
        "Seizures": [seizure],
        "Medications": [
            {"Medication": "Levetiracetam", "Total Daily Dose": "1000", "Units": "",
             "Side Effects": "Dizziness, Not Visited, Fatigue"},
            {"Medication": "", "Total Daily Dose": "50"},
        ],
    }


class TestParseDate:

    def test_iso_string_with_zone(self):
        assert parse_date("2024-01-01T10:00:00Z") == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)

    def test_epoch_milliseconds(self):
        assert parse_date(1704103200000) == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)

    def test_free_form_string(self):
        assert parse_date("Jan 1 2024 10:00 UTC") == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "not a date", True, {}])
    def test_invalid_values(self, value):
        assert parse_date(value) is None


class TestSeizureTracker:

    def test_duration_from_parts(self):
        assert seizure_duration_seconds({"length_hr": 0, "length_min": 2, "length_sec": 30}) == 150
        assert seizure_duration_seconds({"length_hr": "1", "length_min": None}) == 3600

    def test_trigger_flags(self):
        triggers = seizure_triggers({
            "triggerstress": True,
            "triggertired": "false",
            "triggersick": "1",
            "triggerother": True,
            "triggerothervalue": "Loud music",
        })
        assert triggers == ["Stress", "Illness", "Loud music"]

    def test_export_is_normalized(self):
        parsed = parse_tracking_data(seizure_export())

        assert parsed.condition_type == ConditionType.EPILEPSY
        assert parsed.metadata.source == "seizuretracker"
        assert parsed.metadata.patient_name == "Ana García"
        assert parsed.metadata.download_version == "3.2"
        assert parsed.metadata.import_date == datetime(2024, 2, 1, 9, tzinfo=timezone.utc)

        [entry] = parsed.entries
        assert entry.type == "Tonic-clonic"
        assert entry.duration == 150
        assert entry.triggers == ["Stress"]
        assert entry.notes == "After dinner"
        assert entry.seizure.aura is True
        assert entry.seizure.location.lat == 40.4
        assert entry.seizure.location.lng == -3.7

    def test_medications(self):
        parsed = parse_tracking_data(seizure_export())

        [medication] = parsed.medications
        assert medication.name == "Levetiracetam"
        assert medication.dose_value == 1000
        assert medication.dose_unit == "mg"
        assert medication.side_effects == ["Dizziness", "Fatigue"]

    def test_defaults_and_missing_location(self):
        parsed = parse_tracking_data(seizure_export(type=None, EventLocationLNG=None, descriptnotes="",
                                                    triggernotes="Missed dose"))
        [entry] = parsed.entries
        assert entry.type == "Unknown"
        assert entry.notes == "Missed dose"
        assert entry.seizure.location is None

    def test_seizure_without_date_is_dropped(self):
        raw = seizure_export()
        raw["Seizures"].append({"Date_Time": "garbage", "type": "Absence"})
        parsed = parse_tracking_data(raw)
        assert len(parsed.entries) == 1

    def test_non_finite_length_counts_as_missing(self):
        raw = seizure_export()
        raw["Seizures"][0].update({"length_hr": 0, "length_min": float("inf"), "length_sec": 30})

        [entry] = parse_tracking_data(raw).entries
        assert entry.duration == 30


class TestGenericFormat:

    def test_single_entry(self):
        parsed = parse_tracking_data({"entries": [{"date": "2024-01-01T10:00:00Z", "type": "seizure"}]})

        [entry] = parsed.entries
        assert entry.type == "seizure"
        assert entry.duration is None
        assert parsed.metadata.source == "generic"
        assert parsed.condition_type == ConditionType.EPILEPSY

    def test_condition_type_resolution(self):
        assert parse_tracking_data({"entries": [], "conditionType": "migraine"}, "diabetes").condition_type \
            == ConditionType.MIGRAINE
        assert parse_tracking_data({"entries": []}, "diabetes").condition_type == ConditionType.DIABETES
        assert parse_tracking_data({"entries": []}, "unknown").condition_type == ConditionType.EPILEPSY
        assert parse_tracking_data({"entries": []}, "custom").condition_type == ConditionType.CUSTOM

    def test_bare_list(self):
        parsed = parse_tracking_data([{"date": "2024-03-01", "value": "142"}], "diabetes")
        assert parsed.condition_type == ConditionType.DIABETES
        assert parsed.entries[0].value == 142.0

    def test_malformed_entries_are_dropped(self):
        parsed = parse_tracking_data({"entries": [
            {"date": "2024-01-01T10:00:00Z"},
            {"type": "no date"},
            "not an object",
            {"date": "not-a-date"},
        ]})
        assert len(parsed.entries) == 1

    @pytest.mark.parametrize("number", [float("inf"), float("-inf"), float("nan"), 10 ** 400])
    def test_non_finite_numbers_do_not_fail_the_import(self, number):
        parsed = parse_tracking_data({"entries": [
            {"date": "2024-01-01T10:00:00Z", "duration": number, "severity": number, "value": number},
            {"date": "2024-01-02T10:00:00Z", "duration": 90, "value": 120},
        ]})

        assert [e.duration for e in parsed.entries] == [90, None]
        assert [e.value for e in parsed.entries] == [120.0, None]
        assert parsed.entries[1].severity is None

    def test_generic_medications_are_validated(self):
        parsed = parse_tracking_data({"entries": [], "medications": [
            {"name": "Insulin", "doseValue": 10, "brand": "Lantus"},
            {"dose": "5 mg"},
            "not an object",
        ]})

        [medication] = parsed.medications
        assert medication.name == "Insulin"
        assert medication.dose_value == 10
        assert medication.model_extra == {"brand": "Lantus"}

    def test_overflowing_number_strings_are_ignored(self):
        [entry] = parse_tracking_data({"entries": [
            {"date": "2024-01-01T10:00:00Z", "duration": "1e400", "value": "1e400 mg/dL"},
        ]}).entries
        assert entry.duration is None
        assert entry.value is None

    def test_severity_out_of_range_is_dropped(self):
        parsed = parse_tracking_data({"entries": [
            {"date": "2024-01-01T10:00:00Z", "severity": 11},
            {"date": "2024-01-02T10:00:00Z", "severity": "7"},
        ]})
        assert [e.severity for e in parsed.entries] == [7, None]

    def test_unknown_keys_go_to_custom_fields(self):
        parsed = parse_tracking_data({"entries": [
            {"date": "2024-01-01T10:00:00Z", "mood": "low", "customFields": {"meal": "lunch"}},
        ]})
        assert parsed.entries[0].custom_fields == {"meal": "lunch", "mood": "low"}

    def test_entries_sorted_newest_first(self):
        parsed = parse_tracking_data({"entries": [
            {"date": "2024-01-01T10:00:00Z"},
            {"date": "2024-03-01T10:00:00Z"},
            {"date": "2024-02-01T10:00:00Z"},
        ]})
        assert [e.date.month for e in parsed.entries] == [3, 2, 1]

    def test_triggers_from_string(self):
        parsed = parse_tracking_data({"entries": [{"date": "2024-01-01", "triggers": "stress, light,stress"}]})
        assert parsed.entries[0].triggers == ["stress", "light"]

    def test_medications_are_validated(self):
        parsed = parse_tracking_data({
            "entries": [],
            "medications": [{"name": "Metformin", "frequency": 2, "brand": "X"}, {"dose": "10mg"}],
        })
        [medication] = parsed.medications
        assert medication.frequency == "2"
        assert medication.model_extra == {"brand": "X"}


@pytest.mark.parametrize("raw", [None, "text", 42, {"foo": "bar"}, {"entries": "nope"}])
def test_unsupported_format(raw):
    with pytest.raises(UnsupportedFormatError):
        parse_tracking_data(raw)


class TestManualEntry:

    def test_requires_date(self):
        with pytest.raises(InvalidEntryError):
            parse_manual_entry({"type": "seizure"})

    def test_seizure_fields(self):
        entry = parse_manual_entry({"date": "2024-01-01T10:00:00Z", "type": "Focal", "aura": True,
                                    "awareness": "impaired", "duration": 42.6})
        assert entry.duration == 43
        assert entry.seizure.aura is True
        assert entry.seizure.awareness == "impaired"
        assert "aura" not in entry.custom_fields

    def test_plain_entry_has_no_seizure_block(self):
        entry = parse_manual_entry({"date": "2024-01-01T10:00:00Z", "value": 98})
        assert entry.seizure is None
        assert entry.id
