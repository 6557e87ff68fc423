"""
Tracking import parser.

Detects the shape of a raw export and normalizes it into a ParsedTracking:
- SeizureTracker JSON dumps (a "Seizures" array, plus "Info" and "Medications")
- Generic documents with an "entries" array (optionally "medications")
- A bare list of entries

Malformed entries are dropped rather than failing the whole import.
"""

import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from dateutil import parser as date_parser
from pydantic import ValidationError

from ..core.errors import InvalidEntryError, UnsupportedFormatError
from ..models.base import ensure_utc
from ..models.tracking import (
    ConditionType,
    GeoPoint,
    ImportMetadata,
    Medication,
    ParsedTracking,
    PostictalState,
    SeizureDetails,
    TrackingEntry,
)

logger = logging.getLogger(__name__)

SEIZURE_TRIGGER_LABELS = {
    'triggerstress': 'Stress',
    'triggertired': 'Sleep deprivation',
    'triggerchangeinmed': 'Medication change',
    'triggerAlcDruguse': 'Alcohol/Drug use',
    'triggerlight': 'Light sensitivity',
    'triggerdiet': 'Diet',
    'triggeroverheated': 'Overheated',
    'triggerhormonal': 'Hormonal',
    'triggersick': 'Illness',
}

SIDE_EFFECT_NOT_VISITED = 'Not Visited'

GENERIC_ENTRY_FIELDS = {'date', 'type', 'duration', 'severity', 'value', 'triggers', 'notes', 'customFields'}

_INT_PREFIX = re.compile(r'^\s*[-+]?\d+')
_FLOAT_PREFIX = re.compile(r'^\s*[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?')


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp from an export.

    Accepts datetimes, ISO-8601 or free-form date strings, and epoch milliseconds.
    Returns an aware UTC datetime, or None when the value is not a date.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        pass
    try:
        return ensure_utc(date_parser.parse(text))
    except (ValueError, OverflowError):
        return None


def _to_int(value: Any) -> Optional[int]:
    """Leading-integer parse: "12abc" -> 12, "abc" -> None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, int):
        return value
    match = _INT_PREFIX.match(str(value))
    return int(match.group()) if match else None


def _finite(value: Any) -> Optional[float]:
    """float(value), or None for infinities, NaN and integers too large for a float."""
    try:
        value = float(value)
    except OverflowError:
        return None
    return value if math.isfinite(value) else None


def _to_float(value: Any) -> Optional[float]:
    """Leading-float parse: "500 mg" -> 500.0, "" -> None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _finite(value)
    match = _FLOAT_PREFIX.match(str(value))
    return _finite(match.group()) if match else None


def _is_set(value: Any) -> bool:
    """Export flags are truthy values other than the literal string "false"."""
    return bool(value) and value != 'false'


def _first(record: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, ''):
            return value
    return None


def _unique(items: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def _sort_newest_first(entries: List[TrackingEntry]) -> List[TrackingEntry]:
    return sorted(entries, key=lambda e: e.date, reverse=True)


# SeizureTracker

def seizure_duration_seconds(seizure: Dict[str, Any]) -> int:
    hours = _to_int(seizure.get('length_hr')) or 0
    minutes = _to_int(seizure.get('length_min')) or 0
    seconds = _to_int(seizure.get('length_sec')) or 0
    return hours * 3600 + minutes * 60 + seconds


def seizure_triggers(seizure: Dict[str, Any]) -> List[str]:
    triggers = [label for key, label in SEIZURE_TRIGGER_LABELS.items() if _is_set(seizure.get(key))]

    if seizure.get('triggerother') and seizure.get('triggerothervalue'):
        triggers.append(str(seizure['triggerothervalue']))

    return _unique(triggers)


def _seizure_location(seizure: Dict[str, Any]) -> Optional[GeoPoint]:
    lat = _to_float(seizure.get('EventLocationLAT'))
    lng = _to_float(seizure.get('EventLocationLNG'))
    if lat is None or lng is None:
        return None
    return GeoPoint(lat=lat, lng=lng)


def _seizure_entry(seizure: Dict[str, Any]) -> Optional[TrackingEntry]:
    date = parse_date(seizure.get('Date_Time'))
    if date is None:
        return None

    details = SeizureDetails(
        time_hour=_to_int(seizure.get('time_hour')),
        time_min=_to_int(seizure.get('time_min')),
        time_appm=str(seizure.get('time_appm') or ''),
        aura=_is_set(seizure.get('descriptaura')),
        awareness=str(seizure.get('descriptawareness') or ''),
        postictal=PostictalState(
            loss_comm=seizure.get('postlosscommuni'),
            event_recollection=seizure.get('posteventrecalection'),
            muscle_weakness=seizure.get('postmusweakness'),
            sleepy=seizure.get('postsleepy'),
        ),
        vns_active=seizure.get('VNSProfileDate_Active'),
        flagged=seizure.get('flagged'),
        location=_seizure_location(seizure),
    )
    return TrackingEntry(
        date=date,
        type=str(seizure.get('type') or 'Unknown'),
        duration=seizure_duration_seconds(seizure),
        triggers=seizure_triggers(seizure),
        notes=str(seizure.get('descriptnotes') or seizure.get('triggernotes') or ''),
        seizure=details,
    )


def _side_effects(value: Any) -> List[str]:
    if isinstance(value, str):
        items = value.split(',')
    elif isinstance(value, list):
        items = [str(item) for item in value]
    else:
        return []
    return [s.strip() for s in items if s.strip() and s.strip() != SIDE_EFFECT_NOT_VISITED]


def _seizure_tracker_medication(med: Dict[str, Any]) -> Optional[Medication]:
    name = _first(med, 'Medication', 'name', 'Name')
    if not name:
        return None

    dose_value = _to_float(med.get('Total Daily Dose'))
    if dose_value is None:
        dose_value = _to_float(med.get('doseValue'))

    try:
        return Medication(
            name=str(name),
            dose=str(_first(med, 'Total Daily Dose', 'dose', 'Dose') or ''),
            dose_value=dose_value,
            dose_unit=str(_first(med, 'Units', 'doseUnit') or 'mg'),
            frequency=str(_first(med, 'Number of Doses per day', 'frequency') or ''),
            start_date=parse_date(_first(med, 'Start Date', 'startDate')),
            end_date=parse_date(_first(med, 'End Date', 'endDate')),
            side_effects=_side_effects(_first(med, 'Side Effects', 'sideEffects')),
            notes=str(_first(med, 'Notes', 'notes') or ''),
        )
    except ValidationError as e:
        logger.debug(f"Dropping medication {name!r}: {e}")
        return None


def parse_seizure_tracker_data(raw_data: Dict[str, Any]) -> ParsedTracking:
    """Normalize a SeizureTracker export."""
    metadata = ImportMetadata(source='seizuretracker')

    info_block = raw_data.get('Info')
    if isinstance(info_block, list) and info_block and isinstance(info_block[0], dict):
        info = info_block[0]
        metadata.patient_name = f"{info.get('First Name') or ''} {info.get('Last Name') or ''}".strip()
        metadata.download_version = str(info.get('Download version') or '')
        download_date = parse_date(info.get('Download date'))
        if download_date is not None:
            metadata.import_date = download_date

    seizures = [s for s in raw_data.get('Seizures', []) if isinstance(s, dict)]
    entries = [entry for entry in map(_seizure_entry, seizures) if entry is not None]

    medications = []
    if isinstance(raw_data.get('Medications'), list):
        medications = [
            med for med in (
                _seizure_tracker_medication(m) for m in raw_data['Medications'] if isinstance(m, dict)
            ) if med is not None
        ]

    dropped = len(raw_data.get('Seizures', [])) - len(entries)
    if dropped:
        logger.info(f"SeizureTracker import dropped {dropped} seizure(s) without a valid date")

    return ParsedTracking(
        condition_type=ConditionType.EPILEPSY,
        entries=_sort_newest_first(entries),
        medications=medications,
        metadata=metadata,
    )


# Generic entries

def _condition_type(*candidates: Any) -> ConditionType:
    for candidate in candidates:
        try:
            return ConditionType(candidate)
        except ValueError:
            continue
    return ConditionType.EPILEPSY


def _generic_triggers(value: Any) -> List[str]:
    if isinstance(value, str):
        return _unique(t.strip() for t in value.split(',') if t.strip())
    if isinstance(value, list):
        return _unique(str(t).strip() for t in value if t is not None and str(t).strip())
    return []


def _generic_entry(item: Any) -> Optional[TrackingEntry]:
    if not isinstance(item, dict):
        return None

    date = parse_date(item.get('date'))
    if date is None:
        return None

    duration = _to_float(item.get('duration'))
    severity = _to_int(item.get('severity'))
    if severity is not None and not 1 <= severity <= 10:
        severity = None

    custom_fields = item.get('customFields')
    custom_fields = dict(custom_fields) if isinstance(custom_fields, dict) else {}
    for key, value in item.items():
        if key not in GENERIC_ENTRY_FIELDS and key not in ('id', '_id'):
            custom_fields.setdefault(key, value)

    try:
        return TrackingEntry(
            date=date,
            type=str(item.get('type') or ''),
            duration=round(duration) if duration is not None else None,
            severity=severity,
            value=_to_float(item.get('value')),
            triggers=_generic_triggers(item.get('triggers')),
            notes=str(item.get('notes') or ''),
            custom_fields=custom_fields,
        )
    except ValidationError as e:
        logger.debug(f"Dropping malformed entry: {e}")
        return None


def _generic_medication(item: Any) -> Optional[Medication]:
    try:
        return Medication.model_validate(item)
    except ValidationError as e:
        logger.debug(f"Dropping malformed medication: {e}")
        return None


def parse_generic_data(
    items: List[Any],
    medications: Optional[List[Any]] = None,
    condition_type: ConditionType = ConditionType.EPILEPSY,
) -> ParsedTracking:
    """
    Normalize a generic entries array.

    Medications are validated one by one rather than copied through verbatim:
    items without a name or with malformed fields are dropped, unknown keys
    are kept. Without a known condition the record is filed under epilepsy,
    the default every route reads.
    """
    entries = [entry for entry in map(_generic_entry, items) if entry is not None]
    if len(entries) < len(items):
        logger.info(f"Generic import dropped {len(items) - len(entries)} malformed entr(ies)")

    return ParsedTracking(
        condition_type=condition_type,
        entries=_sort_newest_first(entries),
        medications=[med for med in map(_generic_medication, medications or []) if med is not None],
        metadata=ImportMetadata(source='generic'),
    )


def parse_tracking_data(raw_data: Any, detected_type: Optional[str] = None) -> ParsedTracking:
    """
    Detect the export format and normalize it.

    Args:
        raw_data: Decoded JSON document
        detected_type: Optional hint from the client (e.g., "diabetes")

    Returns:
        ParsedTracking with entries sorted newest first

    Raises:
        UnsupportedFormatError: If the payload matches no known format
    """
    if isinstance(raw_data, dict):
        if isinstance(raw_data.get('Seizures'), list):
            return parse_seizure_tracker_data(raw_data)

        if isinstance(raw_data.get('entries'), list):
            medications = raw_data.get('medications')
            return parse_generic_data(
                raw_data['entries'],
                medications if isinstance(medications, list) else None,
                _condition_type(raw_data.get('conditionType'), detected_type),
            )

    elif isinstance(raw_data, list):
        return parse_generic_data(raw_data, None, _condition_type(detected_type))

    raise UnsupportedFormatError()


def parse_manual_entry(data: Dict[str, Any]) -> TrackingEntry:
    """
    Build an entry recorded by hand in the app.

    Raises:
        InvalidEntryError: If the entry has no parseable date
    """
    seizure_keys = ('aura', 'awareness')
    entry = _generic_entry({k: v for k, v in data.items() if k not in seizure_keys})
    if entry is None:
        raise InvalidEntryError("Entry date is required")

    if any(key in data for key in seizure_keys):
        entry.seizure = SeizureDetails(
            aura=_is_set(data.get('aura')),
            awareness=str(data.get('awareness') or ''),
        )
    return entry
