"""
Tracking Models - Longitudinal condition tracking (seizures, glucose, migraines).
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import ConfigDict, Field, field_validator

from .base import CamelModel, StoredModel, ensure_utc, utcnow


class ConditionType(str, Enum):
    """Medical category a tracking record belongs to."""
    EPILEPSY = "epilepsy"
    DIABETES = "diabetes"
    MIGRAINE = "migraine"
    CUSTOM = "custom"


class GeoPoint(CamelModel):
    lat: float
    lng: float


class PostictalState(CamelModel):
    """Post-seizure observations, kept as exported."""
    loss_comm: Any = None
    event_recollection: Any = None
    muscle_weakness: Any = None
    sleepy: Any = None


class SeizureDetails(CamelModel):
    """Fields only a SeizureTracker export provides."""
    time_hour: Optional[int] = None
    time_min: Optional[int] = None
    time_appm: str = ""
    aura: bool = False
    awareness: str = ""
    postictal: PostictalState = Field(default_factory=PostictalState)
    vns_active: Any = None
    flagged: Any = None
    location: Optional[GeoPoint] = None


class TrackingEntry(CamelModel):
    """One dated observation (a seizure, a glucose reading, a migraine...)."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    date: datetime
    type: str = ""
    duration: Optional[int] = None  # seconds
    severity: Optional[int] = Field(default=None, ge=1, le=10)
    value: Optional[float] = None
    triggers: List[str] = Field(default_factory=list)
    notes: str = ""
    seizure: Optional[SeizureDetails] = None

    # Overflow for source fields without a typed home
    custom_fields: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("date")
    @classmethod
    def _normalize_date(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class Medication(CamelModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    name: str = Field(..., min_length=1)
    dose: str = ""
    dose_value: Optional[float] = None
    dose_unit: str = "mg"
    frequency: str = ""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    side_effects: List[str] = Field(default_factory=list)
    notes: str = ""

    @field_validator("start_date", "end_date")
    @classmethod
    def _normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class ImportMetadata(CamelModel):
    source: str = "manual"  # seizuretracker, generic, manual
    import_date: datetime = Field(default_factory=utcnow)
    original_file: str = ""
    patient_name: str = ""
    download_version: str = ""


class Insight(CamelModel):
    """Short advisory card shown to the patient."""
    icon: str = "fa-lightbulb-o"
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)


class ParsedTracking(CamelModel):
    """Normalized result of parsing a raw export."""
    condition_type: ConditionType
    entries: List[TrackingEntry] = Field(default_factory=list)
    medications: List[Medication] = Field(default_factory=list)
    metadata: ImportMetadata = Field(default_factory=ImportMetadata)


class TrackingRecord(StoredModel):
    """One document per (patient, condition type)."""
    id: Optional[str] = Field(default=None, alias="_id")
    patient_id: str
    condition_type: ConditionType = ConditionType.EPILEPSY
    entries: List[TrackingEntry] = Field(default_factory=list)
    medications: List[Medication] = Field(default_factory=list)
    metadata: ImportMetadata = Field(default_factory=ImportMetadata)
    insights: List[Insight] = Field(default_factory=list)
    insights_generated_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class TrackingStatistics(CamelModel):
    """Aggregates derived from a record's entries. Not persisted."""
    total_events: int = 0
    days_since_last: int = 0
    monthly_avg: float = 0
    trend: Optional[Literal["improving", "worsening", "stable"]] = None
    trend_percent: int = 0
    most_common_type: Optional[str] = None
    most_common_hour: Optional[int] = None
    type_counts: Dict[str, int] = Field(default_factory=dict)
    hour_counts: List[int] = Field(default_factory=lambda: [0] * 24)


# Request bodies

class ImportRequest(CamelModel):
    raw_data: Any = None
    detected_type: Optional[str] = None
    condition_type: Optional[ConditionType] = None
    file_name: Optional[str] = None


class EntryRequest(CamelModel):
    entry: Optional[Dict[str, Any]] = None
    condition_type: ConditionType = ConditionType.EPILEPSY


class InsightsRequest(CamelModel):
    lang: str = "en"
    condition_type: ConditionType = ConditionType.EPILEPSY


class DeleteRangeRequest(CamelModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    condition_type: ConditionType = ConditionType.EPILEPSY
