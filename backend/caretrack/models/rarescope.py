"""
Rarescope Models - Structured-needs questionnaire answers.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field

from .base import CamelModel, StoredModel, utcnow


class RarescopeRecord(StoredModel):
    """One record per (patient, role): clinician and patient keep separate lists."""
    id: Optional[str] = Field(default=None, alias="_id")
    patient_id: str
    main_need: str = ""
    additional_needs: List[str] = Field(default_factory=list)
    role: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class RarescopeSave(CamelModel):
    main_need: Optional[str] = None
    additional_needs: Optional[List[str]] = None
    role: Optional[Any] = None


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_records: int
    limit: int
