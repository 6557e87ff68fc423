"""
Note Models - Free-text notes about a patient.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import CamelModel, StoredModel, utcnow


class Note(StoredModel):
    """Note as stored."""
    id: Optional[str] = Field(default=None, alias="_id")
    content: str = ""
    date: datetime = Field(default_factory=utcnow)
    created_by: str  # patient id
    added_by: Optional[str] = None  # user id of the author


class NoteCreate(CamelModel):
    content: str = ""


class NoteUpdate(CamelModel):
    """Partial update - unset fields are left untouched."""
    content: Optional[str] = None
    date: Optional[datetime] = None
