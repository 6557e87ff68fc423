"""
Message Models - Chat-style conversation saved per (patient, user).
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field

from .base import CamelModel, StoredModel, utcnow


class MessageThread(StoredModel):
    id: Optional[str] = Field(default=None, alias="_id")
    date: datetime = Field(default_factory=utcnow)
    messages: List[Any] = Field(default_factory=list)
    last_suggestions: List[str] = Field(default_factory=list)
    created_by: str  # patient id
    user_id: str


class MessagesSave(CamelModel):
    messages: List[Any] = Field(default_factory=list)
    last_suggestions: Optional[List[str]] = None
