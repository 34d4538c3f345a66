"""Pydantic schemas for Participants."""
from __future__ import annotations
from typing import Optional
from pydantic import BaseModel

from app.schemas.event import EventOut
from app.schemas.user import UserOut


class ParticipantCreate(BaseModel):
    user_id: str
    event_id: str
    role: Optional[str] = None  # owner, viewer (default)
    status: Optional[str] = None  # pending (default), accepted, declined


class ParticipantUpdate(BaseModel):
    role: Optional[str] = None
    status: Optional[str] = None


class ParticipantOut(BaseModel):
    id: str
    user_id: str
    event_id: str
    role: str
    status: str
    joined_at: str
    updated_at: str
    user: Optional[UserOut] = None
    event: Optional[EventOut] = None
