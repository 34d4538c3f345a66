"""Pydantic schemas for Events.

Timestamps and identifiers stay plain strings here; the resolver parses them
so that malformed values surface as validation errors of the domain.
"""
from typing import Optional
from pydantic import BaseModel


class EventCreate(BaseModel):
    title: str
    description: Optional[str] = None
    start_time: str
    end_time: str
    emoji: Optional[str] = None
    visibility: Optional[str] = None  # private (default), shared, public
    creator_id: str


class EventUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    emoji: Optional[str] = None
    visibility: Optional[str] = None


class EventOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    start_time: str
    end_time: str
    emoji: Optional[str] = None
    visibility: str
    creator_id: str
    created_at: str
    updated_at: str
