"""Event API routes: delegates to the resolver for parsing, invariants and visibility."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from app.dependencies import get_resolver
from app.resolvers.resolver import Resolver
from app.schemas.event import EventCreate, EventUpdate, EventOut
from app.schemas.participant import ParticipantOut
from app.schemas.user import UserOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, resolver: Resolver = Depends(get_resolver)):
    """Create an event; the creator is not enrolled as a participant."""
    return resolver.create_event(payload)


@router.get("/", response_model=list[EventOut])
def list_events(
    visibility: Optional[str] = Query(None),
    creator_id: Optional[str] = Query(None),
    starts_after: Optional[str] = Query(None, description="RFC 3339 date-time"),
    starts_before: Optional[str] = Query(None, description="RFC 3339 date-time"),
    order_by: Optional[str] = Query(None, description="start_time, end_time, title, created_at or updated_at"),
    descending: bool = Query(False),
    resolver: Resolver = Depends(get_resolver),
):
    """List the events visible to the caller, with optional filters."""
    return resolver.list_events(
        visibility=visibility,
        creator_id=creator_id,
        starts_after=starts_after,
        starts_before=starts_before,
        order_by=order_by,
        descending=descending,
    )


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, resolver: Resolver = Depends(get_resolver)):
    """Fetch a single event; hidden events answer 404."""
    return resolver.event(event_id)


@router.patch("/{event_id}", response_model=EventOut)
def update_event(event_id: str, payload: EventUpdate, resolver: Resolver = Depends(get_resolver)):
    """Partial update; the time range is re-validated when either bound changes."""
    return resolver.update_event(event_id, payload)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(event_id: str, resolver: Resolver = Depends(get_resolver)):
    """Delete an event together with its participants."""
    resolver.delete_event(event_id)


@router.get("/{event_id}/creator", response_model=UserOut)
def get_event_creator(event_id: str, resolver: Resolver = Depends(get_resolver)):
    return resolver.event_creator(event_id)


@router.get("/{event_id}/participants", response_model=list[ParticipantOut])
def list_event_participants(event_id: str, resolver: Resolver = Depends(get_resolver)):
    """Participants of the event, each including its user."""
    return resolver.event_participants(event_id)
