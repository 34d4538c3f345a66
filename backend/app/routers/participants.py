"""Participant API routes: invitations, RSVP status and roles."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from app.dependencies import get_resolver
from app.resolvers.resolver import Resolver
from app.schemas.participant import ParticipantCreate, ParticipantUpdate, ParticipantOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ParticipantOut, status_code=status.HTTP_201_CREATED)
def create_participant(payload: ParticipantCreate, resolver: Resolver = Depends(get_resolver)):
    """Invite a user to an event; one row per (user, event) pair."""
    return resolver.create_participant(payload)


@router.get("/", response_model=list[ParticipantOut])
def list_participants(
    event_id: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    resolver: Resolver = Depends(get_resolver),
):
    """List participants of events visible to the caller."""
    return resolver.list_participants(event_id=event_id, user_id=user_id, role=role, status=status_filter)


@router.get("/{participant_id}", response_model=ParticipantOut)
def get_participant(participant_id: str, resolver: Resolver = Depends(get_resolver)):
    return resolver.participant(participant_id)


@router.patch("/{participant_id}", response_model=ParticipantOut)
def update_participant(participant_id: str, payload: ParticipantUpdate, resolver: Resolver = Depends(get_resolver)):
    """Change role and/or status; any status transition is accepted."""
    return resolver.update_participant(participant_id, payload)


@router.delete("/{participant_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_participant(participant_id: str, resolver: Resolver = Depends(get_resolver)):
    resolver.delete_participant(participant_id)
