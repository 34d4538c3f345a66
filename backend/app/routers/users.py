"""User API routes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from app.dependencies import get_resolver
from app.resolvers.resolver import Resolver
from app.schemas.event import EventOut
from app.schemas.participant import ParticipantOut
from app.schemas.user import UserCreate, UserUpdate, UserOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, resolver: Resolver = Depends(get_resolver)):
    """Register a user; email and external id must be unique."""
    return resolver.create_user(payload)


@router.get("/", response_model=list[UserOut])
def list_users(
    order_by: Optional[str] = Query(None, description="id, email, name, created_at or updated_at"),
    descending: bool = Query(False),
    resolver: Resolver = Depends(get_resolver),
):
    """List all users."""
    return resolver.list_users(order_by=order_by, descending=descending)


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, resolver: Resolver = Depends(get_resolver)):
    """Fetch a single user by ID."""
    return resolver.user(user_id)


@router.patch("/{user_id}", response_model=UserOut)
def update_user(user_id: str, payload: UserUpdate, resolver: Resolver = Depends(get_resolver)):
    """Partial update: omitted fields are kept, null clears optional ones."""
    return resolver.update_user(user_id, payload)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    cascade: bool = Query(False, description="Also delete the user's events and participations"),
    resolver: Resolver = Depends(get_resolver),
):
    resolver.delete_user(user_id, cascade=cascade)


@router.get("/{user_id}/events", response_model=list[EventOut])
def list_user_events(user_id: str, resolver: Resolver = Depends(get_resolver)):
    """Events created by the user, limited to those the caller may see."""
    return resolver.user_events(user_id)


@router.get("/{user_id}/participations", response_model=list[ParticipantOut])
def list_user_participations(user_id: str, resolver: Resolver = Depends(get_resolver)):
    return resolver.user_participations(user_id)
