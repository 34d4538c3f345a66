"""Event registry: enforces the event invariants.

Responsibilities:
- Time range: start_time strictly before end_time, on create and on every
  update touching either bound (checked against the stored other bound)
- Creator reference must resolve at creation time and never changes
- Deleting an event removes its participant rows in the same transaction
- Listing accepts plain filters plus extra criteria from callers that
  restrict what a given viewer may see
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Union

from sqlalchemy.orm import joinedload

from app.errors import NotFoundError, ValidationError
from app.models.event import Event, EventVisibility
from app.models.participant import Participant
from app.models.user import User
from app.services.base import BaseService, coerce_enum

logger = logging.getLogger(__name__)


def _check_time_range(start_time: datetime, end_time: datetime) -> None:
    for field, value in (("start_time", start_time), ("end_time", end_time)):
        if value.tzinfo is None:
            raise ValidationError(f"{field} must be timezone-aware", field=field)
    if start_time >= end_time:
        raise ValidationError("start_time must be before end_time", field="start_time")


class EventService(BaseService):
    entity_name = "event"
    updatable_fields = frozenset({"title", "description", "start_time", "end_time", "emoji", "visibility"})
    required_fields = frozenset({"title", "start_time", "end_time", "visibility"})
    order_fields = {
        "id": Event.id,
        "title": Event.title,
        "start_time": Event.start_time,
        "end_time": Event.end_time,
        "created_at": Event.created_at,
        "updated_at": Event.updated_at,
    }

    def create(
        self,
        title: str,
        start_time: datetime,
        end_time: datetime,
        creator_id: int,
        description: Optional[str] = None,
        emoji: Optional[str] = None,
        visibility: Union[EventVisibility, str, None] = None,
    ) -> Event:
        """Create an event owned by ``creator_id``; visibility defaults to private.

        The creator is not enrolled as a participant.
        """
        _check_time_range(start_time, end_time)
        visibility = coerce_enum(EventVisibility, visibility or EventVisibility.private, "visibility")
        with self.transaction("create event"):
            if self.db.get(User, creator_id) is None:
                raise NotFoundError(f"Creator user {creator_id} not found", field="creator_id")
            now = self.clock()
            event = Event(
                title=title,
                description=description,
                start_time=start_time,
                end_time=end_time,
                emoji=emoji,
                visibility=visibility,
                creator_id=creator_id,
                created_at=now,
                updated_at=now,
            )
            self.db.add(event)
        logger.info("Created event '%s' (%s) by user %s", title, event.id, creator_id)
        return event

    def get(self, event_id: int) -> Event:
        with self.reading("get event"):
            event = self.db.get(Event, event_id)
        if event is None:
            raise NotFoundError(f"Event {event_id} not found")
        return event

    def list(
        self,
        visibility: Union[EventVisibility, str, None] = None,
        creator_id: Optional[int] = None,
        starts_after: Optional[datetime] = None,
        starts_before: Optional[datetime] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        criteria: Iterable[Any] = (),
    ) -> list[Event]:
        ordering = self._ordering(order_by, descending, default="start_time")
        query = self.db.query(Event)
        if visibility is not None:
            query = query.filter(Event.visibility == coerce_enum(EventVisibility, visibility, "visibility"))
        if creator_id is not None:
            query = query.filter(Event.creator_id == creator_id)
        if starts_after is not None:
            query = query.filter(Event.start_time >= starts_after)
        if starts_before is not None:
            query = query.filter(Event.start_time <= starts_before)
        for criterion in criteria:
            query = query.filter(criterion)
        with self.reading("list events"):
            return query.order_by(*ordering).all()

    def update(self, event_id: int, changes: Mapping[str, Any]) -> Event:
        """Apply a partial update; an empty ``changes`` leaves the event untouched."""
        self._check_changes(changes)
        event = self.get(event_id)
        if not changes:
            return event
        changes = dict(changes)
        if "visibility" in changes:
            changes["visibility"] = coerce_enum(EventVisibility, changes["visibility"], "visibility")
        if "start_time" in changes or "end_time" in changes:
            _check_time_range(
                changes.get("start_time", event.start_time),
                changes.get("end_time", event.end_time),
            )
        with self.transaction("update event"):
            for field, value in changes.items():
                setattr(event, field, value)
            event.updated_at = self.clock()
        logger.info("Updated event %s (%s)", event_id, ", ".join(sorted(changes)))
        return event

    def delete(self, event_id: int) -> bool:
        event = self.get(event_id)
        with self.transaction("delete event"):
            participant_count = len(event.participants)
            self.db.delete(event)
        logger.info("Deleted event %s and %d participant(s)", event_id, participant_count)
        return True

    def creator(self, event_id: int) -> User:
        event = self.get(event_id)
        with self.reading("get event creator"):
            return event.creator

    def participants(self, event_id: int) -> list[Participant]:
        """Participants of an event with their users loaded."""
        self.get(event_id)
        with self.reading("list event participants"):
            return (
                self.db.query(Participant)
                .options(joinedload(Participant.user))
                .filter(Participant.event_id == event_id)
                .order_by(Participant.joined_at, Participant.id)
                .all()
            )
