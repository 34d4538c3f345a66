"""Participation ledger: binds one user to one event with a role and status.

Status moves freely between pending, accepted and declined, and role between
owner and viewer, but only through explicit updates.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Union

from app.errors import ConflictError, NotFoundError
from app.models.event import Event
from app.models.participant import Participant, ParticipantRole, ParticipantStatus
from app.models.user import User
from app.services.base import BaseService, coerce_enum

logger = logging.getLogger(__name__)


class ParticipantService(BaseService):
    entity_name = "participant"
    updatable_fields = frozenset({"role", "status"})
    required_fields = frozenset({"role", "status"})
    order_fields = {
        "id": Participant.id,
        "joined_at": Participant.joined_at,
        "updated_at": Participant.updated_at,
    }

    def create(
        self,
        user_id: int,
        event_id: int,
        role: Union[ParticipantRole, str, None] = None,
        status: Union[ParticipantStatus, str, None] = None,
    ) -> Participant:
        role = coerce_enum(ParticipantRole, role or ParticipantRole.viewer, "role")
        status = coerce_enum(ParticipantStatus, status or ParticipantStatus.pending, "status")
        with self.transaction("create participant"):
            if self.db.get(User, user_id) is None:
                raise NotFoundError(f"User {user_id} not found", field="user_id")
            if self.db.get(Event, event_id) is None:
                raise NotFoundError(f"Event {event_id} not found", field="event_id")
            if self.find(user_id, event_id) is not None:
                raise ConflictError(f"User {user_id} is already a participant of event {event_id}")
            now = self.clock()
            participant = Participant(
                user_id=user_id,
                event_id=event_id,
                role=role,
                status=status,
                joined_at=now,
                updated_at=now,
            )
            self.db.add(participant)
        logger.info("Added user %s to event %s as %s (%s)", user_id, event_id, role.value, status.value)
        return participant

    def get(self, participant_id: int) -> Participant:
        with self.reading("get participant"):
            participant = self.db.get(Participant, participant_id)
        if participant is None:
            raise NotFoundError(f"Participant {participant_id} not found")
        return participant

    def find(self, user_id: int, event_id: int) -> Optional[Participant]:
        with self.reading("find participant"):
            return (
                self.db.query(Participant)
                .filter(Participant.user_id == user_id, Participant.event_id == event_id)
                .first()
            )

    def list(
        self,
        event_id: Optional[int] = None,
        user_id: Optional[int] = None,
        role: Union[ParticipantRole, str, None] = None,
        status: Union[ParticipantStatus, str, None] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        criteria: Iterable[Any] = (),
    ) -> list[Participant]:
        """List participants; ``criteria`` may refer to the joined ``Event``."""
        ordering = self._ordering(order_by, descending, default="id")
        query = self.db.query(Participant).join(Participant.event)
        for criterion in criteria:
            query = query.filter(criterion)
        if event_id is not None:
            query = query.filter(Participant.event_id == event_id)
        if user_id is not None:
            query = query.filter(Participant.user_id == user_id)
        if role is not None:
            query = query.filter(Participant.role == coerce_enum(ParticipantRole, role, "role"))
        if status is not None:
            query = query.filter(Participant.status == coerce_enum(ParticipantStatus, status, "status"))
        with self.reading("list participants"):
            return query.order_by(*ordering).all()

    def update(self, participant_id: int, changes: Mapping[str, Any]) -> Participant:
        """Change role and/or status; every status transition is allowed."""
        self._check_changes(changes)
        participant = self.get(participant_id)
        if not changes:
            return participant
        with self.transaction("update participant"):
            if "role" in changes:
                participant.role = coerce_enum(ParticipantRole, changes["role"], "role")
            if "status" in changes:
                previous = participant.status
                participant.status = coerce_enum(ParticipantStatus, changes["status"], "status")
                logger.debug("Participant %s status %s -> %s", participant_id, previous.value, participant.status.value)
            participant.updated_at = self.clock()
        logger.info("Updated participant %s (%s)", participant_id, ", ".join(sorted(changes)))
        return participant

    def delete(self, participant_id: int) -> bool:
        participant = self.get(participant_id)
        with self.transaction("delete participant"):
            self.db.delete(participant)
        logger.info("Removed participant %s", participant_id)
        return True
