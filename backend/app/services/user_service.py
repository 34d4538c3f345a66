"""Identity store: create, read, update and delete users."""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy.orm import contains_eager

from app.errors import ConflictError, NotFoundError
from app.models.event import Event
from app.models.participant import Participant
from app.models.user import User
from app.services.base import BaseService

logger = logging.getLogger(__name__)


class UserService(BaseService):
    entity_name = "user"
    updatable_fields = frozenset({"email", "name", "avatar_url", "external_id"})
    required_fields = frozenset({"email", "name"})
    order_fields = {
        "id": User.id,
        "email": User.email,
        "name": User.name,
        "created_at": User.created_at,
        "updated_at": User.updated_at,
    }

    def _ensure_unique(self, email: Optional[str], external_id: Optional[str], exclude_id: Optional[int] = None) -> None:
        if email is not None:
            query = self.db.query(User.id).filter(User.email == email)
            if exclude_id is not None:
                query = query.filter(User.id != exclude_id)
            if query.first():
                raise ConflictError("A user with this email already exists", field="email")
        if external_id is not None:
            query = self.db.query(User.id).filter(User.external_id == external_id)
            if exclude_id is not None:
                query = query.filter(User.id != exclude_id)
            if query.first():
                raise ConflictError("A user with this external id already exists", field="external_id")

    def create(
        self,
        email: str,
        name: str,
        avatar_url: Optional[str] = None,
        external_id: Optional[str] = None,
    ) -> User:
        with self.transaction("create user"):
            self._ensure_unique(email, external_id)
            now = self.clock()
            user = User(
                email=email,
                name=name,
                avatar_url=avatar_url,
                external_id=external_id,
                created_at=now,
                updated_at=now,
            )
            self.db.add(user)
        logger.info("Created user %s (%s)", user.id, user.email)
        return user

    def get(self, user_id: int) -> User:
        with self.reading("get user"):
            user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def list(self, order_by: Optional[str] = None, descending: bool = False) -> list[User]:
        ordering = self._ordering(order_by, descending, default="id")
        with self.reading("list users"):
            return self.db.query(User).order_by(*ordering).all()

    def update(self, user_id: int, changes: Mapping[str, Any]) -> User:
        """Apply a partial update; an empty ``changes`` leaves the user untouched."""
        self._check_changes(changes)
        user = self.get(user_id)
        if not changes:
            return user
        with self.transaction("update user"):
            self._ensure_unique(changes.get("email"), changes.get("external_id"), exclude_id=user.id)
            for field, value in changes.items():
                setattr(user, field, value)
            user.updated_at = self.clock()
        logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(changes)))
        return user

    def delete(self, user_id: int, cascade: bool = False) -> bool:
        """Delete a user.

        Without ``cascade`` the delete is rejected while the user still owns
        events or participations. With it, those rows (and the participants
        of the user's events) go in the same transaction.
        """
        user = self.get(user_id)
        with self.transaction("delete user"):
            event_count = self.db.query(Event).filter(Event.creator_id == user.id).count()
            participation_count = self.db.query(Participant).filter(Participant.user_id == user.id).count()
            if (event_count or participation_count) and not cascade:
                raise ConflictError(
                    f"User {user_id} still has {event_count} event(s) and "
                    f"{participation_count} participation(s); delete them first or request cascade"
                )
            self.db.delete(user)
        logger.info(
            "Deleted user %s (cascaded %d event(s), %d participation(s))",
            user_id, event_count, participation_count,
        )
        return True

    def created_events(self, user_id: int, criteria: Iterable[Any] = ()) -> list[Event]:
        """Events created by the user; ``criteria`` filter on ``Event``."""
        self.get(user_id)
        query = self.db.query(Event).filter(Event.creator_id == user_id)
        for criterion in criteria:
            query = query.filter(criterion)
        with self.reading("list user events"):
            return query.order_by(Event.start_time, Event.id).all()

    def participations(self, user_id: int, criteria: Iterable[Any] = ()) -> list[Participant]:
        """The user's participant rows with their events loaded."""
        self.get(user_id)
        query = (
            self.db.query(Participant)
            .join(Participant.event)
            .options(contains_eager(Participant.event))
            .filter(Participant.user_id == user_id)
        )
        for criterion in criteria:
            query = query.filter(criterion)
        with self.reading("list user participations"):
            return query.order_by(Participant.joined_at, Participant.id).all()
