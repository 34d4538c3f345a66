"""Relationship resolver: the query/mutation contract over the entity services.

For every operation the resolver
1. parses wire identifiers, timestamps and enum tokens (ValidationError on
   malformed input, before any service call),
2. runs the ordered mutation checks,
3. calls the entity service inside the request's session,
4. applies the read-visibility policy for queries,
5. maps the ORM row to an API record and runs the after-hooks.

Collaborators (session, clock, deadline, caller id, checks, hooks) are passed
to the constructor; nothing is read from globals.
"""
import logging
from typing import Any, Callable, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from app.errors import NotFoundError
from app.models.event import Event, EventVisibility
from app.models.participant import Participant, ParticipantRole, ParticipantStatus
from app.models.user import User
from app.resolvers.checks import DEFAULT_AFTER_HOOKS, DEFAULT_CHECKS, AfterHook, MutationCheck
from app.resolvers.parsing import (
    format_id,
    format_timestamp,
    parse_enum,
    parse_id,
    parse_optional_id,
    parse_optional_timestamp,
    parse_timestamp,
)
from app.resolvers.visibility import can_view_event, visible_events_clause
from app.schemas.event import EventCreate, EventOut, EventUpdate
from app.schemas.participant import ParticipantCreate, ParticipantOut, ParticipantUpdate
from app.schemas.user import UserCreate, UserOut, UserUpdate
from app.services.base import Clock, Deadline, utcnow
from app.services.event_service import EventService
from app.services.participant_service import ParticipantService
from app.services.user_service import UserService

logger = logging.getLogger(__name__)


def user_to_out(user: User) -> UserOut:
    return UserOut(
        id=format_id(user.id),
        email=user.email,
        name=user.name,
        avatar_url=user.avatar_url,
        external_id=user.external_id,
        created_at=format_timestamp(user.created_at),
        updated_at=format_timestamp(user.updated_at),
    )


def event_to_out(event: Event) -> EventOut:
    return EventOut(
        id=format_id(event.id),
        title=event.title,
        description=event.description,
        start_time=format_timestamp(event.start_time),
        end_time=format_timestamp(event.end_time),
        emoji=event.emoji,
        visibility=event.visibility.value,
        creator_id=format_id(event.creator_id),
        created_at=format_timestamp(event.created_at),
        updated_at=format_timestamp(event.updated_at),
    )


def participant_to_out(
    participant: Participant, include_user: bool = False, include_event: bool = False
) -> ParticipantOut:
    return ParticipantOut(
        id=format_id(participant.id),
        user_id=format_id(participant.user_id),
        event_id=format_id(participant.event_id),
        role=participant.role.value,
        status=participant.status.value,
        joined_at=format_timestamp(participant.joined_at),
        updated_at=format_timestamp(participant.updated_at),
        user=user_to_out(participant.user) if include_user else None,
        event=event_to_out(participant.event) if include_event else None,
    )


class Resolver:
    """Query and mutation entry points, one instance per request."""

    def __init__(
        self,
        db: Session,
        clock: Clock = utcnow,
        deadline: Optional[Deadline] = None,
        viewer_id: Optional[int] = None,
        checks: Sequence[MutationCheck] = DEFAULT_CHECKS,
        after_hooks: Sequence[AfterHook] = DEFAULT_AFTER_HOOKS,
    ):
        self.viewer_id = viewer_id
        self.checks = tuple(checks)
        self.after_hooks = tuple(after_hooks)
        self.users = UserService(db, clock, deadline)
        self.events = EventService(db, clock, deadline)
        self.participants = ParticipantService(db, clock, deadline)

    def _mutate(self, operation: str, fields: Mapping[str, Any], action: Callable[[], Any]) -> Any:
        for check in self.checks:
            check(operation, fields)
        result = action()
        for hook in self.after_hooks:
            hook(operation, fields, result, self.viewer_id)
        return result

    # -- visibility ---------------------------------------------------------

    def _can_view(self, event: Event) -> bool:
        membership = None
        if self.viewer_id is not None and event.visibility != EventVisibility.public:
            membership = self.participants.find(self.viewer_id, event.id)
        return can_view_event(event, self.viewer_id, membership)

    def _visible_event(self, event_id: int) -> Event:
        event = self.events.get(event_id)
        if not self._can_view(event):
            # Hidden events are indistinguishable from missing ones
            raise NotFoundError(f"Event {event_id} not found")
        return event

    # -- users --------------------------------------------------------------

    def create_user(self, data: UserCreate) -> UserOut:
        fields = data.model_dump()
        return self._mutate(
            "create_user", fields,
            lambda: user_to_out(self.users.create(**fields)),
        )

    def update_user(self, user_id: str, data: UserUpdate) -> UserOut:
        uid = parse_id(user_id)
        changes = data.model_dump(exclude_unset=True)
        return self._mutate(
            "update_user", changes,
            lambda: user_to_out(self.users.update(uid, changes)),
        )

    def delete_user(self, user_id: str, cascade: bool = False) -> bool:
        uid = parse_id(user_id)
        return self._mutate(
            "delete_user", {"id": uid, "cascade": cascade},
            lambda: self.users.delete(uid, cascade=cascade),
        )

    def user(self, user_id: str) -> UserOut:
        return user_to_out(self.users.get(parse_id(user_id)))

    def list_users(self, order_by: Optional[str] = None, descending: bool = False) -> list[UserOut]:
        return [user_to_out(u) for u in self.users.list(order_by=order_by, descending=descending)]

    def user_events(self, user_id: str) -> list[EventOut]:
        """Events created by a user that the caller may see."""
        events = self.users.created_events(parse_id(user_id), criteria=[visible_events_clause(self.viewer_id)])
        return [event_to_out(e) for e in events]

    def user_participations(self, user_id: str) -> list[ParticipantOut]:
        participations = self.users.participations(parse_id(user_id), criteria=[visible_events_clause(self.viewer_id)])
        return [participant_to_out(p, include_event=True) for p in participations]

    # -- events -------------------------------------------------------------

    def create_event(self, data: EventCreate) -> EventOut:
        fields = {
            "title": data.title,
            "description": data.description,
            "start_time": parse_timestamp(data.start_time, "start_time"),
            "end_time": parse_timestamp(data.end_time, "end_time"),
            "emoji": data.emoji,
            "visibility": (
                parse_enum(EventVisibility, data.visibility, "visibility")
                if data.visibility is not None else EventVisibility.private
            ),
            "creator_id": parse_id(data.creator_id, "creator_id"),
        }
        return self._mutate(
            "create_event", fields,
            lambda: event_to_out(self.events.create(**fields)),
        )

    def update_event(self, event_id: str, data: EventUpdate) -> EventOut:
        eid = parse_id(event_id)
        changes = data.model_dump(exclude_unset=True)
        for field in ("start_time", "end_time"):
            if field in changes:
                changes[field] = parse_optional_timestamp(changes[field], field)
        if changes.get("visibility") is not None:
            changes["visibility"] = parse_enum(EventVisibility, changes["visibility"], "visibility")
        return self._mutate(
            "update_event", changes,
            lambda: event_to_out(self.events.update(eid, changes)),
        )

    def delete_event(self, event_id: str) -> bool:
        eid = parse_id(event_id)
        return self._mutate("delete_event", {"id": eid}, lambda: self.events.delete(eid))

    def event(self, event_id: str) -> EventOut:
        return event_to_out(self._visible_event(parse_id(event_id)))

    def list_events(
        self,
        visibility: Optional[str] = None,
        creator_id: Optional[str] = None,
        starts_after: Optional[str] = None,
        starts_before: Optional[str] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[EventOut]:
        events = self.events.list(
            visibility=parse_enum(EventVisibility, visibility, "visibility") if visibility is not None else None,
            creator_id=parse_optional_id(creator_id, "creator_id"),
            starts_after=parse_optional_timestamp(starts_after, "starts_after"),
            starts_before=parse_optional_timestamp(starts_before, "starts_before"),
            order_by=order_by,
            descending=descending,
            criteria=[visible_events_clause(self.viewer_id)],
        )
        return [event_to_out(e) for e in events]

    def event_creator(self, event_id: str) -> UserOut:
        event = self._visible_event(parse_id(event_id))
        return user_to_out(self.events.creator(event.id))

    def event_participants(self, event_id: str) -> list[ParticipantOut]:
        """Participants of a visible event, each with its user."""
        event = self._visible_event(parse_id(event_id))
        return [participant_to_out(p, include_user=True) for p in self.events.participants(event.id)]

    # -- participants -------------------------------------------------------

    def create_participant(self, data: ParticipantCreate) -> ParticipantOut:
        fields = {
            "user_id": parse_id(data.user_id, "user_id"),
            "event_id": parse_id(data.event_id, "event_id"),
            "role": parse_enum(ParticipantRole, data.role, "role") if data.role is not None else ParticipantRole.viewer,
            "status": (
                parse_enum(ParticipantStatus, data.status, "status")
                if data.status is not None else ParticipantStatus.pending
            ),
        }
        return self._mutate(
            "create_participant", fields,
            lambda: participant_to_out(self.participants.create(**fields)),
        )

    def update_participant(self, participant_id: str, data: ParticipantUpdate) -> ParticipantOut:
        pid = parse_id(participant_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("role") is not None:
            changes["role"] = parse_enum(ParticipantRole, changes["role"], "role")
        if changes.get("status") is not None:
            changes["status"] = parse_enum(ParticipantStatus, changes["status"], "status")
        return self._mutate(
            "update_participant", changes,
            lambda: participant_to_out(self.participants.update(pid, changes)),
        )

    def delete_participant(self, participant_id: str) -> bool:
        pid = parse_id(participant_id)
        return self._mutate("delete_participant", {"id": pid}, lambda: self.participants.delete(pid))

    def participant(self, participant_id: str) -> ParticipantOut:
        participant = self.participants.get(parse_id(participant_id))
        if not self._can_view(participant.event):
            raise NotFoundError(f"Participant {participant_id} not found")
        return participant_to_out(participant)

    def list_participants(
        self,
        event_id: Optional[str] = None,
        user_id: Optional[str] = None,
        role: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[ParticipantOut]:
        participants = self.participants.list(
            event_id=parse_optional_id(event_id, "event_id"),
            user_id=parse_optional_id(user_id, "user_id"),
            role=parse_enum(ParticipantRole, role, "role") if role is not None else None,
            status=parse_enum(ParticipantStatus, status, "status") if status is not None else None,
            criteria=[visible_events_clause(self.viewer_id)],
        )
        return [participant_to_out(p) for p in participants]
