"""Read-access policy for events.

- public: any caller, including anonymous ones
- shared: the creator and every participant, whatever their status
- private: the creator and accepted participants only

The same rule exists twice: :func:`can_view_event` for a single loaded event
and :func:`visible_events_clause` as SQL for list queries.
"""
from typing import Optional

from sqlalchemy import and_, exists, or_
from sqlalchemy.orm import aliased

from app.models.event import Event, EventVisibility
from app.models.participant import Participant, ParticipantStatus


def can_view_event(event: Event, viewer_id: Optional[int], membership: Optional[Participant]) -> bool:
    """``membership`` is the viewer's participant row for ``event``, if any."""
    if event.visibility == EventVisibility.public:
        return True
    if viewer_id is None:
        return False
    if event.creator_id == viewer_id:
        return True
    if membership is None:
        return False
    if event.visibility == EventVisibility.shared:
        return True
    return membership.status == ParticipantStatus.accepted


def visible_events_clause(viewer_id: Optional[int]):
    """SQL criterion over ``Event`` matching the events ``viewer_id`` may read."""
    public = Event.visibility == EventVisibility.public
    if viewer_id is None:
        return public

    member = aliased(Participant)
    is_participant = exists().where(member.event_id == Event.id, member.user_id == viewer_id)
    is_accepted = exists().where(
        member.event_id == Event.id,
        member.user_id == viewer_id,
        member.status == ParticipantStatus.accepted,
    )
    return or_(
        public,
        Event.creator_id == viewer_id,
        and_(Event.visibility == EventVisibility.shared, is_participant),
        and_(Event.visibility == EventVisibility.private, is_accepted),
    )
