"""Resolver-level tests: the query/mutation contract without HTTP.

Walks through the canonical scenarios and the cross-entity invariants:
- Time range holds after create and after every update
- Email uniqueness and (user, event) uniqueness
- Cascading deletes and their refusal without cascade
- Partial update semantics, including the empty update
"""
import pytest
from sqlalchemy import event as sa_event

from app.errors import ConflictError, NotFoundError, ValidationError
from app.models.participant import Participant
from app.schemas.event import EventCreate, EventUpdate
from app.schemas.participant import ParticipantCreate, ParticipantUpdate
from app.schemas.user import UserCreate, UserUpdate


def _user(resolver, email="a@x.com", name="A"):
    return resolver.create_user(UserCreate(email=email, name=name))


def _event(resolver, creator_id, **overrides):
    fields = {
        "title": "Trip",
        "start_time": "2025-01-01T10:00:00Z",
        "end_time": "2025-01-01T12:00:00Z",
        "creator_id": creator_id,
    }
    fields.update(overrides)
    return resolver.create_event(EventCreate(**fields))


class TestScenarios:
    def test_create_user_then_private_event(self, resolver):
        a = _user(resolver)
        event = _event(resolver, a.id)
        assert event.visibility == "private"
        assert event.creator_id == a.id
        assert event.start_time == "2025-01-01T10:00:00Z"

    def test_reversed_range_is_rejected(self, resolver):
        a = _user(resolver)
        with pytest.raises(ValidationError):
            _event(resolver, a.id, start_time="2025-01-01T12:00:00Z", end_time="2025-01-01T10:00:00Z")
        assert resolver.list_events() == []

    def test_duplicate_participation_conflicts(self, resolver):
        a = _user(resolver)
        event = _event(resolver, a.id)
        resolver.create_participant(ParticipantCreate(user_id=a.id, event_id=event.id))
        with pytest.raises(ConflictError):
            resolver.create_participant(ParticipantCreate(user_id=a.id, event_id=event.id))

    def test_accepting_keeps_role(self, resolver):
        a = _user(resolver)
        event = _event(resolver, a.id)
        participant = resolver.create_participant(ParticipantCreate(user_id=a.id, event_id=event.id))
        assert participant.status == "pending"
        updated = resolver.update_participant(participant.id, ParticipantUpdate(status="accepted"))
        assert updated.status == "accepted"
        assert updated.role == participant.role == "viewer"

    def test_deleting_event_removes_participants(self, resolver):
        a = _user(resolver)
        event = _event(resolver, a.id)
        participant = resolver.create_participant(ParticipantCreate(user_id=a.id, event_id=event.id))
        assert resolver.delete_event(event.id) is True
        with pytest.raises(NotFoundError):
            resolver.participant(participant.id)


class TestInvariants:
    def test_time_range_after_updates(self, resolver, make_resolver):
        a = _user(resolver)
        event = _event(resolver, a.id)
        owner_view = make_resolver(viewer_id=int(a.id))
        for patch in (
            {"start_time": "2025-01-01T12:00:00Z"},
            {"end_time": "2025-01-01T09:59:59Z"},
            {"start_time": "2025-01-01T13:00:00Z", "end_time": "2025-01-01T12:00:00Z"},
        ):
            with pytest.raises(ValidationError):
                resolver.update_event(event.id, EventUpdate(**patch))
            stored = owner_view.event(event.id)
            assert stored.start_time < stored.end_time

        moved = resolver.update_event(event.id, EventUpdate(start_time="2025-01-01T11:00:00Z"))
        assert moved.start_time == "2025-01-01T11:00:00Z"
        assert moved.end_time == "2025-01-01T12:00:00Z"

    def test_email_unique(self, resolver):
        _user(resolver, email="same@x.com")
        with pytest.raises(ConflictError):
            _user(resolver, email="same@x.com", name="Other")

    def test_at_most_one_row_per_pair(self, resolver, db):
        a = _user(resolver)
        event = _event(resolver, a.id, visibility="public")
        resolver.create_participant(ParticipantCreate(user_id=a.id, event_id=event.id))
        for _ in range(3):
            with pytest.raises(ConflictError):
                resolver.create_participant(ParticipantCreate(user_id=a.id, event_id=event.id, role="owner"))
        assert db.query(Participant).filter(Participant.user_id == int(a.id)).count() == 1

    def test_user_delete_requires_cascade(self, resolver):
        a = _user(resolver)
        b = _user(resolver, email="b@x.com", name="B")
        event = _event(resolver, a.id, visibility="public")
        resolver.create_participant(ParticipantCreate(user_id=b.id, event_id=event.id))

        with pytest.raises(ConflictError):
            resolver.delete_user(a.id)
        with pytest.raises(ConflictError):
            resolver.delete_user(b.id)
        # Nothing was removed by the refused deletes
        assert len(resolver.list_participants()) == 1

        assert resolver.delete_user(a.id, cascade=True) is True
        assert resolver.list_events() == []
        assert resolver.list_participants() == []
        assert resolver.user(b.id).email == "b@x.com"

    def test_empty_update_is_a_no_op(self, resolver, clock):
        a = _user(resolver)
        event = _event(resolver, a.id, visibility="public")
        participant = resolver.create_participant(ParticipantCreate(user_id=a.id, event_id=event.id))
        clock.advance(hours=1)

        assert resolver.update_user(a.id, UserUpdate()) == resolver.user(a.id)
        assert resolver.update_user(a.id, UserUpdate()).updated_at == a.updated_at
        assert resolver.update_event(event.id, EventUpdate()) == event
        assert resolver.update_participant(participant.id, ParticipantUpdate()) == participant

    def test_update_refreshes_updated_at(self, resolver, clock):
        a = _user(resolver)
        event = _event(resolver, a.id)
        clock.advance(minutes=5)
        renamed = resolver.update_event(event.id, EventUpdate(title="Road trip"))
        assert renamed.updated_at == "2025-01-01T09:05:00Z"
        assert renamed.created_at == event.created_at

    def test_omitted_vs_null(self, resolver):
        a = _user(resolver)
        event = _event(resolver, a.id, description="Pack light", emoji="🚗")
        kept = resolver.update_event(event.id, EventUpdate(title="Trip 2"))
        assert kept.description == "Pack light"
        assert kept.emoji == "🚗"
        cleared = resolver.update_event(event.id, EventUpdate(emoji=None))
        assert cleared.emoji is None
        assert cleared.description == "Pack light"


class TestMalformedInput:
    @pytest.mark.parametrize("bad_id", ["", "abc", "0", "-1", "1.5", " 1", "99999999999999999999"])
    def test_bad_identifiers(self, resolver, bad_id):
        with pytest.raises(ValidationError):
            resolver.user(bad_id)

    def test_bad_timestamp_fails_before_creator_lookup(self, resolver):
        # The creator does not exist either; the timestamp is reported first
        with pytest.raises(ValidationError) as excinfo:
            _event(resolver, "12345", start_time="01/01/2025 10:00")
        assert excinfo.value.field == "start_time"

    def test_naive_timestamp_rejected(self, resolver):
        a = _user(resolver)
        with pytest.raises(ValidationError):
            _event(resolver, a.id, start_time="2025-01-01T10:00:00")

    def test_unknown_role_token(self, resolver):
        a = _user(resolver)
        event = _event(resolver, a.id)
        with pytest.raises(ValidationError):
            resolver.create_participant(ParticipantCreate(user_id=a.id, event_id=event.id, role="admin"))


class TestMutationHooks:
    def test_checks_run_in_order_before_the_write(self, make_resolver):
        calls = []

        def first(operation, fields):
            calls.append(("first", operation))

        def veto(operation, fields):
            calls.append(("veto", operation))
            raise ValidationError("vetoed")

        resolver = make_resolver(checks=[first, veto])
        with pytest.raises(ValidationError):
            resolver.create_user(UserCreate(email="a@x.com", name="A"))
        assert calls == [("first", "create_user"), ("veto", "create_user")]
        assert resolver.list_users() == []

    def test_after_hooks_see_the_result(self, make_resolver):
        seen = []
        resolver = make_resolver(
            viewer_id=7,
            after_hooks=[lambda op, fields, result, caller: seen.append((op, result.email, caller))],
        )
        resolver.create_user(UserCreate(email="a@x.com", name="A"))
        assert seen == [("create_user", "a@x.com", 7)]


class TestUserTraversal:
    def _count_statements(self, db, action):
        statements = []

        def record(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        engine = db.get_bind()
        sa_event.listen(engine, "before_cursor_execute", record)
        try:
            result = action()
        finally:
            sa_event.remove(engine, "before_cursor_execute", record)
        return result, len(statements)

    def _seed(self, resolver, count):
        creator = _user(resolver, email=f"creator{count}@x.com", name="Creator")
        guest = _user(resolver, email=f"guest{count}@x.com", name="Guest")
        for i in range(count):
            event = _event(resolver, creator.id, title=f"Private {i}")
            resolver.create_participant(ParticipantCreate(user_id=guest.id, event_id=event.id))
        _event(resolver, creator.id, title="Public", visibility="public")
        return creator, guest

    def test_hidden_events_filtered_in_one_query(self, resolver, make_resolver, db):
        costs = []
        for count in (1, 5):
            creator, guest = self._seed(resolver, count)
            stranger = make_resolver(viewer_id=int(guest.id) + 1000)

            events, cost = self._count_statements(db, lambda: stranger.user_events(creator.id))
            assert [e.title for e in events] == ["Public"]
            rows, _ = self._count_statements(db, lambda: stranger.user_participations(guest.id))
            assert rows == []
            costs.append(cost)
        assert costs[0] == costs[1]

    def test_participations_visible_to_accepted_guest(self, resolver, make_resolver):
        creator, guest = self._seed(resolver, 2)
        first = resolver.list_participants(user_id=guest.id)
        assert first == []  # anonymous callers see no private events
        guest_view = make_resolver(viewer_id=int(guest.id))
        assert guest_view.user_participations(guest.id) == []

        creator_view = make_resolver(viewer_id=int(creator.id))
        rows = creator_view.user_participations(guest.id)
        assert sorted(p.event.title for p in rows) == ["Private 0", "Private 1"]

        resolver.update_participant(rows[0].id, ParticipantUpdate(status="accepted"))
        accepted = guest_view.user_participations(guest.id)
        assert [p.id for p in accepted] == [rows[0].id]
        assert accepted[0].event.title == rows[0].event.title
