from __future__ import annotations

from datetime import datetime, timedelta

from adhivakta.cases.hearings import HearingEventSynchronizer, reconcile_case_hearing, resync_hearings
from adhivakta.cases.services import create_case, update_case
from adhivakta.core.extensions import db
from adhivakta.core.models import (
    Case,
    Event,
    EventStatus,
    EventType,
    ParticipantRole,
    utcnow,
)


class FakeCases:
    def __init__(self, *cases):
        self.items = {case.id: case for case in cases}

    def get(self, case_id):
        return self.items.get(case_id)


class FakeEvents:
    def __init__(self):
        self.items = []
        self.commits = 0

    def live_hearing_for_case(self, case_id):
        for event in self.items:
            if (
                event.case_id == case_id
                and event.type == EventType.HEARING
                and event.status in (EventStatus.SCHEDULED, EventStatus.CONFIRMED)
            ):
                return event
        return None

    def add(self, event):
        self.items.append(event)

    def commit(self):
        self.commits += 1


def _transient_case(**kwargs) -> Case:
    case = Case(
        title=kwargs.pop("title", "Mehta v. Mehta"),
        case_number=kwargs.pop("case_number", "FAM-000101"),
        **kwargs,
    )
    case.id = 7
    return case


def _live_hearings(case_id):
    return (
        Event.query.filter_by(case_id=case_id, type=EventType.HEARING)
        .filter(Event.status.in_([EventStatus.SCHEDULED, EventStatus.CONFIRMED]))
        .all()
    )


def test_synchronizer_creates_hearing_with_participants():
    when = datetime(2031, 5, 4, 5, 30)
    case = _transient_case(next_hearing_date=when, lawyer_id=1, client_id=2, court="Family Court, Pune")
    events = FakeEvents()

    hearing = HearingEventSynchronizer(FakeCases(case), events).reconcile(case.id)

    assert events.items == [hearing]
    assert events.commits == 1
    assert hearing.start == when
    assert hearing.end == when + timedelta(hours=1)
    assert hearing.title == "Hearing: Mehta v. Mehta"
    assert hearing.location == "Family Court, Pune"
    assert hearing.case_number == "FAM-000101"
    assert {(p.user_id, p.role) for p in hearing.participants} == {
        (1, ParticipantRole.LAWYER),
        (2, ParticipantRole.CLIENT),
    }


def test_synchronizer_updates_the_existing_hearing_instead_of_adding():
    case = _transient_case(next_hearing_date=datetime(2031, 5, 4, 5, 30), lawyer_id=1)
    events = FakeEvents()
    synchronizer = HearingEventSynchronizer(FakeCases(case), events)
    first = synchronizer.reconcile(case.id)

    moved = datetime(2031, 6, 1, 6, 0)
    case.next_hearing_date = moved
    case.title = "Mehta v. Mehta (transferred)"
    second = synchronizer.reconcile(case.id)

    assert second is first
    assert len(events.items) == 1
    assert first.start == moved
    assert first.end == moved + timedelta(hours=1)
    assert first.case_title == "Mehta v. Mehta (transferred)"


def test_synchronizer_skips_cases_without_hearing_date_or_missing_cases():
    case = _transient_case()
    events = FakeEvents()
    synchronizer = HearingEventSynchronizer(FakeCases(case), events)

    assert synchronizer.reconcile(case.id) is None
    assert synchronizer.reconcile(404) is None
    assert events.items == []
    assert events.commits == 0


def test_cancelled_hearing_is_not_reused():
    case = _transient_case(next_hearing_date=datetime(2031, 5, 4, 5, 30))
    events = FakeEvents()
    synchronizer = HearingEventSynchronizer(FakeCases(case), events)
    first = synchronizer.reconcile(case.id)
    first.status = EventStatus.CANCELLED

    second = synchronizer.reconcile(case.id)
    assert second is not first
    assert len(events.items) == 2


def test_updating_next_hearing_date_moves_the_seeded_hearing(identities, demo_case):
    moved = (utcnow() + timedelta(days=30)).replace(hour=6, minute=0, second=0, microsecond=0)
    update_case(demo_case.id, {"nextHearingDate": moved.isoformat() + "Z"}, identities["lawyer"])

    hearings = _live_hearings(demo_case.id)
    assert len(hearings) == 1
    assert hearings[0].start == moved
    db.session.refresh(demo_case)
    assert demo_case.next_hearing_date == moved


def test_creating_case_with_hearing_date_creates_event(identities, users):
    when = (utcnow() + timedelta(days=5)).replace(hour=4, minute=30, second=0, microsecond=0)
    case = create_case(
        {"title": "Bail application", "caseType": "criminal", "nextHearingDate": when.isoformat()},
        identities["lawyer"],
    )

    hearings = _live_hearings(case.id)
    assert len(hearings) == 1
    assert hearings[0].start == when
    assert hearings[0].created_by_user_id == users["lawyer"].id


def test_reconcile_twice_keeps_one_live_hearing(demo_case):
    reconcile_case_hearing(demo_case.id)
    reconcile_case_hearing(demo_case.id)
    assert len(_live_hearings(demo_case.id)) == 1


def test_clearing_hearing_date_leaves_event_alone(identities, demo_case):
    update_case(demo_case.id, {"nextHearingDate": None}, identities["lawyer"])
    db.session.refresh(demo_case)
    assert demo_case.next_hearing_date is None
    assert len(_live_hearings(demo_case.id)) == 1


def test_rescheduling_hearing_event_mirrors_to_case(demo_case):
    hearing = _live_hearings(demo_case.id)[0]
    moved = hearing.start + timedelta(days=2)
    hearing.reschedule(moved, moved + timedelta(hours=1))
    db.session.commit()

    db.session.refresh(demo_case)
    assert demo_case.next_hearing_date == moved


def test_resync_hearings_counts_synced_cases(users):
    when = (utcnow() + timedelta(days=3)).replace(microsecond=0)
    case = Case(
        title="Orphan hearing",
        case_number="DIS-424242",
        next_hearing_date=when,
        created_by_user_id=users["associate"].id,
    )
    db.session.add(case)
    db.session.commit()

    synced, failed = resync_hearings()
    assert (synced, failed) == (2, 0)
    assert len(_live_hearings(case.id)) == 1

    assert resync_hearings(case.id) == (1, 0)
    assert len(_live_hearings(case.id)) == 1
