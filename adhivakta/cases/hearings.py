"""Keeps a case's next hearing date mirrored onto a single live hearing event."""
from __future__ import annotations

import logging
from datetime import timedelta

from adhivakta.core.models import (
    Case,
    Event,
    EventParticipant,
    EventPriority,
    EventStatus,
    EventType,
    ParticipantRole,
    ParticipantStatus,
)
from adhivakta.core.repositories import CaseRepository, EventRepository, default_repositories

logger = logging.getLogger(__name__)

HEARING_DURATION = timedelta(hours=1)
DEFAULT_LOCATION = "Court"


def _hearing_title(case: Case) -> str:
    return f"Hearing: {case.title}"[:200]


def _hearing_description(case: Case) -> str:
    return f"Hearing for case {case.case_number} ({case.title})"[:1000]


class HearingEventSynchronizer:
    """Create or update the hearing event for one case.

    The case side is read-only here. Writing ``start`` on the event
    re-mirrors the same value onto the case through the event listeners,
    so running ``reconcile`` twice leaves the same state.
    """

    def __init__(self, cases: CaseRepository, events: EventRepository) -> None:
        self.cases = cases
        self.events = events

    def reconcile(self, case_id: int) -> Event | None:
        case = self.cases.get(case_id)
        if case is None:
            logger.warning("Hearing sync skipped: case %s no longer exists", case_id)
            return None
        if case.next_hearing_date is None:
            return None

        hearing = self.events.live_hearing_for_case(case.id)
        if hearing is None:
            hearing = self._new_hearing(case)
            self.events.add(hearing)
            action = "created"
        else:
            self._refresh(hearing, case)
            action = "updated"
        self.events.commit()
        logger.info(
            "Hearing event %s %s for case %s at %s",
            hearing.id,
            action,
            case.case_number,
            hearing.start,
        )
        return hearing

    def _new_hearing(self, case: Case) -> Event:
        start = case.next_hearing_date
        hearing = Event(
            title=_hearing_title(case),
            description=_hearing_description(case),
            start=start,
            end=start + HEARING_DURATION,
            type=EventType.HEARING,
            status=EventStatus.SCHEDULED,
            priority=EventPriority.HIGH if case.is_urgent else EventPriority.MEDIUM,
            location=case.court or DEFAULT_LOCATION,
            address=case.court_complex or "",
            case_id=case.id,
            case_title=case.title,
            case_number=case.case_number,
            created_by_user_id=case.lawyer_id or case.created_by_user_id,
        )
        hearing.case = case
        if case.lawyer_id:
            hearing.participants.append(
                EventParticipant(
                    user_id=case.lawyer_id,
                    role=ParticipantRole.LAWYER,
                    status=ParticipantStatus.CONFIRMED,
                )
            )
        if case.client_id and case.client_id != case.lawyer_id:
            hearing.participants.append(
                EventParticipant(
                    user_id=case.client_id,
                    role=ParticipantRole.CLIENT,
                    status=ParticipantStatus.INVITED,
                )
            )
        return hearing

    def _refresh(self, hearing: Event, case: Case) -> None:
        start = case.next_hearing_date
        hearing.reschedule(start, start + HEARING_DURATION)
        hearing.title = _hearing_title(case)
        hearing.description = _hearing_description(case)
        hearing.case_title = case.title
        hearing.case_number = case.case_number


def reconcile_case_hearing(case_id: int) -> Event | None:
    repos = default_repositories()
    return HearingEventSynchronizer(repos.cases, repos.events).reconcile(case_id)


def resync_hearings(case_id: int | None = None) -> tuple[int, int]:
    """Reconcile every case with a hearing date; returns (synced, failed)."""
    repos = default_repositories()
    synchronizer = HearingEventSynchronizer(repos.cases, repos.events)
    case_ids = [case_id] if case_id is not None else [case.id for case in repos.cases.with_next_hearing()]
    synced = failed = 0
    for current_id in case_ids:
        try:
            if synchronizer.reconcile(current_id) is not None:
                synced += 1
        except Exception:
            repos.rollback()
            failed += 1
            logger.exception("Hearing resync failed for case %s", current_id)
    return synced, failed
