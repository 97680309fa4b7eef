from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from flask import current_app
from sqlalchemy import func

from adhivakta.core.access import case_visibility_clause, document_visibility_clause, event_visibility_clause
from adhivakta.core.identity import Identity
from adhivakta.core.models import (
    Case,
    CaseClient,
    CaseLawyer,
    CaseStatus,
    Event,
    EventStatus,
    EventType,
    LIVE_EVENT_STATUSES,
    utcnow,
)
from adhivakta.core.repositories import Repositories, default_repositories

RECENT_CASES_LIMIT = 5


def _visible_cases(identity: Identity, repos: Repositories):
    query = repos.cases.query()
    clause = case_visibility_clause(identity)
    return query.filter(clause) if clause is not None else query


def _visible_events(identity: Identity, repos: Repositories):
    query = repos.events.query()
    clause = event_visibility_clause(identity)
    return query.filter(clause) if clause is not None else query


def _counterparty_count(identity: Identity, repos: Repositories) -> int:
    case_ids = _visible_cases(identity, repos).with_entities(Case.id)
    if identity.is_lawyer:
        primaries = _visible_cases(identity, repos).filter(Case.client_id.isnot(None)).with_entities(Case.client_id)
        members = repos.session.query(CaseClient.user_id).filter(
            CaseClient.case_id.in_(case_ids), CaseClient.user_id.isnot(None)
        )
    elif identity.is_client:
        primaries = _visible_cases(identity, repos).filter(Case.lawyer_id.isnot(None)).with_entities(Case.lawyer_id)
        members = repos.session.query(CaseLawyer.user_id).filter(
            CaseLawyer.case_id.in_(case_ids), CaseLawyer.user_id.isnot(None)
        )
    else:
        return 0
    user_ids = {row[0] for row in primaries.all()} | {row[0] for row in members.all()}
    user_ids.discard(identity.user_id)
    return len(user_ids)


def dashboard_summary(identity: Identity, repos: Repositories | None = None) -> dict[str, Any]:
    repos = repos or default_repositories()
    now = utcnow()
    horizon = now + timedelta(days=current_app.config["UPCOMING_HEARING_DAYS"])

    cases = _visible_cases(identity, repos)
    status_counts = dict(
        cases.with_entities(Case.status, func.count(Case.id)).group_by(Case.status).order_by(None).all()
    )
    total = sum(status_counts.values())
    closed = status_counts.get(CaseStatus.CLOSED, 0)
    urgent = cases.filter(Case.is_urgent.is_(True)).order_by(None).count()

    upcoming_hearings = (
        _visible_events(identity, repos)
        .filter(Event.type == EventType.HEARING)
        .filter(Event.start >= now, Event.start <= horizon)
        .filter(Event.status != EventStatus.CANCELLED)
        .count()
    )
    documents = repos.documents.query()
    clause = document_visibility_clause(identity)
    if clause is not None:
        documents = documents.filter(clause)

    return {
        "cases": {
            "total": total,
            "active": status_counts.get(CaseStatus.ACTIVE, 0),
            "closed": closed,
            "urgent": urgent,
        },
        "upcomingHearings": upcoming_hearings,
        "documents": documents.count(),
        "successRate": round(closed / total * 100) if total else 0,
        "activeCounterparties": _counterparty_count(identity, repos),
    }


def recent_cases(identity: Identity, repos: Repositories | None = None, limit: int = RECENT_CASES_LIMIT) -> list[Case]:
    repos = repos or default_repositories()
    return (
        _visible_cases(identity, repos)
        .order_by(Case.updated_at.desc(), Case.id.desc())
        .limit(limit)
        .all()
    )


def upcoming_events(identity: Identity, repos: Repositories | None = None, limit: int = 10) -> list[dict[str, Any]]:
    """Scheduled events merged with case hearing dates that have no live hearing event yet."""
    repos = repos or default_repositories()
    now = utcnow()
    events = (
        _visible_events(identity, repos)
        .filter(Event.start >= now)
        .filter(Event.status != EventStatus.CANCELLED)
        .order_by(Event.start.asc(), Event.id.asc())
        .limit(limit)
        .all()
    )
    entries: list[dict[str, Any]] = [
        {"kind": "event", "date": event.start, "event": event, "case": event.case} for event in events
    ]

    covered = {
        case_id
        for (case_id,) in repos.events.query()
        .filter(Event.type == EventType.HEARING, Event.status.in_(LIVE_EVENT_STATUSES), Event.case_id.isnot(None))
        .with_entities(Event.case_id)
        .all()
    }
    pending = (
        _visible_cases(identity, repos)
        .filter(Case.next_hearing_date.isnot(None), Case.next_hearing_date >= now)
        .order_by(Case.next_hearing_date.asc())
        .limit(limit)
        .all()
    )
    for case in pending:
        if case.id not in covered:
            entries.append({"kind": "case_hearing", "date": case.next_hearing_date, "event": None, "case": case})

    entries.sort(key=lambda entry: entry["date"] or datetime.max)
    return entries[:limit]
