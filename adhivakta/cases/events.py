from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from flask import current_app
from sqlalchemy import and_

from adhivakta.core.access import (
    Action,
    authorize_case,
    authorize_event,
    can_access_case,
    event_visibility_clause,
)
from adhivakta.core.errors import FieldErrors, Forbidden, NotFound, ValidationError
from adhivakta.core.identity import Identity
from adhivakta.core.models import (
    Case,
    Event,
    EventParticipant,
    EventPriority,
    EventReminder,
    EventStatus,
    EventType,
    ParticipantRole,
    ParticipantStatus,
    ReminderMethod,
    utcnow,
)
from adhivakta.core.repositories import Repositories, default_repositories
from adhivakta.core.utils import as_list, clean_text, lookup, parse_bool, parse_datetime, parse_enum, parse_id, parse_int

logger = logging.getLogger(__name__)

DEFAULT_EVENT_DURATION = timedelta(hours=1)
LOCATION_REQUIRED = (EventType.HEARING, EventType.COURT_VISIT)


def _get_event_or_404(event_id: int, repos: Repositories) -> Event:
    event = repos.events.get(event_id)
    if event is None:
        raise NotFound("Event not found")
    return event


def _resolve_case(payload: dict[str, Any], identity: Identity, repos: Repositories) -> tuple[bool, Case | None]:
    present, raw = lookup(payload, "caseId", "case", "case_id")
    if not present:
        return False, None
    case_id = parse_id(raw, "case")
    if case_id is None:
        return True, None
    case = repos.cases.get(case_id)
    if case is None:
        raise NotFound("Case not found")
    authorize_case(identity, case, Action.READ)
    return True, case


def _participants(raw: Any, repos: Repositories, errors: FieldErrors) -> list[EventParticipant]:
    rows: list[EventParticipant] = []
    seen: set[int] = set()
    for index, item in enumerate(as_list(raw)):
        field = f"participants[{index}]"
        if not isinstance(item, dict):
            item = {"user": item}
        try:
            _, raw_user = lookup(item, "user", "userId", "user_id")
            user_id = parse_id(raw_user, f"{field}.user")
            if user_id is None or repos.users.get(user_id) is None:
                raise ValidationError.for_field(f"{field}.user", "User not found")
            role = parse_enum(ParticipantRole, item.get("role"), f"{field}.role")
            if role is None:
                raise ValidationError.for_field(f"{field}.role", "Role is required")
            status = parse_enum(ParticipantStatus, item.get("status"), f"{field}.status", ParticipantStatus.INVITED)
        except ValidationError as exc:
            errors.merge(exc, field)
            continue
        if user_id in seen:
            continue
        seen.add(user_id)
        rows.append(EventParticipant(user_id=user_id, role=role, status=status))
    return rows


def _reminders(raw: Any, errors: FieldErrors) -> list[EventReminder]:
    rows: list[EventReminder] = []
    for index, item in enumerate(as_list(raw)):
        field = f"reminders[{index}]"
        if not isinstance(item, dict):
            errors.add(field, "Each reminder must be an object")
            continue
        try:
            _, minutes = lookup(item, "minutesBefore", "minutes_before")
            minutes_before = parse_int(minutes, f"{field}.minutesBefore", minimum=1)
            rows.append(
                EventReminder(
                    method=parse_enum(ReminderMethod, item.get("method"), f"{field}.method", ReminderMethod.EMAIL),
                    minutes_before=minutes_before or 30,
                    sent=False,
                )
            )
        except ValidationError as exc:
            errors.merge(exc, field)
    return rows


def _apply_fields(event: Event, payload: dict[str, Any], errors: FieldErrors, creating: bool) -> None:
    present, value = lookup(payload, "title")
    if creating or present:
        try:
            event.title = clean_text(value, "title", 200, required=True)
        except ValidationError as exc:
            errors.merge(exc, "title")

    present, value = lookup(payload, "description")
    if present:
        try:
            event.description = clean_text(value, "description", 1000)
        except ValidationError as exc:
            errors.merge(exc, "description")

    present, value = lookup(payload, "type")
    if creating or present:
        try:
            event_type = parse_enum(EventType, value, "type")
            if event_type is None:
                raise ValidationError.for_field("type", "Event type is required")
            event.type = event_type
        except ValidationError as exc:
            errors.merge(exc, "type")

    for key, enum_cls in (("priority", EventPriority), ("status", EventStatus)):
        present, value = lookup(payload, key)
        if not present:
            continue
        try:
            parsed = parse_enum(enum_cls, value, key)
        except ValidationError as exc:
            errors.merge(exc, key)
            continue
        if parsed is not None:
            setattr(event, key, parsed)

    for key, attr, max_length in (
        ("location", "location", 200),
        ("address", "address", 500),
        ("meetingLink", "meeting_link", 500),
        ("timezone", "timezone", 50),
    ):
        present, value = lookup(payload, key, attr)
        if not present:
            continue
        try:
            setattr(event, attr, clean_text(value, key, max_length))
        except ValidationError as exc:
            errors.merge(exc, key)

    for key, attr in (("allDay", "all_day"), ("isVirtual", "is_virtual")):
        present, value = lookup(payload, key, attr)
        if present:
            setattr(event, attr, parse_bool(value))

    _apply_window(event, payload, errors, creating)


def _apply_window(event: Event, payload: dict[str, Any], errors: FieldErrors, creating: bool) -> None:
    start_present, raw_start = lookup(payload, "start")
    end_present, raw_end = lookup(payload, "end")
    if not (creating or start_present or end_present):
        return
    try:
        start = parse_datetime(raw_start, "start") if start_present else event.start
        end = parse_datetime(raw_end, "end") if end_present else event.end
    except ValidationError as exc:
        errors.merge(exc)
        return
    if start is None:
        errors.add("start", "Start is required")
        return
    if end is None:
        end = start + DEFAULT_EVENT_DURATION
    elif creating is False and start_present and not end_present and event.start and event.end:
        # Moving the start keeps the existing duration.
        end = start + (event.end - event.start)
    try:
        event.reschedule(start, end)
    except ValidationError as exc:
        errors.merge(exc)


def _check_rules(event: Event, errors: FieldErrors) -> None:
    if event.type in LOCATION_REQUIRED and not (event.location or "").strip():
        errors.add("location", "Location is required for hearings and court visits")
    if event.is_virtual:
        link = (event.meeting_link or "").strip()
        if not link.startswith(("http://", "https://")):
            errors.add("meetingLink", "A valid http(s) meeting link is required for virtual events")
    if event.case_id is None and event.case is None and event.type != EventType.CLIENT_MEETING:
        errors.add("case", "A case is required unless the event is a client meeting")


def _track_completion(event: Event) -> None:
    if event.status == EventStatus.COMPLETED:
        if event.completed_at is None:
            event.completed_at = utcnow()
    else:
        event.completed_at = None


def _attach_case(event: Event, case: Case | None) -> None:
    event.case = case
    event.case_id = case.id if case else None
    event.case_title = case.title if case else ""
    event.case_number = case.case_number if case else ""


def create_event(payload: dict[str, Any], identity: Identity, repos: Repositories | None = None) -> Event:
    repos = repos or default_repositories()
    errors = FieldErrors()
    event = Event(created_by_user_id=identity.user_id, status=EventStatus.SCHEDULED)
    with repos.no_autoflush():
        _, case = _resolve_case(payload, identity, repos)
        if case is not None and not can_access_case(identity, case, Action.WRITE):
            raise Forbidden("You are not allowed to add events to this case")
        _attach_case(event, case)
        _apply_fields(event, payload, errors, creating=True)
        present, raw = lookup(payload, "participants")
        if present:
            event.participants = _participants(raw, repos, errors)
        present, raw = lookup(payload, "reminders")
        if present:
            event.reminders = _reminders(raw, errors)
        if not event.timezone:
            event.timezone = current_app.config.get("DEFAULT_TIMEZONE", "Asia/Kolkata")
        _check_rules(event, errors)
    if errors:
        repos.rollback()
        errors.raise_if_any()
    _track_completion(event)
    repos.events.add(event)
    repos.commit()
    logger.info("Event %s (%s) created by user %s", event.id, event.type.value, identity.user_id)
    return event


def get_event(event_id: int, identity: Identity, repos: Repositories | None = None) -> Event:
    repos = repos or default_repositories()
    event = _get_event_or_404(event_id, repos)
    authorize_event(identity, event, Action.READ)
    return event


def update_event(
    event_id: int,
    payload: dict[str, Any],
    identity: Identity,
    repos: Repositories | None = None,
) -> Event:
    repos = repos or default_repositories()
    event = _get_event_or_404(event_id, repos)
    authorize_event(identity, event, Action.WRITE)
    errors = FieldErrors()
    with repos.no_autoflush():
        present, case = _resolve_case(payload, identity, repos)
        if present:
            if case is not None and not can_access_case(identity, case, Action.WRITE):
                raise Forbidden("You are not allowed to move events to this case")
            _attach_case(event, case)
        _apply_fields(event, payload, errors, creating=False)
        present, raw = lookup(payload, "participants")
        if present:
            event.participants = _participants(raw, repos, errors)
        present, raw = lookup(payload, "reminders")
        if present:
            event.reminders = _reminders(raw, errors)
        _check_rules(event, errors)
    if errors:
        repos.rollback()
        errors.raise_if_any()
    _track_completion(event)
    repos.commit()
    logger.info("Event %s updated by user %s", event.id, identity.user_id)
    return event


def delete_event(event_id: int, identity: Identity, repos: Repositories | None = None) -> None:
    repos = repos or default_repositories()
    event = _get_event_or_404(event_id, repos)
    authorize_event(identity, event, Action.DELETE)
    repos.events.delete(event)
    repos.commit()
    logger.info("Event %s deleted by user %s", event_id, identity.user_id)


def list_events(filters: dict[str, str], identity: Identity, repos: Repositories | None = None) -> list[Event]:
    """Events for one case, or the calendar view over a date range."""
    repos = repos or default_repositories()
    raw_case = (filters.get("caseId") or filters.get("case_id") or filters.get("case") or "").strip()
    if raw_case:
        case_id = parse_id(raw_case, "caseId")
        case = repos.cases.get(case_id)
        if case is None:
            raise NotFound("Case not found")
        authorize_case(identity, case, Action.READ)
        return repos.events.for_case(case.id)

    query = repos.events.query()
    clause = event_visibility_clause(identity)
    if clause is not None:
        query = query.filter(clause)

    range_start = parse_datetime(filters.get("start"), "start")
    range_end = parse_datetime(filters.get("end"), "end")
    if range_start and range_end:
        if range_end <= range_start:
            raise ValidationError.for_field("end", "End must be after start")
        query = query.filter(and_(Event.start < range_end, Event.end > range_start))
        query = query.filter(Event.status != EventStatus.CANCELLED)
    elif range_start:
        query = query.filter(Event.end > range_start)
    elif range_end:
        query = query.filter(Event.start < range_end)

    for key, enum_cls, column in (("type", EventType, Event.type), ("status", EventStatus, Event.status)):
        raw = (filters.get(key) or "").strip()
        if raw:
            query = query.filter(column == parse_enum(enum_cls, raw, key))

    return query.order_by(Event.start.asc(), Event.id.asc()).limit(500).all()
