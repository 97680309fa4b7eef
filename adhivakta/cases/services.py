from __future__ import annotations

import logging
import time
from typing import Any, Callable

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from adhivakta.cases.alerts import notify_case_participants
from adhivakta.cases.hearings import reconcile_case_hearing
from adhivakta.core.access import Action, authorize_case, can_self_assign, case_visibility_clause, is_member_of_case
from adhivakta.core.errors import Conflict, FieldErrors, Forbidden, NotFound, ValidationError
from adhivakta.core.extensions import tasks
from adhivakta.core.identity import Identity
from adhivakta.core.models import (
    COUNSEL_LEVELS,
    DEFAULT_COURT_TYPE,
    PARTY_ROLES,
    Case,
    CaseAdvocate,
    CaseClient,
    CaseLawyer,
    CaseParty,
    CasePriority,
    CaseStakeholder,
    CaseStage,
    CaseStatus,
    CaseType,
    ChairPosition,
    Event,
    LawyerRole,
    PartySide,
    PartyType,
    Role,
    User,
    utcnow,
)
from adhivakta.core.repositories import Page, Repositories, default_repositories, paginate
from adhivakta.core.storage import get_blob_store
from adhivakta.core.utils import (
    as_list,
    as_mapping,
    clean_text,
    lookup,
    parse_bool,
    parse_date,
    parse_datetime,
    parse_enum,
    parse_id,
    parse_paging,
)

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "No description provided"

_TEXT_FIELDS: dict[str, tuple[str, int]] = {
    "description": ("description", 2000),
    "courtState": ("court_state", 100),
    "district": ("district", 100),
    "bench": ("bench", 100),
    "courtType": ("court_type", 50),
    "court": ("court", 200),
    "courtHall": ("court_hall", 50),
    "courtComplex": ("court_complex", 200),
    "actSections": ("act_sections", 1000),
    "reliefSought": ("relief_sought", 2000),
    "notes": ("notes", 2000),
}

_ENUM_FIELDS: dict[str, tuple[str, type]] = {
    "caseType": ("case_type", CaseType),
    "status": ("status", CaseStatus),
    "priority": ("priority", CasePriority),
    "caseStage": ("case_stage", CaseStage),
}

_DATETIME_FIELDS: dict[str, str] = {
    "hearingDate": "hearing_date",
    "nextHearingDate": "next_hearing_date",
}

_CASE_SORTS = {
    "updated_at": Case.updated_at,
    "created_at": Case.created_at,
    "title": Case.title,
    "case_number": Case.case_number,
    "filing_date": Case.filing_date,
    "next_hearing_date": Case.next_hearing_date,
    "priority": Case.priority,
}


def _get_case_or_404(case_id: int, repos: Repositories) -> Case:
    case = repos.cases.get(case_id)
    if case is None:
        raise NotFound("Case not found")
    return case


def generate_case_number(court_type: str | None, exists: Callable[[str], bool]) -> str:
    letters = "".join(ch for ch in (court_type or "") if ch.isalpha())[:3].upper()
    prefix = letters or "GEN"
    suffix = int(str(int(time.time() * 1000))[-6:])
    for _ in range(1000):
        number = f"{prefix}-{suffix:06d}"
        if not exists(number):
            return number
        suffix = (suffix + 1) % 1_000_000
    raise Conflict("Could not allocate a case number", fields={"caseNumber": "Please supply a case number"})


def elect_primary(entries: list) -> Any:
    """Keep exactly one primary flag: the first flagged entry, else the first entry."""
    chosen = next((entry for entry in entries if entry.is_primary), None)
    if chosen is None and entries:
        chosen = entries[0]
    for entry in entries:
        entry.is_primary = entry is chosen
    return chosen


def sync_primary_lawyer(case: Case) -> None:
    primary = elect_primary(case.lawyers)
    case.lawyer_id = primary.user_id if primary is not None else None


def sync_primary_client(case: Case) -> None:
    primary = elect_primary(case.clients)
    case.client_id = primary.user_id if primary is not None else None


def normalize_parties(raw: Any) -> dict[str, list[dict[str, str]]]:
    """Coerce any ``parties`` input into two lists of uniformly shaped entries."""
    if isinstance(raw, str):
        raw = as_mapping(raw) or as_list(raw)
    if isinstance(raw, (list, tuple)):
        raw = {PartySide.PETITIONER.value: list(raw)}
    mapping = raw if isinstance(raw, dict) else {}

    errors = FieldErrors()
    result: dict[str, list[dict[str, str]]] = {}
    for side in PartySide:
        entries: list[dict[str, str]] = []
        for index, item in enumerate(as_list(mapping.get(side.value))):
            field = f"parties.{side.value}[{index}]"
            if isinstance(item, str):
                item = {"name": item}
            if not isinstance(item, dict):
                errors.add(field, "Each party must be an object")
                continue
            try:
                entries.append(_normalize_party(side, item, field))
            except ValidationError as exc:
                errors.merge(exc, field)
        result[side.value] = entries
    errors.raise_if_any()
    return result


def _normalize_party(side: PartySide, item: dict[str, Any], field: str) -> dict[str, str]:
    allowed = PARTY_ROLES[side]
    raw_role = clean_text(item.get("role"), f"{field}.role", 30)
    role = next((r for r in allowed if r.lower() == raw_role.lower()), None) if raw_role else allowed[0]
    if role is None:
        raise ValidationError.for_field(f"{field}.role", f"Role must be one of: {', '.join(allowed)}")
    entity_type = parse_enum(PartyType, item.get("type"), f"{field}.type", PartyType.INDIVIDUAL)
    _, counsel = lookup(item, "opposingCounsel", "opposing_counsel")
    _, contact = lookup(item, "contact", "phone")
    return {
        "name": clean_text(item.get("name"), f"{field}.name", 200, required=True),
        "type": entity_type.value,
        "role": role,
        "email": clean_text(item.get("email"), f"{field}.email", 255),
        "contact": clean_text(contact, f"{field}.contact", 50),
        "address": clean_text(item.get("address"), f"{field}.address", 500),
        "opposingCounsel": clean_text(counsel, f"{field}.opposingCounsel", 200)
        if side == PartySide.RESPONDENT
        else "",
    }


def _party_rows(normalized: dict[str, list[dict[str, str]]]) -> list[CaseParty]:
    rows: list[CaseParty] = []
    for side in PartySide:
        for order, entry in enumerate(normalized.get(side.value, [])):
            rows.append(
                CaseParty(
                    side=side,
                    sort_order=order,
                    name=entry["name"],
                    entity_type=PartyType(entry["type"]),
                    role=entry["role"],
                    email=entry["email"],
                    contact=entry["contact"],
                    address=entry["address"],
                    opposing_counsel=entry["opposingCounsel"],
                )
            )
    return rows


def _resolve_user(item: dict[str, Any], field: str, repos: Repositories) -> User | None:
    present, raw = lookup(item, "user", "userId", "user_id")
    if not present or raw in (None, ""):
        return None
    user_id = parse_id(raw, f"{field}.user")
    user = repos.users.get(user_id) if user_id else None
    if user is None:
        raise ValidationError.for_field(f"{field}.user", "User not found")
    return user


def _build_lawyer(item: dict[str, Any], user: User | None, field: str, identity: Identity) -> CaseLawyer:
    name = clean_text(item.get("name"), f"{field}.name", 120) or (user.full_name if user else "")
    if not name:
        raise ValidationError.for_field(f"{field}.name", "Name or user is required")
    level = clean_text(item.get("level"), f"{field}.level", 10).capitalize()
    if level not in COUNSEL_LEVELS:
        raise ValidationError.for_field(f"{field}.level", "Level must be Senior or Junior")
    _, primary = lookup(item, "isPrimary", "is_primary")
    return CaseLawyer(
        user_id=user.id if user else None,
        name=name,
        email=clean_text(item.get("email"), f"{field}.email", 255) or (user.email if user else ""),
        contact=clean_text(item.get("contact"), f"{field}.contact", 50) or (user.phone if user else ""),
        company=clean_text(item.get("company"), f"{field}.company", 200),
        gst=clean_text(item.get("gst"), f"{field}.gst", 30),
        role=parse_enum(LawyerRole, item.get("role"), f"{field}.role", LawyerRole.ASSOCIATE),
        position=parse_enum(ChairPosition, item.get("position"), f"{field}.position", ChairPosition.SUPPORTING),
        is_primary=parse_bool(primary),
        level=level,
        added_by_user_id=identity.user_id,
    )


def _build_client(item: dict[str, Any], user: User | None, field: str, identity: Identity) -> CaseClient:
    name = clean_text(item.get("name"), f"{field}.name", 120) or (user.full_name if user else "")
    if not name:
        raise ValidationError.for_field(f"{field}.name", "Name or user is required")
    _, primary = lookup(item, "isPrimary", "is_primary")
    return CaseClient(
        user_id=user.id if user else None,
        name=name,
        email=clean_text(item.get("email"), f"{field}.email", 255) or (user.email if user else ""),
        contact=clean_text(item.get("contact"), f"{field}.contact", 50) or (user.phone if user else ""),
        address=clean_text(item.get("address"), f"{field}.address", 500) or (user.address if user else ""),
        is_primary=parse_bool(primary),
        added_by_user_id=identity.user_id,
    )


def _normalize_members(
    raw: Any,
    prefix: str,
    build: Callable[[dict[str, Any], User | None, str, Identity], Any],
    identity: Identity,
    repos: Repositories,
    errors: FieldErrors,
) -> list:
    entries: list = []
    by_user: dict[int, Any] = {}
    for index, item in enumerate(as_list(raw)):
        field = f"{prefix}[{index}]"
        if isinstance(item, int) or (isinstance(item, str) and item.strip().isdigit()):
            item = {"user": item}
        if not isinstance(item, dict):
            errors.add(field, "Each entry must be an object")
            continue
        try:
            user = _resolve_user(item, field, repos)
            entry = build(item, user, field, identity)
        except ValidationError as exc:
            errors.merge(exc, field)
            continue
        if entry.user_id is not None and entry.user_id in by_user:
            # Repeated user: fold into the first entry.
            by_user[entry.user_id].is_primary = by_user[entry.user_id].is_primary or entry.is_primary
            continue
        if entry.user_id is not None:
            by_user[entry.user_id] = entry
        entries.append(entry)
    for order, entry in enumerate(entries):
        entry.sort_order = order
    return entries


def _self_lawyer_entry(actor: User, identity: Identity) -> CaseLawyer:
    return CaseLawyer(
        user_id=actor.id,
        name=actor.full_name,
        email=actor.email,
        contact=actor.phone,
        role=LawyerRole.LEAD,
        position=ChairPosition.FIRST_CHAIR,
        is_primary=True,
        added_by_user_id=identity.user_id,
    )


def _self_client_entry(actor: User, identity: Identity) -> CaseClient:
    return CaseClient(
        user_id=actor.id,
        name=actor.full_name,
        email=actor.email,
        contact=actor.phone,
        address=actor.address,
        is_primary=True,
        added_by_user_id=identity.user_id,
    )


def _normalize_named(raw: Any, prefix: str, errors: FieldErrors) -> list[dict[str, Any]]:
    entries: list[dict[str, Any]] = []
    for index, item in enumerate(as_list(raw)):
        field = f"{prefix}[{index}]"
        if isinstance(item, str):
            item = {"name": item}
        if not isinstance(item, dict):
            errors.add(field, "Each entry must be an object")
            continue
        try:
            clean_text(item.get("name"), f"{field}.name", 120, required=True)
        except ValidationError as exc:
            errors.merge(exc, field)
            continue
        entries.append(item)
    return entries


def _advocate_rows(raw: Any, errors: FieldErrors) -> list[CaseAdvocate]:
    rows: list[CaseAdvocate] = []
    for order, item in enumerate(_normalize_named(raw, "advocates", errors)):
        field = f"advocates[{order}]"
        try:
            _, is_lead = lookup(item, "isLead", "is_lead")
            rows.append(
                CaseAdvocate(
                    sort_order=order,
                    name=clean_text(item.get("name"), f"{field}.name", 120),
                    email=clean_text(item.get("email"), f"{field}.email", 255),
                    contact=clean_text(item.get("contact"), f"{field}.contact", 50),
                    company=clean_text(item.get("company"), f"{field}.company", 200),
                    gst=clean_text(item.get("gst"), f"{field}.gst", 30),
                    spock=clean_text(item.get("spock"), f"{field}.spock", 120),
                    poc=clean_text(item.get("poc"), f"{field}.poc", 120),
                    is_lead=parse_bool(is_lead),
                    level=clean_text(item.get("level"), f"{field}.level", 10).capitalize(),
                )
            )
        except ValidationError as exc:
            errors.merge(exc, field)
    return rows


def _stakeholder_rows(raw: Any, errors: FieldErrors) -> list[CaseStakeholder]:
    rows: list[CaseStakeholder] = []
    for order, item in enumerate(_normalize_named(raw, "stakeholders", errors)):
        field = f"stakeholders[{order}]"
        try:
            rows.append(
                CaseStakeholder(
                    sort_order=order,
                    name=clean_text(item.get("name"), f"{field}.name", 120),
                    email=clean_text(item.get("email"), f"{field}.email", 255),
                    contact=clean_text(item.get("contact"), f"{field}.contact", 50),
                    role=clean_text(item.get("role"), f"{field}.role", 100),
                    notes=clean_text(item.get("notes"), f"{field}.notes", 500),
                )
            )
        except ValidationError as exc:
            errors.merge(exc, field)
    return rows


def _assign(case: Case, attr: str, value: Any, errors: FieldErrors, field: str) -> None:
    try:
        setattr(case, attr, value)
    except ValidationError as exc:
        errors.merge(exc, field)


def _apply_scalars(case: Case, payload: dict[str, Any], errors: FieldErrors, creating: bool) -> None:
    present, value = lookup(payload, "title")
    if creating or present:
        try:
            _assign(case, "title", clean_text(value, "title", 100, required=True), errors, "title")
        except ValidationError as exc:
            errors.merge(exc, "title")

    present, value = lookup(payload, "caseNumber", "case_number")
    if present and (value not in (None, "") or not creating):
        try:
            _assign(case, "case_number", clean_text(value, "caseNumber", 50, required=True), errors, "caseNumber")
        except ValidationError as exc:
            errors.merge(exc, "caseNumber")

    for key, (attr, max_length) in _TEXT_FIELDS.items():
        present, value = lookup(payload, key, attr)
        if not present:
            continue
        try:
            text = clean_text(value, key, max_length)
        except ValidationError as exc:
            errors.merge(exc, key)
            continue
        if attr == "description" and not text:
            text = DEFAULT_DESCRIPTION
        setattr(case, attr, text)

    for key, (attr, enum_cls) in _ENUM_FIELDS.items():
        present, value = lookup(payload, key, attr)
        if not present:
            continue
        try:
            parsed = parse_enum(enum_cls, value, key)
        except ValidationError as exc:
            errors.merge(exc, key)
            continue
        if parsed is not None:
            setattr(case, attr, parsed)

    present, value = lookup(payload, "filingDate", "filing_date")
    if present:
        try:
            filing_date = parse_date(value, "filingDate")
        except ValidationError as exc:
            errors.merge(exc, "filingDate")
        else:
            if filing_date is not None:
                _assign(case, "filing_date", filing_date, errors, "filingDate")

    for key, attr in _DATETIME_FIELDS.items():
        present, value = lookup(payload, key, attr)
        if not present:
            continue
        try:
            setattr(case, attr, parse_datetime(value, key))
        except ValidationError as exc:
            errors.merge(exc, key)

    present, value = lookup(payload, "isUrgent", "is_urgent")
    if present:
        case.is_urgent = parse_bool(value)


def _apply_parties(case: Case, payload: dict[str, Any], errors: FieldErrors) -> None:
    present, raw = lookup(payload, "parties")
    if not present:
        return
    try:
        normalized = normalize_parties(raw)
    except ValidationError as exc:
        errors.merge(exc, "parties")
        return
    case.parties = _party_rows(normalized)


def _apply_representation(
    case: Case,
    payload: dict[str, Any],
    identity: Identity,
    actor: User,
    repos: Repositories,
    errors: FieldErrors,
    creating: bool,
) -> None:
    present, raw = lookup(payload, "lawyers")
    if present:
        case.lawyers = _normalize_members(raw, "lawyers", _build_lawyer, identity, repos, errors)
        sync_primary_lawyer(case)
    elif creating:
        if identity.is_lawyer:
            case.lawyers = [_self_lawyer_entry(actor, identity)]
        else:
            case.lawyers = _normalize_members(_singular(payload, "lawyer"), "lawyer", _build_lawyer, identity, repos, errors)
        sync_primary_lawyer(case)

    present, raw = lookup(payload, "clients")
    if present:
        case.clients = _normalize_members(raw, "clients", _build_client, identity, repos, errors)
        sync_primary_client(case)
    elif creating:
        if identity.is_client:
            case.clients = [_self_client_entry(actor, identity)]
        else:
            case.clients = _normalize_members(_singular(payload, "client"), "client", _build_client, identity, repos, errors)
        sync_primary_client(case)


def _singular(payload: dict[str, Any], key: str) -> list[dict[str, Any]]:
    present, value = lookup(payload, key, f"{key}Id", f"{key}_id")
    if not present or value in (None, ""):
        return []
    return [{"user": value, "isPrimary": True}]


def _apply_secondary(case: Case, payload: dict[str, Any], errors: FieldErrors) -> None:
    present, raw = lookup(payload, "advocates")
    if present:
        case.advocates = _advocate_rows(raw, errors)
    present, raw = lookup(payload, "stakeholders")
    if present:
        case.stakeholders = _stakeholder_rows(raw, errors)


def _claim_case(case: Case, identity: Identity, actor: User) -> None:
    if identity.is_lawyer:
        for entry in case.lawyers:
            entry.is_primary = False
        entry = _self_lawyer_entry(actor, identity)
        entry.sort_order = len(case.lawyers)
        case.lawyers.append(entry)
        sync_primary_lawyer(case)
    elif identity.is_client:
        for entry in case.clients:
            entry.is_primary = False
        entry = _self_client_entry(actor, identity)
        entry.sort_order = len(case.clients)
        case.clients.append(entry)
        sync_primary_client(case)


def _track_closure(case: Case) -> None:
    if case.status == CaseStatus.CLOSED:
        if case.closed_at is None:
            case.closed_at = utcnow()
    else:
        case.closed_at = None


def _ensure_number_free(repos: Repositories, case_number: str, case_id: int | None) -> None:
    existing = repos.cases.find_by_number(case_number)
    if existing is not None and existing.id != case_id:
        raise Conflict(
            f"Case number {case_number} already exists",
            fields={"caseNumber": "This case number is already in use"},
        )


def _commit_case(repos: Repositories, case_number: str, case_id: int | None) -> None:
    try:
        repos.commit()
    except IntegrityError as exc:
        repos.rollback()
        _ensure_number_free(repos, case_number, case_id)
        raise exc


def _require_actor(identity: Identity, repos: Repositories) -> User:
    actor = repos.users.get(identity.user_id)
    if actor is None or not actor.is_active:
        raise Forbidden("Account is not active")
    return actor


def _dispatch_followups(case_id: int, actor_id: int, notify: bool, sync_hearing: bool) -> None:
    if sync_hearing:
        tasks.submit("hearing-sync", reconcile_case_hearing, case_id)
    if notify:
        tasks.submit("case-notify", notify_case_participants, case_id, actor_id)


def create_case(payload: dict[str, Any], identity: Identity, repos: Repositories | None = None) -> Case:
    repos = repos or default_repositories()
    if identity.role not in (Role.LAWYER, Role.CLIENT):
        raise Forbidden("Only lawyers and clients can create cases")
    actor = _require_actor(identity, repos)

    errors = FieldErrors()
    case = Case(created_by_user_id=identity.user_id)
    with repos.no_autoflush():
        _apply_scalars(case, payload, errors, creating=True)
        _apply_parties(case, payload, errors)
        _apply_representation(case, payload, identity, actor, repos, errors, creating=True)
        _apply_secondary(case, payload, errors)
    errors.raise_if_any()
    _track_closure(case)

    if not case.case_number:
        case.case_number = generate_case_number(
            case.court_type if case.court_type is not None else DEFAULT_COURT_TYPE,
            lambda number: repos.cases.find_by_number(number) is not None,
        )
    _ensure_number_free(repos, case.case_number, None)

    case_number = case.case_number
    repos.cases.add(case)
    _commit_case(repos, case_number, None)
    logger.info("Case %s created by user %s", case_number, identity.user_id)

    _dispatch_followups(case.id, identity.user_id, notify=True, sync_hearing=case.next_hearing_date is not None)
    return case


def get_case(case_id: int, identity: Identity, repos: Repositories | None = None) -> Case:
    repos = repos or default_repositories()
    case = _get_case_or_404(case_id, repos)
    authorize_case(identity, case, Action.READ)
    return case


def update_case(
    case_id: int,
    payload: dict[str, Any],
    identity: Identity,
    repos: Repositories | None = None,
) -> Case:
    repos = repos or default_repositories()
    case = _get_case_or_404(case_id, repos)
    authorize_case(identity, case, Action.WRITE)
    actor = _require_actor(identity, repos)
    claiming = not is_member_of_case(identity, case) and can_self_assign(identity, case)

    errors = FieldErrors()
    with repos.no_autoflush():
        _apply_scalars(case, payload, errors, creating=False)
        _apply_parties(case, payload, errors)
        _apply_representation(case, payload, identity, actor, repos, errors, creating=False)
        _apply_secondary(case, payload, errors)
        if claiming and not is_member_of_case(identity, case):
            _claim_case(case, identity, actor)
    if errors:
        repos.rollback()
        errors.raise_if_any()
    _track_closure(case)

    case_number = case.case_number
    with repos.no_autoflush():
        try:
            _ensure_number_free(repos, case_number, case.id)
        except Conflict:
            repos.rollback()
            raise
    _commit_case(repos, case_number, case.id)
    logger.info("Case %s updated by user %s", case_number, identity.user_id)

    hearing_sent, _ = lookup(payload, "nextHearingDate", "next_hearing_date")
    _dispatch_followups(
        case.id,
        identity.user_id,
        notify=False,
        sync_hearing=hearing_sent and case.next_hearing_date is not None,
    )
    return case


def delete_case(case_id: int, identity: Identity, repos: Repositories | None = None) -> None:
    repos = repos or default_repositories()
    case = _get_case_or_404(case_id, repos)
    authorize_case(identity, case, Action.DELETE)
    paths = [document.storage_path for document in case.documents]
    case_number = case.case_number
    repos.cases.delete(case)
    repos.commit()
    logger.info("Case %s deleted by user %s", case_number, identity.user_id)
    for path in paths:
        tasks.submit("blob-delete", _delete_blob, path)


def _delete_blob(path: str) -> None:
    get_blob_store().delete(path)


def _case_order(raw: str):
    descending = raw.startswith("-")
    column = _CASE_SORTS.get(raw.lstrip("-+ "), Case.updated_at)
    return column.desc() if descending else column.asc()


def list_cases(filters: dict[str, str], identity: Identity, repos: Repositories | None = None) -> Page[Case]:
    repos = repos or default_repositories()
    config = current_app.config
    page, limit = parse_paging(filters, config["DEFAULT_PAGE_SIZE"], config["MAX_PAGE_SIZE"])

    query = repos.cases.query()
    clause = case_visibility_clause(identity)
    if clause is not None:
        query = query.filter(clause)

    for key, (attr, enum_cls) in _ENUM_FIELDS.items():
        raw = (filters.get(key) or filters.get(attr) or "").strip()
        if not raw:
            continue
        try:
            query = query.filter(getattr(Case, attr) == parse_enum(enum_cls, raw, key))
        except ValidationError:
            return Page(items=[], total=0, page=page, limit=limit)

    urgent = (filters.get("isUrgent") or "").strip()
    if urgent:
        query = query.filter(Case.is_urgent.is_(parse_bool(urgent)))

    search = (filters.get("search") or "").strip()
    if search:
        like = f"%{search}%"
        query = query.filter(
            or_(
                Case.title.ilike(like),
                Case.case_number.ilike(like),
                Case.description.ilike(like),
            )
        )

    query = query.order_by(_case_order((filters.get("sort") or "-updated_at").strip()), Case.id.desc())
    return paginate(query, page, limit)


def case_timeline(case_id: int, identity: Identity, repos: Repositories | None = None) -> list[Event]:
    repos = repos or default_repositories()
    case = get_case(case_id, identity, repos)
    return repos.events.for_case(case.id)
