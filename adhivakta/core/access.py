"""Visibility and authorization rules for cases, documents and events.

Every rule here is a pure decision over an :class:`Identity` and a loaded
record, plus a matching SQL predicate for list queries. A user satisfying
any one membership condition is authorized.
"""
from __future__ import annotations

from enum import Enum

from sqlalchemy import or_

from adhivakta.core.errors import Forbidden
from adhivakta.core.identity import Identity
from adhivakta.core.models import (
    Case,
    CaseClient,
    CaseLawyer,
    Document,
    DocumentAccess,
    DocumentPermission,
    Event,
    EventParticipant,
    Role,
)


class Action(str, Enum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    SHARE = "share"


def case_visibility_clause(identity: Identity):
    """Predicate for cases listed to ``identity``; ``None`` means unrestricted."""
    if identity.is_admin:
        return None
    uid = identity.user_id
    if identity.is_client:
        return or_(
            Case.client_id == uid,
            Case.clients.any(CaseClient.user_id == uid),
            Case.created_by_user_id == uid,
        )
    return or_(
        Case.lawyer_id == uid,
        Case.lawyers.any(CaseLawyer.user_id == uid),
        Case.created_by_user_id == uid,
    )


def is_primary_on_case(identity: Identity, case: Case) -> bool:
    if identity.is_client:
        return case.client_id == identity.user_id
    if identity.is_lawyer:
        return case.lawyer_id == identity.user_id
    return False


def is_member_of_case(identity: Identity, case: Case) -> bool:
    uid = identity.user_id
    if case.created_by_user_id == uid or is_primary_on_case(identity, case):
        return True
    if identity.is_client:
        return any(entry.user_id == uid for entry in case.clients)
    if identity.is_lawyer:
        return any(entry.user_id == uid for entry in case.lawyers)
    return False


def can_self_assign(identity: Identity, case: Case) -> bool:
    # Only a case with no representation on either side can be claimed.
    # A named entry without an account still occupies its side.
    if identity.is_admin:
        return False
    if case.lawyer_id is not None or case.client_id is not None:
        return False
    return not case.lawyers and not case.clients


def can_access_case(identity: Identity, case: Case, action: Action) -> bool:
    if action == Action.DELETE:
        return identity.is_admin or is_primary_on_case(identity, case)
    if identity.is_admin:
        return action == Action.READ
    if is_member_of_case(identity, case):
        return True
    return action == Action.WRITE and can_self_assign(identity, case)


def authorize_case(identity: Identity, case: Case, action: Action) -> None:
    if not can_access_case(identity, case, action):
        raise Forbidden("You are not allowed to access this case")


def document_visibility_clause(identity: Identity):
    if identity.is_admin:
        return None
    uid = identity.user_id
    return or_(
        Document.owner_user_id == uid,
        Document.uploaded_by_user_id == uid,
        Document.access_grants.any(DocumentAccess.user_id == uid),
        Document.case.has(case_visibility_clause(identity)),
    )


def can_access_document(identity: Identity, document: Document, action: Action) -> bool:
    uid = identity.user_id
    case = document.case
    if action == Action.READ:
        if identity.is_admin or document.has_access(uid, DocumentPermission.VIEW):
            return True
        return case is not None and can_access_case(identity, case, Action.READ)
    if identity.is_client:
        # Clients may edit their own uploads and nothing else.
        return action == Action.WRITE and document.uploaded_by_user_id == uid
    if identity.is_admin:
        return action in (Action.DELETE, Action.SHARE)
    if action == Action.WRITE and document.has_access(uid, DocumentPermission.EDIT):
        return True
    if document.owner_user_id == uid:
        return True
    return case is not None and is_member_of_case(identity, case)


def can_download_document(identity: Identity, document: Document) -> bool:
    if identity.is_admin or document.has_access(identity.user_id, DocumentPermission.DOWNLOAD):
        return True
    case = document.case
    return case is not None and can_access_case(identity, case, Action.READ)


def authorize_document(identity: Identity, document: Document, action: Action) -> None:
    if not can_access_document(identity, document, action):
        raise Forbidden("You are not allowed to access this document")


def event_visibility_clause(identity: Identity):
    if identity.is_admin:
        return None
    uid = identity.user_id
    return or_(
        Event.created_by_user_id == uid,
        Event.participants.any(EventParticipant.user_id == uid),
        Event.case.has(case_visibility_clause(identity)),
    )


def can_access_event(identity: Identity, event: Event, action: Action) -> bool:
    uid = identity.user_id
    if event.created_by_user_id == uid:
        return True
    case = event.case
    if action == Action.READ:
        if identity.is_admin or any(p.user_id == uid for p in event.participants):
            return True
        return case is not None and can_access_case(identity, case, Action.READ)
    if identity.is_admin:
        return action == Action.DELETE
    if identity.role != Role.LAWYER or case is None:
        return False
    return is_member_of_case(identity, case)


def authorize_event(identity: Identity, event: Event, action: Action) -> None:
    if not can_access_event(identity, event, action):
        raise Forbidden("You are not allowed to access this event")
