"""camelCase JSON shapes for the case desk API."""
from __future__ import annotations

from typing import Any

from adhivakta.core.identity import Identity
from adhivakta.core.models import (
    Case,
    CaseAdvocate,
    CaseClient,
    CaseLawyer,
    CaseParty,
    CaseStakeholder,
    Document,
    Event,
    Notification,
    User,
)
from adhivakta.core.repositories import Page
from adhivakta.core.utils import isoformat


def user_summary(user: User | None) -> dict[str, Any] | None:
    if user is None:
        return None
    return {"id": user.id, "name": user.full_name, "email": user.email, "role": user.role.value}


def serialize_user(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.full_name,
        "role": user.role.value,
        "phone": user.phone,
        "address": user.address,
        "barCouncilNumber": user.bar_council_number,
        "specialization": user.specialization,
        "yearsOfExperience": user.years_of_experience,
        "bio": user.bio,
        "isActive": user.is_active,
        "createdAt": isoformat(user.created_at),
    }


def _party(party: CaseParty) -> dict[str, Any]:
    data = {
        "name": party.name,
        "type": party.entity_type.value,
        "role": party.role,
        "email": party.email,
        "contact": party.contact,
        "address": party.address,
    }
    if party.side.value == "respondent":
        data["opposingCounsel"] = party.opposing_counsel
    return data


def _lawyer(entry: CaseLawyer) -> dict[str, Any]:
    return {
        "id": entry.id,
        "user": entry.user_id,
        "name": entry.name,
        "email": entry.email,
        "contact": entry.contact,
        "company": entry.company,
        "gst": entry.gst,
        "role": entry.role.value,
        "position": entry.position.value,
        "isPrimary": entry.is_primary,
        "level": entry.level,
        "addedBy": entry.added_by_user_id,
        "addedAt": isoformat(entry.added_at),
    }


def _client(entry: CaseClient) -> dict[str, Any]:
    return {
        "id": entry.id,
        "user": entry.user_id,
        "name": entry.name,
        "email": entry.email,
        "contact": entry.contact,
        "address": entry.address,
        "isPrimary": entry.is_primary,
        "addedBy": entry.added_by_user_id,
        "addedAt": isoformat(entry.added_at),
    }


def _advocate(entry: CaseAdvocate) -> dict[str, Any]:
    return {
        "name": entry.name,
        "email": entry.email,
        "contact": entry.contact,
        "company": entry.company,
        "gst": entry.gst,
        "spock": entry.spock,
        "poc": entry.poc,
        "isLead": entry.is_lead,
        "level": entry.level,
    }


def _stakeholder(entry: CaseStakeholder) -> dict[str, Any]:
    return {
        "name": entry.name,
        "email": entry.email,
        "contact": entry.contact,
        "role": entry.role,
        "notes": entry.notes,
    }


def serialize_case(case: Case, detail: bool = True) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": case.id,
        "title": case.title,
        "caseNumber": case.case_number,
        "caseType": case.case_type.value,
        "status": case.status.value,
        "description": case.description,
        "courtState": case.court_state,
        "district": case.district,
        "bench": case.bench,
        "courtType": case.court_type,
        "court": case.court,
        "courtHall": case.court_hall,
        "courtComplex": case.court_complex,
        "filingDate": isoformat(case.filing_date),
        "hearingDate": isoformat(case.hearing_date),
        "nextHearingDate": isoformat(case.next_hearing_date),
        "priority": case.priority.value,
        "isUrgent": case.is_urgent,
        "caseStage": case.case_stage.value,
        "lawyer": case.lawyer_id,
        "client": case.client_id,
        "createdBy": case.created_by_user_id,
        "createdAt": isoformat(case.created_at),
        "updatedAt": isoformat(case.updated_at),
        "closedAt": isoformat(case.closed_at),
    }
    if not detail:
        data["lawyerName"] = case.lawyer.full_name if case.lawyer else None
        data["clientName"] = case.client.full_name if case.client else None
        return data
    data.update(
        {
            "actSections": case.act_sections,
            "reliefSought": case.relief_sought,
            "notes": case.notes,
            "parties": {
                "petitioner": [_party(p) for p in case.petitioners],
                "respondent": [_party(p) for p in case.respondents],
            },
            "lawyers": [_lawyer(entry) for entry in case.lawyers],
            "clients": [_client(entry) for entry in case.clients],
            "advocates": [_advocate(entry) for entry in case.advocates],
            "stakeholders": [_stakeholder(entry) for entry in case.stakeholders],
            "events": [event.id for event in case.events],
            "documents": [document.id for document in case.documents],
            "hearingCount": case.hearing_count,
        }
    )
    return data


def serialize_event(event: Event) -> dict[str, Any]:
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "start": isoformat(event.start),
        "end": isoformat(event.end),
        "allDay": event.all_day,
        "timezone": event.timezone,
        "type": event.type.value,
        "priority": event.priority.value,
        "status": event.status.value,
        "location": event.location,
        "address": event.address,
        "isVirtual": event.is_virtual,
        "meetingLink": event.meeting_link,
        "case": event.case_id,
        "caseTitle": event.case_title,
        "caseNumber": event.case_number,
        "createdBy": event.created_by_user_id,
        "participants": [
            {"user": p.user_id, "role": p.role.value, "status": p.status.value} for p in event.participants
        ],
        "reminders": [
            {"method": r.method.value, "minutesBefore": r.minutes_before, "sent": r.sent} for r in event.reminders
        ],
        "completedAt": isoformat(event.completed_at),
        "createdAt": isoformat(event.created_at),
        "updatedAt": isoformat(event.updated_at),
    }


def serialize_document(document: Document, identity: Identity, signed_url: str | None = None) -> dict[str, Any]:
    return {
        "id": document.id,
        "name": document.name,
        "originalName": document.original_name,
        "description": document.description,
        "fileType": document.file_type.value,
        "mimeType": document.mime_type,
        "size": document.size,
        "extension": document.extension,
        "category": document.category.value,
        "tags": document.tag_list,
        "status": document.status.value,
        "version": document.version,
        "isConfidential": document.is_confidential,
        "case": document.case_id,
        "caseTitle": document.case_title,
        "uploadedBy": document.uploaded_by_user_id,
        "owner": document.owner_user_id,
        "accessibleTo": [
            {"user": grant.user_id, "permission": grant.permission.value} for grant in document.access_grants
        ],
        "sharedWith": [share.user_id for share in document.shares],
        "isFavorite": document.is_favorite_of(identity.user_id),
        "signedUrl": signed_url,
        "createdAt": isoformat(document.created_at),
        "updatedAt": isoformat(document.updated_at),
    }


def serialize_notification(notification: Notification) -> dict[str, Any]:
    return {
        "id": notification.id,
        "type": notification.type.value,
        "message": notification.message,
        "link": notification.link,
        "read": notification.read,
        "createdAt": isoformat(notification.created_at),
    }


def serialize_upcoming(entry: dict[str, Any]) -> dict[str, Any]:
    case = entry["case"]
    if entry["event"] is not None:
        data = serialize_event(entry["event"])
    else:
        data = {
            "id": None,
            "title": f"Hearing: {case.title}",
            "type": "hearing",
            "start": isoformat(entry["date"]),
            "case": case.id,
            "caseTitle": case.title,
            "caseNumber": case.case_number,
        }
    data["source"] = entry["kind"]
    return data


def page_meta(page: Page) -> dict[str, int]:
    return {"total": page.total, "page": page.page, "limit": page.limit, "pages": page.pages}
