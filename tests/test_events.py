from __future__ import annotations

from datetime import timedelta

import pytest

from adhivakta.cases.events import create_event, list_events
from adhivakta.core.errors import ValidationError
from adhivakta.core.extensions import db
from adhivakta.core.models import Event, EventType, utcnow


def _at(days: int, hour: int = 5) -> str:
    moment = (utcnow() + timedelta(days=days)).replace(hour=hour, minute=0, second=0, microsecond=0)
    return moment.isoformat() + "Z"


def _hearing_payload(case_id: int, **overrides) -> dict:
    payload = {
        "title": "Evidence hearing",
        "type": "hearing",
        "start": _at(3),
        "location": "Hall 4, City Civil Court",
        "caseId": case_id,
    }
    payload.update(overrides)
    return payload


def test_create_event_defaults(client, demo_case, users, login_lawyer):
    login_lawyer()
    response = client.post("/api/events", json=_hearing_payload(demo_case.id, type="evidence_submission"))
    assert response.status_code == 201
    event = response.get_json()["event"]

    assert event["case"] == demo_case.id
    assert event["caseNumber"] == "DIS-000001"
    assert event["caseTitle"] == demo_case.title
    assert event["status"] == "scheduled"
    assert event["priority"] == "medium"
    assert event["timezone"] == "Asia/Kolkata"
    assert event["createdBy"] == users["lawyer"].id
    assert event["end"] == _at(3, hour=6)


def test_hearing_requires_location(client, demo_case, login_lawyer):
    login_lawyer()
    response = client.post("/api/events", json=_hearing_payload(demo_case.id, location="  "))
    assert response.status_code == 400
    assert "location" in response.get_json()["error"]["fields"]


def test_virtual_event_requires_http_link(client, demo_case, login_lawyer):
    login_lawyer()
    payload = _hearing_payload(demo_case.id, type="mediation", isVirtual=True, meetingLink="zoom-room-12")
    response = client.post("/api/events", json=payload)
    assert response.status_code == 400
    assert "meetingLink" in response.get_json()["error"]["fields"]

    payload["meetingLink"] = "https://meet.example.com/room-12"
    assert client.post("/api/events", json=payload).status_code == 201


def test_only_client_meetings_may_skip_the_case(client, users, login_lawyer):
    login_lawyer()
    orphan = client.post("/api/events", json={"title": "Drafting", "type": "case_filing", "start": _at(1)})
    assert orphan.status_code == 400
    assert "case" in orphan.get_json()["error"]["fields"]

    meeting = client.post(
        "/api/events",
        json={
            "title": "Intake with Meera",
            "type": "client_meeting",
            "start": _at(1),
            "end": _at(1, hour=7),
            "participants": [{"user": users["other_client"].id, "role": "client"}],
            "reminders": [{"method": "sms", "minutesBefore": 60}, {}],
        },
    )
    assert meeting.status_code == 201
    event = meeting.get_json()["event"]
    assert event["case"] is None
    assert event["participants"] == [{"user": users["other_client"].id, "role": "client", "status": "invited"}]
    assert [(r["method"], r["minutesBefore"]) for r in event["reminders"]] == [("sms", 60), ("email", 30)]


def test_end_must_follow_start(client, demo_case, login_lawyer):
    login_lawyer()
    response = client.post("/api/events", json=_hearing_payload(demo_case.id, end=_at(2)))
    assert response.status_code == 400
    assert "end" in response.get_json()["error"]["fields"]


def test_failed_create_leaves_session_usable(identities, demo_case):
    with pytest.raises(ValidationError):
        create_event(_hearing_payload(demo_case.id, location=""), identities["lawyer"])
    assert Event.query.filter_by(case_id=demo_case.id).count() == 1


def test_unknown_participant_is_rejected(client, demo_case, login_lawyer):
    login_lawyer()
    response = client.post(
        "/api/events",
        json=_hearing_payload(demo_case.id, participants=[{"user": 9999, "role": "witness"}, {"user": 1}]),
    )
    assert response.status_code == 400
    fields = response.get_json()["error"]["fields"]
    assert "participants[0].user" in fields
    assert "participants[1].role" in fields


def test_outsider_cannot_add_events_to_case(client, demo_case, login_other_client):
    login_other_client()
    assert client.post("/api/events", json=_hearing_payload(demo_case.id)).status_code == 403


def test_updating_hearing_start_mirrors_to_case(client, demo_case, login_lawyer):
    login_lawyer()
    hearing = Event.query.filter_by(case_id=demo_case.id, type=EventType.HEARING).one()
    duration = hearing.end - hearing.start

    response = client.patch(f"/api/events/{hearing.id}", json={"start": _at(20, hour=4)})
    assert response.status_code == 200
    event = response.get_json()["event"]
    assert event["start"] == _at(20, hour=4)

    db.session.refresh(hearing)
    assert hearing.end - hearing.start == duration
    case = client.get(f"/api/cases/{demo_case.id}").get_json()["case"]
    assert case["nextHearingDate"] == _at(20, hour=4)


def test_completing_event_stamps_completed_at(client, demo_case, login_lawyer):
    login_lawyer()
    hearing = Event.query.filter_by(case_id=demo_case.id).first()
    done = client.patch(f"/api/events/{hearing.id}", json={"status": "completed"}).get_json()["event"]
    assert done["completedAt"] is not None
    again = client.patch(f"/api/events/{hearing.id}", json={"status": "adjourned"}).get_json()["event"]
    assert again["completedAt"] is None


def test_client_reads_but_cannot_edit_case_events(client, demo_case, login_client):
    login_client()
    hearing = Event.query.filter_by(case_id=demo_case.id).first()
    assert client.get(f"/api/events/{hearing.id}").status_code == 200
    assert client.patch(f"/api/events/{hearing.id}", json={"title": "Moved"}).status_code == 403
    assert client.delete(f"/api/events/{hearing.id}").status_code == 403


def test_delete_event(client, demo_case, login_lawyer):
    login_lawyer()
    created = client.post("/api/events", json=_hearing_payload(demo_case.id)).get_json()["event"]
    assert client.delete(f"/api/events/{created['id']}").status_code == 200
    assert client.get(f"/api/events/{created['id']}").status_code == 404


def test_calendar_range_overlap_excludes_cancelled(client, demo_case, login_lawyer):
    login_lawyer()
    inside = client.post("/api/events", json=_hearing_payload(demo_case.id, start=_at(2))).get_json()["event"]
    cancelled = client.post(
        "/api/events", json=_hearing_payload(demo_case.id, start=_at(2, hour=8), status="cancelled")
    ).get_json()["event"]
    client.post("/api/events", json=_hearing_payload(demo_case.id, start=_at(40)))

    window = client.get(f"/api/events?start={_at(1)}&end={_at(5)}").get_json()
    ids = [event["id"] for event in window["events"]]
    assert inside["id"] in ids
    assert cancelled["id"] not in ids
    assert window["count"] == len(ids) == 1

    by_case = client.get(f"/api/events?caseId={demo_case.id}").get_json()
    assert by_case["count"] == 4
    assert [e["start"] for e in by_case["events"]] == sorted(e["start"] for e in by_case["events"])

    hearings = client.get("/api/events?type=hearing&status=scheduled").get_json()
    assert hearings["count"] == 3


def test_calendar_rejects_inverted_range(client, login_lawyer):
    login_lawyer()
    response = client.get(f"/api/events?start={_at(5)}&end={_at(1)}")
    assert response.status_code == 400


def test_event_listing_respects_visibility(identities, demo_case):
    assert list_events({}, identities["other_client"]) == []
    assert len(list_events({}, identities["client"])) == 1
    assert len(list_events({}, identities["admin"])) == 1
