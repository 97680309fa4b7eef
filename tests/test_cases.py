from __future__ import annotations

import json

import pytest

from adhivakta.cases.services import create_case
from adhivakta.core.errors import Conflict
from adhivakta.core.extensions import db
from adhivakta.core.models import Case, Notification
from adhivakta.core.repositories import CaseRepository


def test_requests_without_session_are_rejected(client):
    response = client.get("/api/cases")
    assert response.status_code == 401
    body = response.get_json()
    assert body["success"] is False
    assert body["error"]["code"] == "unauthenticated"


def test_lawyer_creating_case_becomes_primary_lawyer(client, users, login_lawyer):
    login_lawyer()
    response = client.post("/api/cases", json={"title": "Shetty v. Shetty", "caseType": "family"})
    assert response.status_code == 201
    case = response.get_json()["case"]

    assert case["lawyer"] == users["lawyer"].id
    assert case["client"] is None
    assert [(entry["user"], entry["isPrimary"]) for entry in case["lawyers"]] == [(users["lawyer"].id, True)]
    assert case["clients"] == []
    assert case["caseNumber"].startswith("DIS-")
    assert case["description"] == "No description provided"
    assert case["parties"] == {"petitioner": [], "respondent": []}
    assert case["status"] == "active"


def test_client_creating_case_becomes_primary_client(client, users, login_client):
    login_client()
    response = client.post(
        "/api/cases",
        json={"title": "Tenancy dispute", "lawyer": users["lawyer"].id, "courtType": "high_court"},
    )
    assert response.status_code == 201
    case = response.get_json()["case"]
    assert case["client"] == users["client"].id
    assert case["lawyer"] == users["lawyer"].id
    assert case["caseNumber"].startswith("HIG-")
    assert [entry["isPrimary"] for entry in case["clients"]] == [True]


def test_admin_cannot_create_cases(client, login_admin):
    login_admin()
    response = client.post("/api/cases", json={"title": "Admin case"})
    assert response.status_code == 403


def test_first_listed_lawyer_is_promoted_to_primary(client, users, login_lawyer):
    login_lawyer()
    response = client.post(
        "/api/cases",
        json={
            "title": "Partnership dissolution",
            "lawyers": [
                {"user": users["associate"].id, "role": "lead"},
                {"user": users["lawyer"].id},
            ],
            "clients": [{"user": users["client"].id}, {"name": "Anita Kumar", "email": "anita@example.com"}],
        },
    )
    assert response.status_code == 201
    case = response.get_json()["case"]
    assert case["lawyer"] == users["associate"].id
    assert [entry["isPrimary"] for entry in case["lawyers"]] == [True, False]
    assert case["client"] == users["client"].id
    assert [entry["isPrimary"] for entry in case["clients"]] == [True, False]


def test_flagged_primary_wins_over_order(client, users, login_lawyer):
    login_lawyer()
    response = client.post(
        "/api/cases",
        json={
            "title": "Cheque bounce",
            "lawyers": [{"user": users["lawyer"].id}, {"user": users["associate"].id, "isPrimary": True}],
        },
    )
    case = response.get_json()["case"]
    assert case["lawyer"] == users["associate"].id
    assert sum(entry["isPrimary"] for entry in case["lawyers"]) == 1


def test_duplicate_case_number_conflicts(client, login_lawyer):
    login_lawyer()
    response = client.post("/api/cases", json={"title": "Copy", "caseNumber": "DIS-000001"})
    assert response.status_code == 409
    assert "caseNumber" in response.get_json()["error"]["fields"]
    assert Case.query.filter_by(case_number="DIS-000001").count() == 1


def test_validation_errors_are_reported_per_field(client, login_lawyer):
    login_lawyer()
    response = client.post(
        "/api/cases",
        json={
            "caseType": "maritime",
            "filingDate": "2999-01-01",
            "parties": {"respondent": [{"name": "", "role": "Plaintiff"}]},
        },
    )
    assert response.status_code == 400
    fields = response.get_json()["error"]["fields"]
    assert "title" in fields
    assert "caseType" in fields
    assert "filingDate" in fields
    assert "parties.respondent[0].role" in fields


def test_non_object_body_is_rejected(client, login_lawyer):
    login_lawyer()
    response = client.post("/api/cases", data=json.dumps(["title"]), content_type="application/json")
    assert response.status_code == 400


def test_parties_are_normalized_and_stored(client, demo_case, login_lawyer):
    login_lawyer()
    response = client.patch(
        f"/api/cases/{demo_case.id}",
        json={
            "parties": json.dumps(
                {
                    "petitioner": ["Ravi Kumar", {"name": "Sunita Kumar", "role": "plaintiff"}],
                    "respondent": [{"name": "Karnataka Housing Board", "type": "corporation"}],
                }
            )
        },
    )
    assert response.status_code == 200
    parties = response.get_json()["case"]["parties"]
    assert [p["name"] for p in parties["petitioner"]] == ["Ravi Kumar", "Sunita Kumar"]
    assert parties["petitioner"][1]["role"] == "Plaintiff"
    assert parties["respondent"][0]["type"] == "Corporation"
    assert parties["respondent"][0]["opposingCounsel"] == ""
    assert "opposingCounsel" not in parties["petitioner"][0]


def test_update_is_idempotent(client, demo_case, users, login_lawyer):
    login_lawyer()
    payload = {
        "title": "Ravi Kumar v. KHB",
        "status": "pending",
        "lawyers": [{"user": users["lawyer"].id}, {"user": users["associate"].id}],
        "advocates": [{"name": "K. Iyer", "isLead": True}],
    }
    first = client.put(f"/api/cases/{demo_case.id}", json=payload).get_json()["case"]
    second = client.put(f"/api/cases/{demo_case.id}", json=payload).get_json()["case"]

    for key in ("title", "status", "lawyer", "client", "caseNumber"):
        assert first[key] == second[key]
    assert [entry["user"] for entry in second["lawyers"]] == [users["lawyer"].id, users["associate"].id]
    assert [entry["isPrimary"] for entry in second["lawyers"]] == [True, False]
    assert [a["name"] for a in second["advocates"]] == ["K. Iyer"]


def test_empty_lawyers_array_clears_primary(client, demo_case, users, login_lawyer):
    login_lawyer()
    response = client.patch(f"/api/cases/{demo_case.id}", json={"lawyers": []})
    assert response.status_code == 200
    case = response.get_json()["case"]
    assert case["lawyer"] is None
    assert case["lawyers"] == []
    assert case["client"] == users["client"].id


def test_closing_case_stamps_closed_at(client, demo_case, login_lawyer):
    login_lawyer()
    closed = client.patch(f"/api/cases/{demo_case.id}", json={"status": "closed"}).get_json()["case"]
    assert closed["closedAt"] is not None
    reopened = client.patch(f"/api/cases/{demo_case.id}", json={"status": "active"}).get_json()["case"]
    assert reopened["closedAt"] is None


def test_changing_case_number_to_taken_one_conflicts(client, login_lawyer):
    login_lawyer()
    other = client.post("/api/cases", json={"title": "Second matter", "caseNumber": "DIS-000002"}).get_json()["case"]
    response = client.patch(f"/api/cases/{other['id']}", json={"caseNumber": "DIS-000001"})
    assert response.status_code == 409
    assert db.session.get(Case, other["id"]).case_number == "DIS-000002"


def _miss_first_lookup(monkeypatch):
    real_lookup = CaseRepository.find_by_number
    calls = []

    def lookup(self, case_number):
        calls.append(case_number)
        if len(calls) == 1:
            return None
        return real_lookup(self, case_number)

    monkeypatch.setattr(CaseRepository, "find_by_number", lookup)
    return calls


def test_unique_constraint_turns_lost_race_into_conflict(identities, demo_case, monkeypatch):
    calls = _miss_first_lookup(monkeypatch)

    with pytest.raises(Conflict) as excinfo:
        create_case({"title": "Racing copy", "caseNumber": "DIS-000001"}, identities["lawyer"])

    assert excinfo.value.fields == {"caseNumber": "This case number is already in use"}
    assert len(calls) == 2
    rows = Case.query.filter_by(case_number="DIS-000001").all()
    assert [row.id for row in rows] == [demo_case.id]
    assert rows[0].title == demo_case.title
    assert Case.query.filter_by(title="Racing copy").count() == 0


def test_lost_race_on_create_is_reported_as_409(client, monkeypatch, login_lawyer):
    login_lawyer()
    _miss_first_lookup(monkeypatch)
    response = client.post("/api/cases", json={"title": "Racing copy", "caseNumber": "DIS-000001"})
    assert response.status_code == 409
    assert Case.query.filter_by(case_number="DIS-000001").count() == 1


def test_outsider_gets_forbidden_and_empty_list(client, demo_case, login_other_client):
    login_other_client()
    assert client.get(f"/api/cases/{demo_case.id}").status_code == 403
    assert client.patch(f"/api/cases/{demo_case.id}", json={"title": "Mine"}).status_code == 403
    assert client.delete(f"/api/cases/{demo_case.id}").status_code == 403

    body = client.get("/api/cases").get_json()
    assert body["cases"] == []
    assert body["total"] == 0


def test_list_cases_filters_and_paginates(client, demo_case, login_lawyer):
    login_lawyer()
    for index in range(3):
        client.post("/api/cases", json={"title": f"Matter {index}", "status": "pending"})

    body = client.get("/api/cases?limit=2&page=1").get_json()
    assert body["total"] == 4
    assert body["pages"] == 2
    assert len(body["cases"]) == 2
    assert "lawyerName" in body["cases"][0]
    assert "parties" not in body["cases"][0]

    pending = client.get("/api/cases?status=pending").get_json()
    assert pending["total"] == 3

    found = client.get("/api/cases?search=Housing").get_json()
    assert [c["id"] for c in found["cases"]] == [demo_case.id]

    assert client.get("/api/cases?status=won").get_json()["cases"] == []


def test_case_detail_lists_related_ids(client, demo_case, login_client):
    login_client()
    case = client.get(f"/api/cases/{demo_case.id}").get_json()["case"]
    assert len(case["events"]) == 1
    assert case["hearingCount"] == 1
    assert case["documents"] == []
    assert case["nextHearingDate"].endswith("Z")


def test_case_timeline(client, demo_case, login_lawyer):
    login_lawyer()
    events = client.get(f"/api/cases/{demo_case.id}/timeline").get_json()["events"]
    assert [e["type"] for e in events] == ["hearing"]


def test_secondary_lawyer_cannot_delete(client, demo_case, users, login_lawyer, login_associate):
    login_lawyer()
    client.patch(
        f"/api/cases/{demo_case.id}",
        json={"lawyers": [{"user": users["lawyer"].id}, {"user": users["associate"].id}]},
    )
    login_associate()
    assert client.get(f"/api/cases/{demo_case.id}").status_code == 200
    assert client.delete(f"/api/cases/{demo_case.id}").status_code == 403


def test_primary_lawyer_deletes_case(client, demo_case, login_lawyer):
    login_lawyer()
    case_id = demo_case.id
    assert client.delete(f"/api/cases/{case_id}").status_code == 200
    assert client.get(f"/api/cases/{case_id}").status_code == 404


def test_creating_case_notifies_other_members(client, users, login_lawyer):
    login_lawyer()
    response = client.post(
        "/api/cases",
        json={"title": "Notice matter", "clients": [{"user": users["other_client"].id}]},
    )
    case_id = response.get_json()["case"]["id"]

    notes = Notification.query.filter_by(link=f"/cases/{case_id}").all()
    assert [note.user_id for note in notes] == [users["other_client"].id]
