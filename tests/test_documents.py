from __future__ import annotations

import io
from pathlib import Path

import pytest

from adhivakta.cases.documents import file_type_for, list_documents, upload_document
from adhivakta.core.errors import ValidationError
from adhivakta.core.models import Document, DocumentFileType


def _upload(client, case_id, name="petition.pdf", data=b"%PDF-1.4 petition", **form):
    payload = {"file": (io.BytesIO(data), name), "caseId": str(case_id), **form}
    return client.post("/api/documents", data=payload, content_type="multipart/form-data")


def test_file_type_for_known_and_unknown_extensions():
    assert file_type_for("PDF") == DocumentFileType.PDF
    assert file_type_for("docx") == DocumentFileType.DOCX
    assert file_type_for("exe") == DocumentFileType.OTHER


def test_upload_stores_blob_and_metadata(app, client, demo_case, users, login_lawyer):
    login_lawyer()
    response = _upload(client, demo_case.id, category="pleading", tags="plaint, urgent, plaint")
    assert response.status_code == 201
    document = response.get_json()["document"]

    assert document["name"] == "petition.pdf"
    assert document["fileType"] == "pdf"
    assert document["extension"] == "pdf"
    assert document["category"] == "pleading"
    assert document["tags"] == ["plaint", "urgent"]
    assert document["size"] == len(b"%PDF-1.4 petition")
    assert document["owner"] == users["lawyer"].id
    assert document["case"] == demo_case.id
    assert document["caseTitle"] == demo_case.title
    assert document["signedUrl"].startswith("/api/documents/blob/")

    stored = Document.query.filter_by(id=document["id"]).one()
    blob = Path(app.config["STORAGE_ROOT"]) / stored.storage_path
    assert blob.read_bytes() == b"%PDF-1.4 petition"
    assert stored.storage_path.startswith(f"cases/{demo_case.id}/documents/")


def test_signed_url_downloads_the_file(client, demo_case, login_lawyer):
    login_lawyer()
    signed_url = _upload(client, demo_case.id).get_json()["document"]["signedUrl"]
    response = client.get(signed_url)
    assert response.status_code == 200
    assert response.data == b"%PDF-1.4 petition"
    assert "petition.pdf" in response.headers["Content-Disposition"]


def test_tampered_token_is_rejected(client):
    response = client.get("/api/documents/blob/not-a-real-token")
    assert response.status_code == 403


def test_upload_validation(client, demo_case, login_lawyer):
    login_lawyer()
    missing_file = client.post(
        "/api/documents", data={"caseId": str(demo_case.id)}, content_type="multipart/form-data"
    )
    assert missing_file.status_code == 400
    assert "file" in missing_file.get_json()["error"]["fields"]

    empty = _upload(client, demo_case.id, data=b"")
    assert empty.status_code == 400

    no_case = client.post(
        "/api/documents",
        data={"file": (io.BytesIO(b"x"), "a.txt")},
        content_type="multipart/form-data",
    )
    assert no_case.status_code == 400
    assert "caseId" in no_case.get_json()["error"]["fields"]

    bad_category = _upload(client, demo_case.id, category="poetry")
    assert bad_category.status_code == 400
    assert Document.query.count() == 0


def test_outsider_cannot_upload_to_case(client, demo_case, login_other_client):
    login_other_client()
    assert _upload(client, demo_case.id).status_code == 403


def test_client_can_read_but_not_delete_or_restatus(client, demo_case, login_lawyer, login_client):
    login_lawyer()
    document_id = _upload(client, demo_case.id).get_json()["document"]["id"]

    login_client()
    detail = client.get(f"/api/documents/{document_id}")
    assert detail.status_code == 200
    assert detail.get_json()["document"]["signedUrl"]
    assert client.delete(f"/api/documents/{document_id}").status_code == 403
    assert client.patch(f"/api/documents/{document_id}", json={"name": "Mine"}).status_code == 403


def test_client_edits_own_upload_but_not_its_status(client, demo_case, login_client):
    login_client()
    document_id = _upload(client, demo_case.id, name="receipt.png", data=b"\x89PNG").get_json()["document"]["id"]

    renamed = client.patch(f"/api/documents/{document_id}", json={"name": "Deposit receipt", "tags": ["deposit"]})
    assert renamed.status_code == 200
    assert renamed.get_json()["document"]["name"] == "Deposit receipt"
    assert renamed.get_json()["document"]["tags"] == ["deposit"]

    assert client.patch(f"/api/documents/{document_id}", json={"status": "archived"}).status_code == 403


def test_lawyer_updates_and_deletes_document(app, client, demo_case, login_lawyer):
    login_lawyer()
    document_id = _upload(client, demo_case.id).get_json()["document"]["id"]
    path = Document.query.filter_by(id=document_id).one().storage_path

    updated = client.put(
        f"/api/documents/{document_id}",
        json={"status": "archived", "category": "evidence", "isConfidential": True},
    ).get_json()["document"]
    assert updated["status"] == "archived"
    assert updated["category"] == "evidence"
    assert updated["isConfidential"] is True

    assert client.delete(f"/api/documents/{document_id}").status_code == 200
    assert client.get(f"/api/documents/{document_id}").status_code == 404
    assert not (Path(app.config["STORAGE_ROOT"]) / path).exists()


def test_share_grants_access_to_outsider(client, demo_case, users, login_lawyer, login_other_client):
    login_lawyer()
    document_id = _upload(client, demo_case.id).get_json()["document"]["id"]
    shared = client.post(
        f"/api/documents/{document_id}/share",
        json={"userIds": [users["other_client"].id, users["other_client"].id], "permission": "download"},
    )
    assert shared.status_code == 200
    document = shared.get_json()["document"]
    assert document["sharedWith"] == [users["other_client"].id]
    assert document["accessibleTo"] == [{"user": users["other_client"].id, "permission": "download"}]

    login_other_client()
    detail = client.get(f"/api/documents/{document_id}").get_json()["document"]
    assert detail["signedUrl"]
    listed = client.get("/api/documents?tab=shared").get_json()
    assert [d["id"] for d in listed["documents"]] == [document_id]
    assert client.get(f"/api/cases/{demo_case.id}").status_code == 403


def test_share_requires_known_users_and_lawyer_role(client, demo_case, login_lawyer, login_client):
    login_lawyer()
    document_id = _upload(client, demo_case.id).get_json()["document"]["id"]
    assert client.post(f"/api/documents/{document_id}/share", json={"userIds": [9999]}).status_code == 400
    assert client.post(f"/api/documents/{document_id}/share", json={}).status_code == 400

    login_client()
    assert client.post(f"/api/documents/{document_id}/share", json={"userIds": [1]}).status_code == 403


def test_favorite_toggles(client, demo_case, login_client):
    login_client()
    document_id = _upload(client, demo_case.id).get_json()["document"]["id"]

    assert client.post(f"/api/documents/{document_id}/favorite").get_json()["isFavorite"] is True
    favorites = client.get("/api/documents?tab=favorites").get_json()
    assert [d["id"] for d in favorites["documents"]] == [document_id]
    assert favorites["documents"][0]["isFavorite"] is True

    assert client.post(f"/api/documents/{document_id}/favorite").get_json()["isFavorite"] is False
    assert client.get("/api/documents?tab=favorites").get_json()["documents"] == []


def test_list_documents_filters(client, demo_case, login_lawyer):
    login_lawyer()
    _upload(client, demo_case.id, name="plaint.pdf", category="pleading", tags="filing")
    _upload(client, demo_case.id, name="photo.jpg", data=b"\xff\xd8", category="evidence")
    _upload(client, demo_case.id, name="notes.txt", data=b"notes", description="hearing notes")

    everything = client.get("/api/documents").get_json()
    assert everything["total"] == 3
    assert [d["name"] for d in everything["documents"]][0] == "notes.txt"

    assert client.get("/api/documents?category=evidence").get_json()["total"] == 1
    assert client.get("/api/documents?category=poetry").get_json()["total"] == 0
    assert client.get("/api/documents?search=hearing").get_json()["total"] == 1
    assert client.get("/api/documents?tag=filing").get_json()["total"] == 1
    assert client.get(f"/api/documents?caseId={demo_case.id}&limit=2").get_json()["pages"] == 2
    assert client.get("/api/documents?tab=recent").get_json()["total"] == 3
    by_name = client.get("/api/documents?sort=name").get_json()["documents"]
    assert [d["name"] for d in by_name] == ["notes.txt", "photo.jpg", "plaint.pdf"]


def test_case_document_stats(client, demo_case, login_lawyer):
    login_lawyer()
    _upload(client, demo_case.id, data=b"12345", category="pleading")
    _upload(client, demo_case.id, data=b"123", category="pleading")
    _upload(client, demo_case.id, data=b"1", category="order")

    stats = client.get(f"/api/cases/{demo_case.id}/documents/stats").get_json()["stats"]
    assert stats["caseId"] == demo_case.id
    assert stats["totalDocuments"] == 3
    assert stats["totalSize"] == 9
    assert stats["byCategory"]["pleading"] == {"count": 2, "totalSize": 8}
    assert stats["byCategory"]["order"] == {"count": 1, "totalSize": 1}


def test_deleting_case_removes_its_blobs(app, client, demo_case, login_lawyer):
    login_lawyer()
    document_id = _upload(client, demo_case.id).get_json()["document"]["id"]
    path = Document.query.filter_by(id=document_id).one().storage_path

    assert client.delete(f"/api/cases/{demo_case.id}").status_code == 200
    assert Document.query.count() == 0
    assert not (Path(app.config["STORAGE_ROOT"]) / path).exists()


def test_service_rejects_missing_file_and_unknown_visibility(identities, demo_case):
    with pytest.raises(ValidationError):
        upload_document(None, {"caseId": demo_case.id}, identities["lawyer"])
    page = list_documents({}, identities["other_client"])
    assert page.items == []
    assert page.total == 0


def test_admin_sees_all_documents_but_cannot_edit(client, demo_case, login_lawyer, login_admin):
    login_lawyer()
    document_id = _upload(client, demo_case.id).get_json()["document"]["id"]

    login_admin()
    assert client.get("/api/documents").get_json()["total"] == 1
    assert client.patch(f"/api/documents/{document_id}", json={"name": "Admin"}).status_code == 403
    assert client.delete(f"/api/documents/{document_id}").status_code == 200