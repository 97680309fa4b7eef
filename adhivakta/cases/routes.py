from __future__ import annotations

from flask import current_app, jsonify, request, send_file
from flask_login import login_required

from adhivakta.cases import cases_bp
from adhivakta.cases.alerts import (
    delete_notification,
    list_notifications,
    mark_all_notifications_read,
    mark_notification_read,
)
from adhivakta.cases.dashboard import dashboard_summary, recent_cases, upcoming_events
from adhivakta.cases.documents import (
    case_document_stats,
    delete_document,
    get_document,
    list_documents,
    share_document,
    signed_url_for,
    toggle_favorite,
    update_document,
    upload_document,
)
from adhivakta.cases.events import create_event, delete_event, get_event, list_events, update_event
from adhivakta.cases.serializers import (
    page_meta,
    serialize_case,
    serialize_document,
    serialize_event,
    serialize_notification,
    serialize_upcoming,
)
from adhivakta.cases.services import case_timeline, create_case, delete_case, get_case, list_cases, update_case
from adhivakta.core.errors import NotFound, ValidationError
from adhivakta.core.identity import current_identity
from adhivakta.core.models import Role
from adhivakta.core.permissions import require_role
from adhivakta.core.storage import LocalBlobStore, get_blob_store
from adhivakta.core.utils import parse_bool


def _json_payload() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def _document_json(document, identity):
    return serialize_document(document, identity, signed_url_for(document, identity))


# Cases


@cases_bp.get("/cases")
@login_required
def cases_list():
    page = list_cases(request.args.to_dict(), current_identity())
    return jsonify(
        {
            "success": True,
            "cases": [serialize_case(case, detail=False) for case in page.items],
            **page_meta(page),
        }
    )


@cases_bp.post("/cases")
@login_required
@require_role(Role.LAWYER, Role.CLIENT)
def cases_create():
    case = create_case(_json_payload(), current_identity())
    return jsonify({"success": True, "case": serialize_case(case)}), 201


@cases_bp.get("/cases/<int:case_id>")
@login_required
def cases_detail(case_id: int):
    case = get_case(case_id, current_identity())
    return jsonify({"success": True, "case": serialize_case(case)})


@cases_bp.route("/cases/<int:case_id>", methods=["PUT", "PATCH"])
@login_required
def cases_update(case_id: int):
    case = update_case(case_id, _json_payload(), current_identity())
    return jsonify({"success": True, "case": serialize_case(case)})


@cases_bp.delete("/cases/<int:case_id>")
@login_required
def cases_delete(case_id: int):
    delete_case(case_id, current_identity())
    return jsonify({"success": True})


@cases_bp.get("/cases/<int:case_id>/timeline")
@login_required
def cases_timeline(case_id: int):
    events = case_timeline(case_id, current_identity())
    return jsonify({"success": True, "events": [serialize_event(event) for event in events]})


@cases_bp.get("/cases/<int:case_id>/documents/stats")
@login_required
def cases_document_stats(case_id: int):
    return jsonify({"success": True, "stats": case_document_stats(case_id, current_identity())})


# Events


@cases_bp.get("/events")
@login_required
def events_list():
    events = list_events(request.args.to_dict(), current_identity())
    return jsonify({"success": True, "events": [serialize_event(event) for event in events], "count": len(events)})


@cases_bp.post("/events")
@login_required
def events_create():
    event = create_event(_json_payload(), current_identity())
    return jsonify({"success": True, "event": serialize_event(event)}), 201


@cases_bp.get("/events/<int:event_id>")
@login_required
def events_detail(event_id: int):
    event = get_event(event_id, current_identity())
    return jsonify({"success": True, "event": serialize_event(event)})


@cases_bp.route("/events/<int:event_id>", methods=["PUT", "PATCH"])
@login_required
def events_update(event_id: int):
    event = update_event(event_id, _json_payload(), current_identity())
    return jsonify({"success": True, "event": serialize_event(event)})


@cases_bp.delete("/events/<int:event_id>")
@login_required
def events_delete(event_id: int):
    delete_event(event_id, current_identity())
    return jsonify({"success": True})


# Documents


@cases_bp.get("/documents")
@login_required
def documents_list():
    identity = current_identity()
    page = list_documents(request.args.to_dict(), identity)
    return jsonify(
        {
            "success": True,
            "documents": [_document_json(document, identity) for document in page.items],
            **page_meta(page),
        }
    )


@cases_bp.post("/documents")
@login_required
def documents_upload():
    identity = current_identity()
    document = upload_document(request.files.get("file"), request.form.to_dict(), identity)
    return jsonify({"success": True, "document": _document_json(document, identity)}), 201


@cases_bp.get("/documents/<int:document_id>")
@login_required
def documents_detail(document_id: int):
    identity = current_identity()
    document = get_document(document_id, identity)
    return jsonify({"success": True, "document": _document_json(document, identity)})


@cases_bp.route("/documents/<int:document_id>", methods=["PUT", "PATCH"])
@login_required
def documents_update(document_id: int):
    identity = current_identity()
    document = update_document(document_id, _json_payload(), identity)
    return jsonify({"success": True, "document": _document_json(document, identity)})


@cases_bp.delete("/documents/<int:document_id>")
@login_required
def documents_delete(document_id: int):
    delete_document(document_id, current_identity())
    return jsonify({"success": True})


@cases_bp.post("/documents/<int:document_id>/share")
@login_required
@require_role(Role.LAWYER, Role.ADMIN)
def documents_share(document_id: int):
    identity = current_identity()
    document = share_document(document_id, _json_payload(), identity)
    return jsonify({"success": True, "document": _document_json(document, identity)})


@cases_bp.post("/documents/<int:document_id>/favorite")
@login_required
def documents_favorite(document_id: int):
    favorite = toggle_favorite(document_id, current_identity())
    return jsonify({"success": True, "isFavorite": favorite})


@cases_bp.get("/documents/blob/<token>")
def download_blob(token: str):
    store = get_blob_store()
    if not isinstance(store, LocalBlobStore):
        raise NotFound()
    path = store.resolve_token(token)
    current_app.logger.debug("Serving blob %s", path.name)
    return send_file(path, as_attachment=True, download_name=path.name.split("_", 1)[-1])


# Dashboard


@cases_bp.get("/dashboard/summary")
@login_required
def dashboard_stats():
    return jsonify({"success": True, "summary": dashboard_summary(current_identity())})


@cases_bp.get("/dashboard/recent-cases")
@login_required
def dashboard_recent_cases():
    cases = recent_cases(current_identity())
    return jsonify({"success": True, "cases": [serialize_case(case, detail=False) for case in cases]})


@cases_bp.get("/dashboard/upcoming-events")
@login_required
def dashboard_upcoming_events():
    limit = min(max(request.args.get("limit", 10, type=int) or 10, 1), 50)
    entries = upcoming_events(current_identity(), limit=limit)
    return jsonify({"success": True, "events": [serialize_upcoming(entry) for entry in entries]})


# Notifications


@cases_bp.get("/notifications")
@login_required
def notifications_list():
    unread_only = parse_bool(request.args.get("unread"))
    notifications = list_notifications(current_identity(), unread_only=unread_only)
    return jsonify(
        {
            "success": True,
            "notifications": [serialize_notification(item) for item in notifications],
            "unread": sum(1 for item in notifications if not item.read),
        }
    )


@cases_bp.post("/notifications/<int:notification_id>/read")
@login_required
def notifications_mark_read(notification_id: int):
    notification = mark_notification_read(notification_id, current_identity())
    return jsonify({"success": True, "notification": serialize_notification(notification)})


@cases_bp.post("/notifications/read-all")
@login_required
def notifications_mark_all_read():
    updated = mark_all_notifications_read(current_identity())
    return jsonify({"success": True, "updated": updated})


@cases_bp.delete("/notifications/<int:notification_id>")
@login_required
def notifications_delete(notification_id: int):
    delete_notification(notification_id, current_identity())
    return jsonify({"success": True})
