from __future__ import annotations

import logging
import time
from datetime import timedelta
from pathlib import Path
from typing import Any

from flask import current_app
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from adhivakta.core.access import (
    Action,
    authorize_case,
    authorize_document,
    can_download_document,
    document_visibility_clause,
)
from adhivakta.core.errors import FieldErrors, Forbidden, NotFound, StorageError, ValidationError
from adhivakta.core.identity import Identity
from adhivakta.core.models import (
    Document,
    DocumentAccess,
    DocumentCategory,
    DocumentFavorite,
    DocumentFileType,
    DocumentPermission,
    DocumentShare,
    DocumentStatus,
    Role,
    utcnow,
)
from adhivakta.core.repositories import Page, Repositories, default_repositories, paginate
from adhivakta.core.storage import get_blob_store
from adhivakta.core.utils import as_list, clean_text, lookup, parse_bool, parse_enum, parse_id, parse_paging

logger = logging.getLogger(__name__)

RECENT_WINDOW = timedelta(days=7)
_DOCUMENT_SORTS = {
    "created_at": Document.created_at,
    "updated_at": Document.updated_at,
    "name": Document.name,
    "size": Document.size,
}


def _get_document_or_404(document_id: int, repos: Repositories) -> Document:
    document = repos.documents.get(document_id)
    if document is None:
        raise NotFound("Document not found")
    return document


def file_type_for(extension: str) -> DocumentFileType:
    try:
        return DocumentFileType(extension.lower())
    except ValueError:
        return DocumentFileType.OTHER


def _normalize_tags(value: Any) -> str:
    tags: list[str] = []
    raw = value.split(",") if isinstance(value, str) else as_list(value)
    for tag in raw:
        text = str(tag).strip()
        if text and text not in tags:
            tags.append(text)
    return ",".join(tags)


def _build_path(case_id: int, filename: str) -> str:
    return f"cases/{case_id}/documents/{int(time.time() * 1000)}_{filename}"


def upload_document(
    file: FileStorage | None,
    form: dict[str, Any],
    identity: Identity,
    repos: Repositories | None = None,
) -> Document:
    """Store the blob first, then the metadata row; an orphaned blob is removed."""
    repos = repos or default_repositories()
    if file is None or not file.filename:
        raise ValidationError.for_field("file", "No file uploaded")

    _, raw_case = lookup(form, "caseId", "case", "case_id")
    case_id = parse_id(raw_case, "caseId")
    if case_id is None:
        raise ValidationError.for_field("caseId", "A case is required")
    case = repos.cases.get(case_id)
    if case is None:
        raise NotFound("Case not found")
    authorize_case(identity, case, Action.READ)

    filename = secure_filename(file.filename) or "document"
    data = file.read()
    if not data:
        raise ValidationError.for_field("file", "File is empty")

    errors = FieldErrors()
    try:
        name = clean_text(form.get("name") or filename, "name", 200, required=True)
    except ValidationError as exc:
        errors.merge(exc, "name")
        name = filename
    try:
        description = clean_text(form.get("description"), "description", 500)
    except ValidationError as exc:
        errors.merge(exc, "description")
        description = ""
    try:
        category = parse_enum(DocumentCategory, form.get("category"), "category", DocumentCategory.OTHER)
    except ValidationError as exc:
        errors.merge(exc, "category")
        category = DocumentCategory.OTHER
    errors.raise_if_any()

    extension = Path(filename).suffix.lstrip(".").lower()
    path = _build_path(case.id, filename)
    store = get_blob_store()
    url = store.upload(data, path, file.mimetype or "application/octet-stream")

    document = Document(
        name=name,
        original_name=file.filename,
        description=description,
        file_type=file_type_for(extension),
        mime_type=file.mimetype or "application/octet-stream",
        size=len(data),
        extension=extension,
        storage_path=path,
        url=url,
        category=category,
        tags=_normalize_tags(form.get("tags")),
        status=DocumentStatus.ACTIVE,
        version=1,
        is_confidential=parse_bool(form.get("isConfidential")),
        case_id=case.id,
        case_title=case.title,
        uploaded_by_user_id=identity.user_id,
        owner_user_id=identity.user_id,
    )
    try:
        repos.documents.add(document)
        repos.commit()
    except SQLAlchemyError:
        repos.rollback()
        try:
            store.delete(path)
        except StorageError:
            logger.warning("Could not remove orphaned blob %s", path)
        raise
    logger.info("Document %s uploaded to case %s by user %s", document.id, case.id, identity.user_id)
    return document


def get_document(document_id: int, identity: Identity, repos: Repositories | None = None) -> Document:
    repos = repos or default_repositories()
    document = _get_document_or_404(document_id, repos)
    authorize_document(identity, document, Action.READ)
    return document


def signed_url_for(document: Document, identity: Identity) -> str | None:
    if not can_download_document(identity, document):
        return None
    try:
        return get_blob_store().signed_url(document.storage_path)
    except StorageError:
        logger.warning("Could not sign url for document %s", document.id)
        return None


def update_document(
    document_id: int,
    payload: dict[str, Any],
    identity: Identity,
    repos: Repositories | None = None,
) -> Document:
    repos = repos or default_repositories()
    document = _get_document_or_404(document_id, repos)
    authorize_document(identity, document, Action.WRITE)
    if identity.is_client and lookup(payload, "status")[0]:
        raise Forbidden("Clients cannot change the document status")

    errors = FieldErrors()
    for key, max_length in (("name", 200), ("description", 500)):
        present, value = lookup(payload, key)
        if not present:
            continue
        try:
            setattr(document, key, clean_text(value, key, max_length, required=key == "name"))
        except ValidationError as exc:
            errors.merge(exc, key)
    for key, enum_cls in (("category", DocumentCategory), ("status", DocumentStatus)):
        present, value = lookup(payload, key)
        if not present:
            continue
        try:
            parsed = parse_enum(enum_cls, value, key)
        except ValidationError as exc:
            errors.merge(exc, key)
            continue
        if parsed is not None:
            setattr(document, key, parsed)
    present, value = lookup(payload, "tags")
    if present:
        document.tags = _normalize_tags(value)
    present, value = lookup(payload, "isConfidential", "is_confidential")
    if present:
        document.is_confidential = parse_bool(value)
    if errors:
        repos.rollback()
        errors.raise_if_any()
    repos.commit()
    return document


def delete_document(document_id: int, identity: Identity, repos: Repositories | None = None) -> None:
    repos = repos or default_repositories()
    document = _get_document_or_404(document_id, repos)
    if identity.is_client:
        raise Forbidden("Clients cannot delete documents")
    authorize_document(identity, document, Action.DELETE)
    path = document.storage_path
    try:
        get_blob_store().delete(path)
    except StorageError:
        logger.warning("Blob %s for document %s could not be removed", path, document_id)
    repos.documents.delete(document)
    repos.commit()
    logger.info("Document %s deleted by user %s", document_id, identity.user_id)


def share_document(
    document_id: int,
    payload: dict[str, Any],
    identity: Identity,
    repos: Repositories | None = None,
) -> Document:
    repos = repos or default_repositories()
    document = _get_document_or_404(document_id, repos)
    if identity.role not in (Role.LAWYER, Role.ADMIN):
        raise Forbidden("Only lawyers and admins can share documents")
    authorize_document(identity, document, Action.SHARE)

    permission = parse_enum(DocumentPermission, payload.get("permission"), "permission", DocumentPermission.VIEW)
    _, raw_users = lookup(payload, "userIds", "users", "user_ids")
    user_ids: list[int] = []
    for index, raw in enumerate(as_list(raw_users)):
        user_id = parse_id(raw, f"userIds[{index}]")
        if user_id is None or repos.users.get(user_id) is None:
            raise ValidationError.for_field(f"userIds[{index}]", "User not found")
        if user_id not in user_ids:
            user_ids.append(user_id)
    if not user_ids:
        raise ValidationError.for_field("userIds", "Select at least one user")

    grants = {grant.user_id: grant for grant in document.access_grants}
    shared = {share.user_id for share in document.shares}
    for user_id in user_ids:
        if user_id in grants:
            grants[user_id].permission = permission
        else:
            document.access_grants.append(DocumentAccess(user_id=user_id, permission=permission))
        if user_id not in shared:
            document.shares.append(DocumentShare(user_id=user_id, shared_by_user_id=identity.user_id))
    repos.commit()
    logger.info("Document %s shared with %s users", document.id, len(user_ids))
    return document


def toggle_favorite(document_id: int, identity: Identity, repos: Repositories | None = None) -> bool:
    repos = repos or default_repositories()
    document = _get_document_or_404(document_id, repos)
    authorize_document(identity, document, Action.READ)
    existing = next((f for f in document.favorites if f.user_id == identity.user_id), None)
    if existing is not None:
        document.favorites.remove(existing)
        favorite = False
    else:
        document.favorites.append(DocumentFavorite(user_id=identity.user_id))
        favorite = True
    repos.commit()
    return favorite


def list_documents(filters: dict[str, str], identity: Identity, repos: Repositories | None = None) -> Page:
    repos = repos or default_repositories()
    config = current_app.config
    page, limit = parse_paging(filters, config["DEFAULT_PAGE_SIZE"], config["MAX_PAGE_SIZE"])
    query = repos.documents.query()
    clause = document_visibility_clause(identity)
    if clause is not None:
        query = query.filter(clause)

    search = (filters.get("search") or "").strip()
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(Document.name.ilike(pattern), Document.description.ilike(pattern), Document.tags.ilike(pattern))
        )
    for key, enum_cls, column in (
        ("category", DocumentCategory, Document.category),
        ("status", DocumentStatus, Document.status),
    ):
        raw = (filters.get(key) or "").strip()
        if not raw:
            continue
        try:
            query = query.filter(column == parse_enum(enum_cls, raw, key))
        except ValidationError:
            return Page(items=[], total=0, page=page, limit=limit)
    raw_case = (filters.get("caseId") or filters.get("case_id") or "").strip()
    if raw_case:
        query = query.filter(Document.case_id == parse_id(raw_case, "caseId"))
    tag = (filters.get("tag") or "").strip()
    if tag:
        query = query.filter(Document.tags.ilike(f"%{tag}%"))

    tab = (filters.get("tab") or "").strip().lower()
    if tab == "recent":
        query = query.filter(Document.created_at >= utcnow() - RECENT_WINDOW)
    elif tab == "shared":
        query = query.filter(Document.shares.any(DocumentShare.user_id == identity.user_id))
    elif tab == "favorites":
        query = query.filter(Document.favorites.any(DocumentFavorite.user_id == identity.user_id))

    sort = (filters.get("sort") or "-created_at").strip()
    column = _DOCUMENT_SORTS.get(sort.lstrip("-"), Document.created_at)
    query = query.order_by(column.desc() if sort.startswith("-") else column.asc(), Document.id.desc())

    return paginate(query, page, limit)


def case_document_stats(case_id: int, identity: Identity, repos: Repositories | None = None) -> dict[str, Any]:
    repos = repos or default_repositories()
    case = repos.cases.get(case_id)
    if case is None:
        raise NotFound("Case not found")
    authorize_case(identity, case, Action.READ)
    rows = (
        repos.session.query(Document.category, func.count(Document.id), func.coalesce(func.sum(Document.size), 0))
        .filter(Document.case_id == case.id)
        .group_by(Document.category)
        .all()
    )
    by_category = {
        category.value: {"count": count, "totalSize": int(total_size)} for category, count, total_size in rows
    }
    return {
        "caseId": case.id,
        "totalDocuments": sum(item["count"] for item in by_category.values()),
        "totalSize": sum(item["totalSize"] for item in by_category.values()),
        "byCategory": by_category,
    }
