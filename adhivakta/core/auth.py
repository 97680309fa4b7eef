from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from sqlalchemy import or_

from adhivakta.cases.serializers import serialize_user, user_summary
from adhivakta.core.errors import Conflict, FieldErrors, NotFound, Unauthenticated, ValidationError
from adhivakta.core.extensions import db
from adhivakta.core.models import Role, User
from adhivakta.core.permissions import require_role
from adhivakta.core.utils import clean_text, lookup, parse_enum, parse_int

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")
users_bp = Blueprint("users", __name__, url_prefix="/api/users")

MIN_PASSWORD_LENGTH = 6
SELF_SERVICE_ROLES = (Role.CLIENT, Role.LAWYER)
_PROFILE_FIELDS = (
    ("name", "full_name", 120),
    ("phone", "phone", 30),
    ("address", "address", 500),
    ("barCouncilNumber", "bar_council_number", 50),
    ("specialization", "specialization", 120),
    ("bio", "bio", 1000),
)


def _payload() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _check_password(value, field: str = "password") -> str:
    password = value if isinstance(value, str) else ""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError.for_field(field, f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


def _apply_profile(user: User, payload: dict, errors: FieldErrors) -> None:
    for key, attr, max_length in _PROFILE_FIELDS:
        present, value = lookup(payload, key, attr)
        if not present:
            continue
        try:
            setattr(user, attr, clean_text(value, key, max_length, required=attr == "full_name"))
        except ValidationError as exc:
            errors.merge(exc, key)
    present, value = lookup(payload, "yearsOfExperience", "years_of_experience")
    if present:
        try:
            user.years_of_experience = parse_int(value, "yearsOfExperience", minimum=0)
        except ValidationError as exc:
            errors.merge(exc, "yearsOfExperience")


def create_user(payload: dict, roles: tuple[Role, ...] = SELF_SERVICE_ROLES) -> User:
    errors = FieldErrors()
    try:
        email = clean_text(payload.get("email"), "email", 255, required=True).lower()
    except ValidationError as exc:
        errors.merge(exc, "email")
        email = ""
    try:
        password = _check_password(payload.get("password"))
    except ValidationError as exc:
        errors.merge(exc, "password")
        password = ""
    try:
        role = parse_enum(Role, payload.get("role"), "role", Role.CLIENT)
        if role not in roles:
            raise ValidationError.for_field("role", "This role cannot be registered")
    except ValidationError as exc:
        errors.merge(exc, "role")
        role = Role.CLIENT

    user = User(role=role, full_name="")
    try:
        user.email = email
    except ValidationError as exc:
        errors.merge(exc, "email")
    _apply_profile(user, payload, errors)
    if not user.full_name:
        errors.add("name", "This field is required")
    errors.raise_if_any()

    if User.query.filter_by(email=user.email).first():
        raise Conflict("An account with this email already exists", fields={"email": "Already registered"})
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    logger.info("User %s registered as %s", user.id, user.role.value)
    return user


@auth_bp.post("/register")
def register():
    user = create_user(_payload())
    login_user(user)
    return jsonify({"success": True, "user": serialize_user(user)}), 201


@auth_bp.post("/login")
def login():
    payload = _payload()
    email = str(payload.get("email") or "").strip().lower()
    password = str(payload.get("password") or "")
    user = User.query.filter_by(email=email).first()
    if not user or not user.is_active or not user.check_password(password):
        logger.warning("Failed login for %s", email or "<empty>")
        raise Unauthenticated("Invalid credentials")
    login_user(user)
    return jsonify({"success": True, "user": serialize_user(user)})


@auth_bp.post("/logout")
@login_required
def logout():
    logout_user()
    return jsonify({"success": True})


@auth_bp.get("/me")
@login_required
def me():
    return jsonify({"success": True, "user": serialize_user(current_user)})


@auth_bp.route("/profile", methods=["PUT", "PATCH"])
@login_required
def update_profile():
    payload = _payload()
    if lookup(payload, "email")[0] and str(payload["email"]).strip().lower() != current_user.email:
        raise ValidationError.for_field("email", "Email cannot be changed")
    errors = FieldErrors()
    _apply_profile(current_user, payload, errors)
    if errors:
        db.session.rollback()
        errors.raise_if_any()
    db.session.commit()
    return jsonify({"success": True, "user": serialize_user(current_user)})


@auth_bp.post("/change-password")
@login_required
def change_password():
    payload = _payload()
    if not current_user.check_password(str(payload.get("currentPassword") or "")):
        raise ValidationError.for_field("currentPassword", "Current password is incorrect")
    current_user.set_password(_check_password(payload.get("newPassword"), "newPassword"))
    db.session.commit()
    logger.info("User %s changed password", current_user.id)
    return jsonify({"success": True})


@users_bp.get("")
@login_required
@require_role(Role.LAWYER, Role.ADMIN)
def search_users():
    query = User.query.filter(User.is_active.is_(True))
    role = (request.args.get("role") or "").strip()
    if role:
        query = query.filter(User.role == parse_enum(Role, role, "role"))
    text = (request.args.get("search") or "").strip()
    if text:
        like = f"%{text}%"
        query = query.filter(or_(User.full_name.ilike(like), User.email.ilike(like)))
    limit = min(request.args.get("limit", 20, type=int) or 20, current_app.config["MAX_PAGE_SIZE"])
    users = query.order_by(User.full_name.asc()).limit(limit).all()
    return jsonify({"success": True, "users": [user_summary(user) for user in users]})


@users_bp.get("/<int:user_id>")
@login_required
@require_role(Role.ADMIN)
def user_detail(user_id: int):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return jsonify({"success": True, "user": serialize_user(user)})
