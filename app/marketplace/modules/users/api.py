from __future__ import annotations

from flask import Blueprint, abort, current_app

from app.marketplace.db import db_session
from app.marketplace.models import User
from app.marketplace.modules.users.service import (
    approve_user,
    delete_user,
    email_taken,
    get_user,
    list_users,
    signup,
    update_user,
    user_to_dict,
    validate_signup_payload,
    validate_user_updates,
)
from app.marketplace.rbac import current_user, require_admin, require_login, user_is_admin
from app.marketplace.utils import json_body

bp = Blueprint("users", __name__)


def _current_user() -> User:
    u = current_user()
    if not u:
        raise RuntimeError("No current user")
    return u


def _get_user_or_404(user_id: int) -> User:
    user = get_user(db_session(), user_id)
    if not user:
        abort(404, description="User does not exist!")
    return user


@bp.get("/users/<int:user_id>")
@require_login
def user_detail(user_id: int):
    u = _current_user()
    user = _get_user_or_404(user_id)
    # Relations only for the user themself (or an admin).
    full = u.id == user.id or user_is_admin(u)
    return user_to_dict(user, full=full)


@bp.get("/admin/users/pending")
@require_admin
def users_pending():
    s = db_session()
    users = list_users(s)
    if not users:
        abort(404, description="No Users so far!")
    return [user_to_dict(x) for x in users if not x.approved]


@bp.patch("/admin/users/<int:user_id>")
@require_admin
def user_update(user_id: int):
    s = db_session()
    u = _current_user()
    user = _get_user_or_404(user_id)
    payload = json_body()

    errors = validate_user_updates(payload)
    if not errors and "email" in payload and email_taken(s, payload["email"], exclude_user_id=user.id):
        errors.append("An account with this email already exists.")
    if errors:
        abort(400, description=" ".join(errors))

    user = update_user(s, user, payload, u)
    s.commit()
    return user_to_dict(user)


@bp.patch("/admin/users/<int:user_id>/approve")
@require_admin
def user_approve(user_id: int):
    s = db_session()
    u = _current_user()
    user = _get_user_or_404(user_id)
    user = approve_user(s, user, u)
    s.commit()
    return user_to_dict(user)


@bp.delete("/admin/users/<int:user_id>")
@require_admin
def user_delete(user_id: int):
    s = db_session()
    u = _current_user()
    user = _get_user_or_404(user_id)
    if user.id == u.id:
        abort(400, description="You cannot delete your own account.")
    delete_user(s, user, u)
    s.commit()
    current_app.logger.info("User deleted: user_id=%s by admin_id=%s", user_id, u.id)
    return {"message": "You successfully deleted the user!"}


@bp.get("/users")
@require_admin
def users_list():
    s = db_session()
    return [user_to_dict(x) for x in list_users(s)]


@bp.post("/users")
def user_signup():
    s = db_session()
    payload = json_body()

    errors = validate_signup_payload(payload)
    if not errors and email_taken(s, payload["email"]):
        errors.append("An account with this email already exists.")
    if errors:
        abort(400, description=" ".join(errors))

    user = signup(s, payload)
    s.commit()
    return user_to_dict(user, full=True)
