from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from app.marketplace.audit import record_event
from app.marketplace.constants import (
    MAX_EMAIL_LENGTH,
    MIN_PASSWORD_LENGTH,
    PROFILE_FIELD_MAX_LENGTHS,
    PROFILE_FIELDS,
    ROLE_USER,
    VALID_ROLES,
)
from app.marketplace.utils import clean_str, is_valid_email, isoformat

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.marketplace.models import User
    from app.marketplace.modules.users.models import Profile

logger = logging.getLogger(__name__)


def profile_to_dict(profile: "Profile | None") -> dict | None:
    if profile is None:
        return None
    data: dict[str, Any] = {"id": profile.id}
    for field in PROFILE_FIELDS:
        data[field] = getattr(profile, field)
    return data


def user_to_dict(user: "User", *, full: bool = False) -> dict:
    """
    Sparse shape by default (never includes the password hash).
    full=True adds profile, products and orders.
    """
    from app.marketplace.modules.orders.service import order_to_dict
    from app.marketplace.modules.products.service import product_to_dict

    data: dict[str, Any] = {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "approved": user.approved,
        "created_at": isoformat(user.created_at),
    }
    if full:
        data["profile"] = profile_to_dict(user.profile)
        data["products"] = [product_to_dict(p) for p in user.products]
        data["orders"] = [order_to_dict(o, include_buyer=False) for o in user.orders]
    return data


def _validate_password(password: Any, errors: list[str]) -> None:
    if not isinstance(password, str) or not password:
        errors.append("Password is required.")
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")


def _validate_profile_fields(payload: dict, errors: list[str]) -> None:
    for field in PROFILE_FIELDS:
        value = payload.get(field)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            errors.append(f"{field} must be a string.")
        elif len(str(value).strip()) > PROFILE_FIELD_MAX_LENGTHS[field]:
            errors.append(f"{field} must be at most {PROFILE_FIELD_MAX_LENGTHS[field]} characters.")


def _validate_email(email: Any, errors: list[str]) -> None:
    if not isinstance(email, str) or not email.strip():
        errors.append("Email is required.")
    elif len(email.strip()) > MAX_EMAIL_LENGTH:
        errors.append(f"Email must be at most {MAX_EMAIL_LENGTH} characters.")
    elif not is_valid_email(email.strip()):
        errors.append("Invalid email format.")


def validate_signup_payload(payload: dict) -> list[str]:
    """Validate signup payload. Returns list of errors."""
    errors: list[str] = []
    _validate_email(payload.get("email"), errors)
    _validate_password(payload.get("password"), errors)
    _validate_profile_fields(payload, errors)
    return errors


def validate_user_updates(payload: dict) -> list[str]:
    """Validate an admin patch. Only supplied keys are checked."""
    errors: list[str] = []
    if "email" in payload:
        _validate_email(payload.get("email"), errors)
    if "role" in payload and payload.get("role") not in VALID_ROLES:
        errors.append(f"Invalid role. Must be one of: {', '.join(VALID_ROLES)}")
    if "approved" in payload and not isinstance(payload.get("approved"), bool):
        errors.append("approved must be true or false.")
    if "password" in payload:
        _validate_password(payload.get("password"), errors)
    if "profile" in payload:
        profile = payload.get("profile")
        if not isinstance(profile, dict):
            errors.append("profile must be an object.")
        else:
            _validate_profile_fields(profile, errors)
    return errors


def email_taken(s: "Session", email: str, *, exclude_user_id: int | None = None) -> bool:
    from app.marketplace.models import User

    q = s.query(User).filter(User.email == email.strip().lower())
    if exclude_user_id is not None:
        q = q.filter(User.id != exclude_user_id)
    return q.first() is not None


def get_user(s: "Session", user_id: int) -> "User | None":
    from app.marketplace.models import User

    return s.get(User, user_id)


def list_users(s: "Session") -> list["User"]:
    from app.marketplace.models import User

    return s.query(User).order_by(User.id.asc()).all()


def signup(s: "Session", payload: dict) -> "User":
    """
    Create Profile first, then the User linked to it.
    Signup accounts are approved immediately and never admins.
    """
    from app.marketplace.models import User
    from app.marketplace.modules.users.models import Profile

    email = payload["email"].strip().lower()

    profile = Profile(**{f: clean_str(payload.get(f)) for f in PROFILE_FIELDS})
    s.add(profile)
    s.flush()

    user = User(email=email, role=ROLE_USER, approved=True)
    user.set_password(payload["password"])
    user.profile = profile
    s.add(user)
    s.flush()

    record_event(
        s,
        actor=user,
        action="user.signup",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"email": email},
    )
    logger.info("Signup: user_id=%s email=%s", user.id, email)
    return user


def update_user(s: "Session", user: "User", payload: dict, actor: "User") -> "User":
    """Merge supplied fields into the user. Unknown keys are ignored."""
    from app.marketplace.modules.users.models import Profile

    changes: dict[str, Any] = {}

    if "email" in payload:
        new_email = payload["email"].strip().lower()
        if new_email != user.email:
            changes["email"] = {"old": user.email, "new": new_email}
            user.email = new_email

    if "role" in payload and payload["role"] != user.role:
        changes["role"] = {"old": user.role, "new": payload["role"]}
        user.role = payload["role"]

    if "approved" in payload and payload["approved"] != user.approved:
        changes["approved"] = {"old": user.approved, "new": payload["approved"]}
        user.approved = payload["approved"]

    if "password" in payload:
        user.set_password(payload["password"])
        changes["password"] = "reset"

    if "profile" in payload:
        if user.profile is None:
            user.profile = Profile()
        for field in PROFILE_FIELDS:
            if field in payload["profile"]:
                new_value = clean_str(payload["profile"][field])
                old_value = getattr(user.profile, field)
                if new_value != old_value:
                    changes[f"profile.{field}"] = {"old": old_value, "new": new_value}
                    setattr(user.profile, field, new_value)

    record_event(
        s,
        actor=actor,
        action="user.update",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"email": user.email, "changes": changes},
    )
    return user


def approve_user(s: "Session", user: "User", actor: "User") -> "User":
    user.approved = True
    record_event(
        s,
        actor=actor,
        action="user.approve",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"email": user.email},
    )
    return user


def delete_user(s: "Session", user: "User", actor: "User") -> None:
    """Hard delete; profile, orders and products go with the user."""
    record_event(
        s,
        actor=actor,
        action="user.delete",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"email": user.email},
    )
    s.delete(user)
