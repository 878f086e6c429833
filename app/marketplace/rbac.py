from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import abort, g

from app.marketplace.models import User

NOT_AUTHORIZED_MESSAGE = "You are not authorized to use this route."


def current_user() -> User | None:
    return getattr(g, "current_user", None)


def user_is_admin(user: User | None) -> bool:
    if not user or not user.approved:
        return False
    return user.is_admin


def require_login(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        if current_user() is None:
            abort(401, description="Login required.")
        return fn(*args, **kwargs)

    return wrapped


def require_admin(fn: Callable[..., Any]) -> Callable[..., Any]:
    """
    Admin-only guard. Runs before the view body, so a refused caller never
    triggers a lookup or a mutation.
    """

    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        user = current_user()
        if user is None:
            abort(401, description="Login required.")
        # Authenticated but not admin -> 400, same error kind as bad input.
        if not user_is_admin(user):
            g.missing_role = "admin"
            abort(400, description=NOT_AUTHORIZED_MESSAGE)
        return fn(*args, **kwargs)

    return wrapped
