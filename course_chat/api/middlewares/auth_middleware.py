from functools import wraps
from typing import Any, Callable, TypeVar

from flask import g, request

from course_chat.api.container import get_container
from course_chat.core.exceptions import ForbiddenError, UnauthenticatedError
from course_chat.core.channels import normalize_channel_code
from course_chat.entities.user import ChannelMembership, UserProfile

F = TypeVar("F", bound=Callable[..., Any])


def _get_bearer_token() -> str:
    auth = request.headers.get("Authorization", "")
    parts = auth.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    raise UnauthenticatedError("Missing token.")


def require_auth(fn: F) -> F:
    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = _get_bearer_token()
        g.user_id = get_container().jwt.user_id_from(token)
        return fn(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_user_id() -> str:
    user_id = getattr(g, "user_id", None)
    if not user_id:
        raise UnauthenticatedError("Missing token.")
    return user_id


def current_profile() -> UserProfile:
    if getattr(g, "profile", None) is None:
        profile = get_container().directory.get_profile(current_user_id())
        if profile is None:
            raise UnauthenticatedError("Unknown account.")
        g.profile = profile
    return g.profile


def current_membership() -> ChannelMembership:
    # resolved once per request
    if getattr(g, "membership", None) is None:
        g.membership = get_container().directory.get_membership(current_user_id())
    return g.membership


def require_channel_access(fn: F) -> F:
    """For routes with a <channel_code> segment; normalizes it in place."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        code = normalize_channel_code(kwargs.get("channel_code"))
        if not current_membership().can_access(code):
            raise ForbiddenError(f"No access to channel {code}.")
        kwargs["channel_code"] = code
        return fn(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
