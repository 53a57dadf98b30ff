# course_chat/api/routes/channel_routes.py

from __future__ import annotations

import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify, request

from course_chat.api.container import get_container
from course_chat.api.middlewares.auth_middleware import (
    current_membership,
    current_profile,
    current_user_id,
    require_auth,
    require_channel_access,
)
from course_chat.api.schemas.message_schema import (
    ChannelListItemResponse,
    ChannelPreviewResponse,
    ChannelStatsResponse,
)
from course_chat.api.schemas.presence_schema import TypingRequest, TypingUserResponse
from course_chat.core.freshness import as_utc

logger = logging.getLogger(__name__)

_NEVER = datetime.min.replace(tzinfo=timezone.utc)

bp_channels = Blueprint("channels", __name__)


# -------------------------
# Queries
# -------------------------

@bp_channels.get("")
@require_auth
def list_channels():
    user_id = current_user_id()
    codes = current_membership().sorted_channels()

    c = get_container()
    # the list favours availability: a failed preview or count renders empty
    try:
        with c.session_scope() as session:
            previews = c.factory.messages(session).recent_previews(channel_codes=codes)
    except Exception as e:
        logger.warning("channel previews failed for %s: %s", user_id, e)
        previews = {}

    try:
        with c.session_scope() as session:
            unread = c.factory.unread(session).unread_counts_for_channels(channel_codes=codes, user_id=user_id)
    except Exception as e:
        logger.warning("unread counts failed for %s: %s", user_id, e)
        unread = {}

    items = []
    for code in codes:
        preview = previews.get(code)
        items.append(
            ChannelListItemResponse(
                channel=code,
                last_message=ChannelPreviewResponse.from_entity(preview) if preview else None,
                last_activity=preview.last_activity if preview else None,
                unread_count=unread.get(code, 0),
            )
        )

    # most recent activity first, silent channels last
    items.sort(key=lambda x: as_utc(x.last_activity) if x.last_activity else _NEVER, reverse=True)
    return jsonify([x.model_dump() for x in items]), 200


@bp_channels.get("/<channel_code>/preview")
@require_auth
@require_channel_access
def channel_preview(channel_code: str):
    c = get_container()
    with c.session_scope() as session:
        preview = c.factory.messages(session).last_message_preview(channel_code=channel_code)

    if preview is None:
        return jsonify(None), 200
    return jsonify(ChannelPreviewResponse.from_entity(preview).model_dump()), 200


@bp_channels.get("/<channel_code>/unread")
@require_auth
@require_channel_access
def unread_count(channel_code: str):
    user_id = current_user_id()
    c = get_container()
    try:
        with c.session_scope() as session:
            count = c.factory.unread(session).unread_count(channel_code=channel_code, user_id=user_id)
    except Exception as e:
        logger.warning("unread count failed for %s/%s: %s", channel_code, user_id, e)
        count = 0

    return jsonify({"channel": channel_code, "unread_count": count}), 200


@bp_channels.get("/<channel_code>/stats")
@require_auth
@require_channel_access
def channel_stats(channel_code: str):
    c = get_container()
    with c.session_scope() as session:
        stats = c.factory.messages(session).channel_stats(channel_code=channel_code)

    return jsonify(ChannelStatsResponse.from_entity(stats).model_dump()), 200


# -------------------------
# Typing
# -------------------------

@bp_channels.put("/<channel_code>/typing")
@require_auth
@require_channel_access
def set_typing(channel_code: str):
    payload = TypingRequest.model_validate(request.get_json(force=True))
    profile = current_profile()

    c = get_container()
    try:
        with c.session_scope() as session:
            c.factory.typing(session).set_typing(
                channel_code=channel_code,
                profile=profile,
                is_typing=payload.is_typing,
            )
    except Exception as e:
        # fire-and-forget: a lost typing write is never a user-facing error
        logger.warning("typing update failed for %s/%s: %s", channel_code, profile.user_id, e)
        return jsonify({"accepted": False}), 202

    return jsonify({"accepted": True}), 202


@bp_channels.get("/<channel_code>/typing")
@require_auth
@require_channel_access
def list_typing(channel_code: str):
    user_id = current_user_id()
    c = get_container()
    try:
        with c.session_scope() as session:
            typers = c.factory.typing(session).active_typers(channel_code=channel_code, exclude_user_id=user_id)
    except Exception as e:
        logger.warning("typing list failed for %s: %s", channel_code, e)
        typers = []

    return jsonify([TypingUserResponse.from_entity(t).model_dump() for t in typers]), 200
