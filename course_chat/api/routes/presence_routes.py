# course_chat/api/routes/presence_routes.py

import logging

from flask import Blueprint, jsonify, request

from course_chat.api.container import get_container
from course_chat.api.middlewares.auth_middleware import current_profile, current_user_id, require_auth
from course_chat.api.schemas.presence_schema import OnlineUsersResponse, PresenceQuery, PresenceResponse

logger = logging.getLogger(__name__)

bp_presence = Blueprint("presence", __name__)


@bp_presence.post("/online")
@require_auth
def go_online():
    profile = current_profile()
    c = get_container()
    with c.session_scope() as session:
        svc = c.factory.presence(session)
        svc.announce(profile=profile)
        record = svc.get(user_id=profile.user_id)

    return jsonify(PresenceResponse.from_entity(record).model_dump()), 200


@bp_presence.post("/heartbeat")
@require_auth
def heartbeat():
    c = get_container()
    with c.session_scope() as session:
        ok = c.factory.presence(session).heartbeat(user_id=current_user_id())

    return jsonify({"updated": ok}), 200


@bp_presence.post("/offline")
@require_auth
def go_offline():
    user_id = current_user_id()
    c = get_container()
    try:
        with c.session_scope() as session:
            c.factory.presence(session).withdraw(user_id=user_id)
    except Exception as e:
        # logout goes on, the 120s staleness floor takes the user offline anyway
        logger.warning("presence withdraw failed for %s: %s", user_id, e)
        return jsonify({"updated": False}), 200

    return jsonify({"updated": True}), 200


@bp_presence.get("/online")
@require_auth
def list_online():
    query = PresenceQuery.model_validate(request.args.to_dict())
    c = get_container()
    try:
        with c.session_scope() as session:
            users = c.factory.presence(session).list_online(presence_filter=query.to_filter())
    except Exception as e:
        logger.warning("online list failed: %s", e)
        users = []

    response = OnlineUsersResponse(
        count=len(users),
        users=[PresenceResponse.from_entity(u) for u in users],
    )
    return jsonify(response.model_dump()), 200
