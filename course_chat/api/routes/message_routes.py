# course_chat/api/routes/message_routes.py

from flask import Blueprint, jsonify, request

from course_chat.api.container import get_container
from course_chat.api.middlewares.auth_middleware import (
    current_profile,
    current_user_id,
    require_auth,
    require_channel_access,
)
from course_chat.api.schemas.message_schema import (
    EditMessageRequest,
    MessageIdsRequest,
    MessageResponse,
    ReactionRequest,
    ReactionResponse,
    SendMessageRequest,
)

bp_msg = Blueprint("messages", __name__)


def _pack(message) -> dict:
    return MessageResponse.from_entity(message).model_dump()


@bp_msg.get("")
@require_auth
@require_channel_access
def list_messages(channel_code: str):
    c = get_container()
    with c.session_scope() as session:
        items = c.factory.messages(session).list_messages(channel_code=channel_code)

    return jsonify([_pack(x) for x in items]), 200


@bp_msg.post("")
@require_auth
@require_channel_access
def send_message(channel_code: str):
    payload = SendMessageRequest.model_validate(request.get_json(force=True))
    author = current_profile()

    c = get_container()
    with c.session_scope() as session:
        msg = c.factory.messages(session).send(
            channel_code=channel_code,
            author=author,
            text=payload.text,
            reply_to_id=payload.reply_to_id,
            message_type=payload.type,
        )

    return jsonify(_pack(msg)), 201


@bp_msg.get("/<int:message_id>")
@require_auth
@require_channel_access
def get_message(channel_code: str, message_id: int):
    c = get_container()
    with c.session_scope() as session:
        msg = c.factory.messages(session).get_message(channel_code=channel_code, message_id=message_id)

    return jsonify(_pack(msg)), 200


@bp_msg.patch("/<int:message_id>")
@require_auth
@require_channel_access
def edit_message(channel_code: str, message_id: int):
    payload = EditMessageRequest.model_validate(request.get_json(force=True))

    c = get_container()
    with c.session_scope() as session:
        msg = c.factory.messages(session).edit(
            channel_code=channel_code,
            message_id=message_id,
            author_id=current_user_id(),
            new_text=payload.text,
        )

    return jsonify(_pack(msg)), 200


@bp_msg.delete("/<int:message_id>")
@require_auth
@require_channel_access
def delete_message(channel_code: str, message_id: int):
    c = get_container()
    with c.session_scope() as session:
        c.factory.messages(session).delete(
            channel_code=channel_code,
            message_id=message_id,
            author_id=current_user_id(),
        )

    return ("", 204)


@bp_msg.post("/read")
@require_auth
@require_channel_access
def mark_read(channel_code: str):
    payload = MessageIdsRequest.model_validate(request.get_json(force=True))

    c = get_container()
    with c.session_scope() as session:
        added = c.factory.receipts(session).mark_read(
            channel_code=channel_code,
            message_ids=payload.message_ids,
            reader_id=current_user_id(),
        )

    return jsonify({"updated": added}), 200


@bp_msg.post("/delivered")
@require_auth
@require_channel_access
def mark_delivered(channel_code: str):
    payload = MessageIdsRequest.model_validate(request.get_json(force=True))

    c = get_container()
    with c.session_scope() as session:
        changed = c.factory.messages(session).mark_delivered(
            channel_code=channel_code,
            message_ids=payload.message_ids,
            reader_id=current_user_id(),
        )

    return jsonify({"updated": changed}), 200


# -------------------------
# Reactions
# -------------------------

@bp_msg.post("/<int:message_id>/reactions")
@require_auth
@require_channel_access
def add_reaction(channel_code: str, message_id: int):
    payload = ReactionRequest.model_validate(request.get_json(force=True))

    c = get_container()
    with c.session_scope() as session:
        state = c.factory.receipts(session).add_reaction(
            channel_code=channel_code,
            message_id=message_id,
            user_id=current_user_id(),
            emoji=payload.emoji,
        )

    return jsonify(ReactionResponse.from_entity(state).model_dump()), 200


@bp_msg.delete("/<int:message_id>/reactions")
@require_auth
@require_channel_access
def remove_reaction(channel_code: str, message_id: int):
    payload = ReactionRequest.model_validate(request.get_json(force=True))

    c = get_container()
    with c.session_scope() as session:
        state = c.factory.receipts(session).remove_reaction(
            channel_code=channel_code,
            message_id=message_id,
            user_id=current_user_id(),
            emoji=payload.emoji,
        )

    return jsonify(ReactionResponse.from_entity(state).model_dump()), 200


@bp_msg.post("/<int:message_id>/reactions/toggle")
@require_auth
@require_channel_access
def toggle_reaction(channel_code: str, message_id: int):
    payload = ReactionRequest.model_validate(request.get_json(force=True))

    c = get_container()
    with c.session_scope() as session:
        state = c.factory.receipts(session).toggle_reaction(
            channel_code=channel_code,
            message_id=message_id,
            user_id=current_user_id(),
            emoji=payload.emoji,
        )

    return jsonify(ReactionResponse.from_entity(state).model_dump()), 200
