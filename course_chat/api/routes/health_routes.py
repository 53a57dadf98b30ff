from flask import Blueprint, jsonify
from sqlalchemy import text

from course_chat.api.container import get_container

bp_health = Blueprint("health", __name__)


@bp_health.get("")
def health():
    return jsonify({"status": "ok"}), 200


@bp_health.get("/db")
def health_db():
    with get_container().session_scope() as session:
        session.execute(text("select 1"))
    return jsonify({"db": "ok"}), 200
