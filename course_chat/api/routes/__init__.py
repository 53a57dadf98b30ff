# course_chat/api/routes/__init__.py

from flask import Flask

from course_chat.api.routes.health_routes import bp_health
from course_chat.api.routes.channel_routes import bp_channels
from course_chat.api.routes.message_routes import bp_msg
from course_chat.api.routes.presence_routes import bp_presence


def register_routes(app: Flask, *, api_prefix: str, app_prefix: str) -> None:
    # health outside /api
    app.register_blueprint(bp_health, url_prefix=f"{app_prefix}/health")

    app.register_blueprint(bp_channels, url_prefix=f"{api_prefix}/channels")
    app.register_blueprint(bp_msg, url_prefix=f"{api_prefix}/channels/<channel_code>/messages")
    app.register_blueprint(bp_presence, url_prefix=f"{api_prefix}/presence")
