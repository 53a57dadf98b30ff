from flask import Flask

from course_chat.config.settings import settings


def configure_app(app: Flask) -> None:
    app.config["ENV"] = settings.environment
    app.config["DEBUG"] = settings.debug
    app.json.ensure_ascii = False  # emoji reactions
