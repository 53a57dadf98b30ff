# course_chat/api/middlewares/error_handler.py
import logging

from flask import Flask, jsonify
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import HTTPException

from course_chat.config.settings import settings
from course_chat.core.exceptions import AppError

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        return jsonify({"error": str(err)}), err.status_code

    @app.errorhandler(PydanticValidationError)
    def handle_payload_error(err: PydanticValidationError):
        return jsonify({"error": "Invalid payload.", "details": err.errors(include_url=False, include_context=False)}), 422

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return jsonify({"error": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        logger.exception("unhandled error")

        if settings.debug:
            return jsonify({"error": str(err)}), 500

        return jsonify({"error": "Internal server error"}), 500
