import logging
import traceback

from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError

from services.results import Result, ServiceError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A ServiceError on its way to the HTTP boundary."""

    def __init__(self, error: ServiceError):
        super().__init__(error.message)
        self.error = error


def unwrap(result: Result):
    """Return the value of a successful Result, raise ApiError otherwise."""
    if not result.ok:
        raise ApiError(result.error)
    return result.value


def error_response(error: str, message: str, status: int, details: dict | None = None,
                   cause: str | None = None, exc: BaseException | None = None):
    payload = {"error": error, "message": message, "status": status}
    if cause:
        payload["cause"] = cause
    if details:
        payload["details"] = details
    if exc is not None and current_app and current_app.debug:
        payload["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return jsonify(payload), status


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        e = err.error
        if e.status >= 500:
            logger.error("%s (%s): %s", e.kind.value, e.cause, e.message)
        return error_response(e.kind.value, e.message, e.status, details=e.details, cause=e.cause, exc=err)

    # Marshmallow validation errors map to 400
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return error_response("VALIDATION_ERROR", "Invalid input", 400, details=err.messages)

    # 404 Not Found
    @app.errorhandler(404)
    def not_found(e):
        return error_response("NOT_FOUND", "Resource not found", 404)

    # 413 from MAX_CONTENT_LENGTH
    @app.errorhandler(413)
    def too_large(e):
        return error_response("PAYLOAD_TOO_LARGE", "Uploaded file is too large", 413)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        code = err.code or 400
        name = (err.name or "Bad Request").upper().replace(" ", "_")
        return error_response(name, err.description, code)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details, exc=err)
