"""Problem-details (RFC 7807) responses for every error the API can raise.

Service errors are translated by :class:`ErrorKind`; framework errors
(werkzeug, marshmallow, Flask-JWT-Extended) get a code derived from their
HTTP status. Bodies are ``application/problem+json`` and always carry the
request id.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, has_request_context, jsonify, request
from flask_jwt_extended import JWTManager
from marshmallow import ValidationError as MarshmallowValidationError
from werkzeug.exceptions import HTTPException

from session_auth.core.logger import ensure_request_id
from session_auth.services._shared.errors import (
    DuplicateIdentity,
    ErrorKind,
    PersistenceFailure,
    ServiceError,
)

log = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 1
PROBLEM_MIMETYPE = "application/problem+json"

KIND_STATUS: dict[ErrorKind, tuple[int, str]] = {
    ErrorKind.INVALID_CREDENTIALS: (HTTPStatus.UNAUTHORIZED, "invalid_credentials"),
    ErrorKind.DUPLICATE_IDENTITY: (HTTPStatus.CONFLICT, "duplicate_identity"),
    ErrorKind.INVALID_TOKEN: (HTTPStatus.UNAUTHORIZED, "invalid_token"),
    ErrorKind.TOKEN_INACTIVE: (HTTPStatus.UNAUTHORIZED, "token_inactive"),
    ErrorKind.CONFIGURATION: (HTTPStatus.INTERNAL_SERVER_ERROR, "configuration_error"),
    ErrorKind.PERSISTENCE: (HTTPStatus.SERVICE_UNAVAILABLE, "service_unavailable"),
}


def status_code_name(status: int) -> str:
    """``404`` -> ``"not_found"``; unknown statuses map to ``"error"``."""
    try:
        phrase = HTTPStatus(status).phrase
    except ValueError:
        return "error"
    return phrase.lower().replace("-", "_").replace(" ", "_")


class APIError(Exception):
    """
    An error that renders itself as a problem document.

    :param message: Client-safe description, sent as ``detail``.
    :param status_code: HTTP status (default ``400``).
    :param code: Stable snake_case identifier clients can branch on.
    :param details: Optional structured payload, sent as ``details``.
    """

    def __init__(
        self,
        message: str,
        status_code: int = HTTPStatus.BAD_REQUEST,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}

    def to_problem(self) -> dict[str, Any]:
        problem: dict[str, Any] = {
            "type": "about:blank",
            "title": HTTPStatus(self.status_code).phrase,
            "status": self.status_code,
            "detail": self.message,
            "instance": request.path if has_request_context() else None,
            "code": self.code,
            "request_id": ensure_request_id(),
        }
        if self.details:
            problem["details"] = self.details
        return problem

    def to_response(self) -> tuple[Response, int]:
        response = jsonify(self.to_problem())
        response.mimetype = PROBLEM_MIMETYPE
        return response, self.status_code


class Unauthorized(APIError):
    """401: the caller could not be authenticated."""

    def __init__(self, message: str = "Unauthorized", code: str = "unauthorized") -> None:
        super().__init__(message, status_code=HTTPStatus.UNAUTHORIZED, code=code)


class Forbidden(APIError):
    """403: authenticated, but the role lacks the capability."""

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, status_code=HTTPStatus.FORBIDDEN, code="forbidden")


def from_service_error(err: ServiceError) -> APIError:
    """
    Translate a service-layer error into its HTTP representation.

    Configuration faults are reported without their detail; the operator
    finds it in the log.
    """
    status, code = KIND_STATUS.get(err.kind, (HTTPStatus.BAD_REQUEST, "bad_request"))
    if err.kind is ErrorKind.CONFIGURATION:
        return APIError("Service misconfigured", status_code=status, code=code)
    details = {"field": err.field} if isinstance(err, DuplicateIdentity) else None
    return APIError(err.message, status_code=status, code=code, details=details)


def _logged(err: APIError, source: str, *, exc_info: Any = None) -> tuple[Response, int]:
    response, status = err.to_response()
    if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
        log.error("%s: code=%s status=%s", source, err.code, status, exc_info=exc_info)
    else:
        log.warning("%s: code=%s status=%s detail=%s", source, err.code, status, err.message)
    return response, status


def register_jwt_handlers(manager: JWTManager) -> None:
    """Render Flask-JWT-Extended rejections as problem documents."""

    @manager.unauthorized_loader
    def _missing(reason: str):
        return _logged(Unauthorized(reason), "access_token")

    @manager.invalid_token_loader
    def _invalid(reason: str):
        return _logged(Unauthorized(reason, code="invalid_access_token"), "access_token")

    @manager.expired_token_loader
    def _expired(jwt_header: dict, jwt_payload: dict):
        err = Unauthorized("Access token has expired", code="access_token_expired")
        return _logged(err, "access_token")


def init_app(app: Flask) -> None:
    """Register the error handlers; 5xx are logged with their traceback."""

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        return _logged(err, "api_error")

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        response, status = _logged(from_service_error(err), "service_error", exc_info=err)
        if isinstance(err, PersistenceFailure):
            response.headers["Retry-After"] = str(RETRY_AFTER_SECONDS)
        return response, status

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        if status == HTTPStatus.NOT_FOUND:
            message = f"Route '{request.path}' not found"
        else:
            message = (err.description or HTTPStatus(status).phrase).strip()
        return _logged(
            APIError(message, status_code=status, code=status_code_name(status)),
            "http_error",
        )

    @app.errorhandler(MarshmallowValidationError)
    def handle_validation_error(err: MarshmallowValidationError):
        return _logged(
            APIError(
                "Validation failed",
                status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
                code="validation_error",
                details={"errors": err.messages},
            ),
            "validation_error",
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        internal = APIError(
            "Unexpected error",
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="internal_server_error",
        )
        return _logged(internal, "unhandled", exc_info=err)
