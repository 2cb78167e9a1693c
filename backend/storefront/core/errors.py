"""Centralized JSON (RFC 7807) error handling for the API."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from storefront.core.logger import ensure_request_id
from storefront.services._shared.errors import ServiceError

log = logging.getLogger(__name__)

# Domain error code -> HTTP status. Unlisted codes fall back to 400.
SERVICE_ERROR_STATUS: dict[str, int] = {
    "AUTH_FAILED": HTTPStatus.UNAUTHORIZED,
    "EMAIL_NOT_VERIFIED": HTTPStatus.FORBIDDEN,
    "ACCOUNT_INACTIVE": HTTPStatus.FORBIDDEN,
    "EMAIL_EXISTS": HTTPStatus.CONFLICT,
    "STORE_NAME_EXISTS": HTTPStatus.CONFLICT,
    "CONFLICT": HTTPStatus.CONFLICT,
    "NOT_FOUND": HTTPStatus.NOT_FOUND,
    "USER_NOT_FOUND": HTTPStatus.NOT_FOUND,
    "EMAIL_ALREADY_VERIFIED": HTTPStatus.BAD_REQUEST,
    "INVALID_ACCOUNT_STATUS": HTTPStatus.BAD_REQUEST,
    "INVALID_INPUT": HTTPStatus.BAD_REQUEST,
    "OTP_NOT_FOUND": HTTPStatus.NOT_FOUND,
    "OTP_ALREADY_USED": HTTPStatus.BAD_REQUEST,
    "OTP_EXPIRED": HTTPStatus.BAD_REQUEST,
    "OTP_MAX_ATTEMPTS": HTTPStatus.TOO_MANY_REQUESTS,
    "INVALID_OTP": HTTPStatus.BAD_REQUEST,
    "TOKEN_EXPIRED": HTTPStatus.UNAUTHORIZED,
    "TOKEN_INVALID": HTTPStatus.UNAUTHORIZED,
    "TOKEN_REVOKED": HTTPStatus.UNAUTHORIZED,
    "EMAIL_DELIVERY_FAILED": HTTPStatus.BAD_GATEWAY,
}


def _http_status_to_code(status_code: int) -> str:
    """Map common HTTP status codes to canonical, stable error codes."""
    mapping = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        413: "PAYLOAD_TOO_LARGE",
        415: "UNSUPPORTED_MEDIA_TYPE",
        422: "UNPROCESSABLE_ENTITY",
        429: "TOO_MANY_REQUESTS",
        500: "INTERNAL_SERVER_ERROR",
        503: "SERVICE_UNAVAILABLE",
    }
    return mapping.get(status_code, "ERROR")


def _as_problem(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build an RFC 7807 Problem Details dict.

    :param status: HTTP status code.
    :param code: Stable machine-consumable error code.
    :param message: Human-readable error summary (safe for clients).
    :param details: Optional safe, structured details.
    :returns: Problem+JSON dictionary.
    :rtype: dict
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": int(status),
        "detail": message,
        "instance": request.path if request else None,
        "code": code,
    }
    if details:
        problem["details"] = details
    problem["request_id"] = ensure_request_id()
    return problem


def _problem_response(problem: dict[str, Any]) -> Response:
    """
    Return a Flask response with ``application/problem+json`` media type.

    :param problem: Problem details payload.
    :returns: Flask JSON Response with proper MIME type.
    :rtype: flask.Response
    """
    resp = jsonify(problem)
    resp.mimetype = "application/problem+json"
    return resp


class APIError(Exception):
    """
    Represent a JSON-serializable API error.

    Parameters
    ----------
    message : str
        Human-readable description presented to clients.
    status_code : int, optional
        HTTP status code to return. Defaults to ``400``.
    code : str, optional
        Machine-readable identifier in UPPER_SNAKE case. Defaults to
        ``"BAD_REQUEST"``.
    details : dict[str, Any] | None, optional
        Optional structured payload (e.g., validation messages) included in the
        response body.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "BAD_REQUEST",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}

    @classmethod
    def from_service_error(cls, exc: ServiceError) -> APIError:
        """Translate a domain error keeping its code and message."""
        status = SERVICE_ERROR_STATUS.get(exc.code, HTTPStatus.BAD_REQUEST)
        return cls(exc.message, status_code=status, code=exc.code)

    def to_problem(self) -> dict[str, Any]:
        """
        Serialize error metadata into an RFC 7807 problem.

        :returns: Problem details dictionary.
        :rtype: dict
        """
        return _as_problem(
            status=self.status_code,
            code=self.code,
            message=self.message,
            details=self.details or None,
        )


def problem(status: int, code: str, message: str) -> tuple[Response, int]:
    """Build a problem response outside of an error handler (JWT loaders)."""
    return _problem_response(_as_problem(status=status, code=code, message=message)), status


def init_app(app: Flask) -> None:
    """
    Attach JSON error handlers to the Flask app.

    Notes
    -----
    - Guarantees RFC 7807 responses for all handled errors.
    - Ensures a correlation ``request_id`` is present on every error.
    - Emits 5xx with ``exc_info`` for traceability; 4xx as warnings.
    """

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        body = err.to_problem()
        level = log.error if err.status_code >= 500 else log.warning
        level(
            "APIError: code=%s status=%s msg=%s request_id=%s",
            err.code,
            err.status_code,
            err.message,
            body.get("request_id"),
        )
        return _problem_response(body), err.status_code

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        return handle_api_error(APIError.from_service_error(err))

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        error_code = _http_status_to_code(status)
        # Werkzeug may provide HTML-ish description; normalize for clients
        message = (err.description or error_code.replace("_", " ").capitalize()).strip()
        if status == HTTPStatus.NOT_FOUND and request:
            message = f"Route '{request.path}' not found"
        body = _as_problem(status=status, code=error_code, message=message)
        level = log.error if status >= 500 else log.warning
        level(
            "HTTPException: code=%s status=%s detail=%s request_id=%s",
            error_code,
            status,
            message,
            body.get("request_id"),
        )
        return _problem_response(body), status

    @app.errorhandler(MarshmallowValidationError)
    def handle_validation_error(err: MarshmallowValidationError):
        body = _as_problem(
            status=HTTPStatus.UNPROCESSABLE_ENTITY,
            code="VALIDATION_ERROR",
            message="Validation failed",
            details={"errors": err.messages},
        )
        log.warning("ValidationError: request_id=%s", body.get("request_id"))
        return _problem_response(body), HTTPStatus.UNPROCESSABLE_ENTITY

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        # Do not leak raw DB error to clients
        body = _as_problem(
            status=HTTPStatus.CONFLICT,
            code="CONFLICT",
            message="Resource conflict",
        )
        log.error("IntegrityError: request_id=%s", body.get("request_id"), exc_info=True)
        return _problem_response(body), HTTPStatus.CONFLICT

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        body = _as_problem(
            status=HTTPStatus.SERVICE_UNAVAILABLE,
            code="SERVICE_UNAVAILABLE",
            message="Service temporarily unavailable",
        )
        log.error("OperationalError: request_id=%s", body.get("request_id"), exc_info=True)
        return _problem_response(body), HTTPStatus.SERVICE_UNAVAILABLE

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        # Unexpected server-side error; never leak internal details
        body = _as_problem(
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="INTERNAL_SERVER_ERROR",
            message="Unexpected error",
        )
        log.error("Unhandled exception: request_id=%s", body.get("request_id"), exc_info=True)
        return _problem_response(body), HTTPStatus.INTERNAL_SERVER_ERROR
