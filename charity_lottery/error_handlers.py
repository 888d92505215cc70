"""Centralized error handlers."""

from __future__ import annotations

import logging

from flask import Flask
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from charity_lottery.errors import AppError, ConflictError, DrawExecutionFailed, TransientStoreError, ValidationError
from charity_lottery.utils.responses import fail, fail_with

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for the Flask app."""

    @app.errorhandler(AppError)
    def _handle_app_error(exc: AppError):
        if isinstance(exc, DrawExecutionFailed):
            # Cause stays in the log; the client only sees the generic message.
            logger.error("Draw execution failed: %s", exc.reason or "unknown cause")
        elif exc.status_code >= 500:
            logger.error("%s: %s", exc.code, exc.message)
        return fail_with(exc)

    @app.errorhandler(MarshmallowValidationError)
    def _handle_schema_error(exc: MarshmallowValidationError):
        # exc.messages is a dict of field -> list[str]
        return fail_with(ValidationError(details=exc.messages))

    @app.errorhandler(IntegrityError)
    def _handle_integrity_error(exc: IntegrityError):
        logger.info("Integrity error", exc_info=exc)
        return fail_with(ConflictError(details=str(exc.orig) if exc.orig else str(exc)))

    @app.errorhandler(OperationalError)
    def _handle_store_unavailable(exc: OperationalError):
        logger.warning("Database unavailable", exc_info=exc)
        return fail_with(TransientStoreError())

    @app.errorhandler(DBAPIError)
    def _handle_dbapi_error(exc: DBAPIError):
        if exc.connection_invalidated:
            logger.warning("Database connection lost", exc_info=exc)
            return fail_with(TransientStoreError())
        logger.exception("Database error")
        return fail("internal_error", "Internal server error", 500)

    @app.errorhandler(HTTPException)
    def _handle_http_exception(exc: HTTPException):
        status = int(getattr(exc, "code", 500) or 500)
        if status == 404:
            return fail("not_found", "Not found", 404)

        return fail(
            "http_error",
            getattr(exc, "description", "HTTP error"),
            status,
            details={"name": getattr(exc, "name", "HTTPException")},
        )

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        logger.exception("Unhandled exception")
        return fail("internal_error", "Internal server error", 500)
