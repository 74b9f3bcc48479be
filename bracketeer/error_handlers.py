"""JSON error handlers for the application."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, current_app, jsonify

from .core.types import ErrorResponse
from .errors import (
    AppError,
    ConcurrentModificationError,
    DuplicateResourceError,
    InvariantViolation,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

error_handlers_bp = Blueprint("error_handlers", __name__)


def _error_response(message: str, status_code: int) -> Any:
    body: ErrorResponse = {"success": False, "message": message, "data": None}
    return jsonify(body), status_code


@error_handlers_bp.app_errorhandler(ValidationError)
def handle_validation_error(error):
    """Handles validation errors."""
    current_app.logger.warning(f"Validation Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(DuplicateResourceError)
def handle_duplicate_resource_error(error):
    """Handles duplicate resource errors."""
    current_app.logger.warning(f"Duplicate Resource Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(ConcurrentModificationError)
def handle_concurrent_modification_error(error):
    """Handles writes based on a stale tournament revision."""
    current_app.logger.warning(f"Concurrent Modification: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(NotFoundError)
def handle_not_found_error(error):
    """Handles not found errors."""
    current_app.logger.warning(f"Not Found Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(PersistenceError)
def handle_persistence_error(error):
    """Handles document store failures."""
    current_app.logger.error(f"Persistence Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(InvariantViolation)
def handle_invariant_violation(error):
    """Handles ledger states that should never occur."""
    current_app.logger.error(f"Invariant Violation: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles generic application errors."""
    current_app.logger.error(f"Application Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return _error_response("Not found.", 404)


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    return _error_response("An unexpected error occurred.", 500)
