import logging
from rest_framework import status
from rest_framework.exceptions import ParseError, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class LoanManageError(Exception):
    """Base exception for all loan management errors."""

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = list(details or [])

    def __str__(self):
        return self.message


class LoanValidationError(LoanManageError):
    """Raised when a loan violates a business rule."""


class LoanNotFoundError(LoanManageError):
    """Raised when no loan exists for the requested loan ID."""

    def __init__(self, loan_id):
        super().__init__(f"Loan with Loan ID {loan_id} not found")
        self.loan_id = loan_id


class StoreConstraintError(LoanManageError):
    """Raised when the store rejects a write on an integrity constraint."""


def error_response(message, details, status_code):
    return Response({'message': message, 'details': list(details)}, status=status_code)


def flatten_error_detail(detail, field=None):
    """
    Turn a DRF error detail (dict, list or string) into "field: message" strings.
    Non-field errors are reported without a prefix.
    """
    if isinstance(detail, dict):
        messages = []
        for key, value in detail.items():
            name = key if field is None else f"{field}.{key}"
            if key == 'non_field_errors':
                name = field
            messages.extend(flatten_error_detail(value, name))
        return messages
    if isinstance(detail, list):
        messages = []
        for item in detail:
            messages.extend(flatten_error_detail(item, field))
        return messages
    return [f"{field}: {detail}" if field else str(detail)]


def loan_exception_handler(exc, context):
    """DRF exception handler producing {"message", "details"} error bodies."""
    if isinstance(exc, LoanValidationError):
        return error_response('Validation Error', [exc.message] + exc.details, status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, LoanNotFoundError):
        return error_response('Resource Not Found', [exc.message], status.HTTP_404_NOT_FOUND)
    if isinstance(exc, StoreConstraintError):
        logger.warning(f"Data integrity violation: {exc.message}")
        return error_response('Data Integrity Violation', [exc.message], status.HTTP_409_CONFLICT)
    if isinstance(exc, ValidationError):
        return error_response('Validation Error', flatten_error_detail(exc.detail), status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, ParseError):
        return error_response('Validation Error', [str(exc.detail)], status.HTTP_400_BAD_REQUEST)
    return exception_handler(exc, context)
