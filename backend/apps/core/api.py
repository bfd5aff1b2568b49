"""
Helpers for turning service results into HTTP responses.
"""
from rest_framework import status
from rest_framework.response import Response

# Error codes that are not plain 400s
ERROR_STATUS_MAP = {
    'INVALID_CREDENTIALS': status.HTTP_401_UNAUTHORIZED,
    'INCORRECT_PASSWORD': status.HTTP_401_UNAUTHORIZED,
    'ACCOUNT_BLOCKED': status.HTTP_403_FORBIDDEN,
    'NOT_VERIFIED': status.HTTP_403_FORBIDDEN,
    'PERMISSION_DENIED': status.HTTP_403_FORBIDDEN,
    'PURCHASE_REQUIRED': status.HTTP_403_FORBIDDEN,
    'EXTERNAL_SERVICE_ERROR': status.HTTP_502_BAD_GATEWAY,
}


def status_for_error(error_code):
    """Map a service error code onto an HTTP status."""
    if not error_code:
        return status.HTTP_400_BAD_REQUEST
    if error_code in ERROR_STATUS_MAP:
        return ERROR_STATUS_MAP[error_code]
    if error_code.endswith('NOT_FOUND'):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_400_BAD_REQUEST


def error_response(result):
    """Build the standard error body for a failed ServiceResult."""
    body = {
        'error': result.error,
        'error_code': result.error_code
    }
    if isinstance(result.data, dict):
        body.update(result.data)
    return Response(body, status=status_for_error(result.error_code))


def parse_limit(value):
    """Positive integer from a ``limit`` query parameter, else None."""
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return None
    return limit if limit > 0 else None
