"""Map service-layer errors to API responses."""

from rest_framework import status
from rest_framework.response import Response

from .exceptions import ConflictError, NotFoundError, ValidationError

# FatalError is not listed; it propagates and surfaces as a 500.
HANDLED_ERRORS = (ValidationError, NotFoundError, ConflictError)


def error_response(exc):
    if isinstance(exc, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ConflictError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return Response({'error': str(exc)}, status=code)
