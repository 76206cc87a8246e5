"""
API error types and the REST framework exception handler.

Every error response has the shape::

    {"success": false, "message": "...", "errors": {...}}

where ``errors`` is only present for validation failures.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.exceptions import APIException, PermissionDenied, ValidationError
from rest_framework.response import Response
from rest_framework.serializers import as_serializer_error
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class Conflict(APIException):
    """The request is valid but clashes with the resource's current state."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The request conflicts with the current state of the resource.'
    default_code = 'conflict'


class AccountBanned(PermissionDenied):
    default_detail = 'Account temporarily banned due to multiple rejections.'
    default_code = 'account_banned'


def marketplace_exception_handler(exc, context):
    """
    Render every API error in the marketplace response envelope.

    Django model ValidationErrors raised from full_clean() are converted to
    400 responses. Exceptions REST framework does not know about become a
    generic 500 and are logged with their traceback.
    """
    if isinstance(exc, DjangoValidationError):
        exc = ValidationError(detail=as_serializer_error(exc))

    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        view_name = view.__class__.__name__ if view is not None else 'unknown view'
        logger.error(
            f"Unhandled error in {view_name}: {exc}",
            exc_info=(type(exc), exc, exc.__traceback__)
        )
        return Response(
            {'success': False, 'message': 'An unexpected error occurred.'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    payload = {'success': False}
    if isinstance(exc, ValidationError):
        payload['message'] = 'Invalid request data.'
        payload['errors'] = response.data
    elif isinstance(response.data, dict) and 'detail' in response.data:
        payload['message'] = str(response.data['detail'])
    else:
        payload['message'] = str(response.data)

    response.data = payload
    return response
