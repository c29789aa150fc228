# exceptions.py
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework.exceptions import APIException
from rest_framework import status
from django.core.exceptions import ValidationError
from django.db import IntegrityError
import logging
from django.conf import settings

logger = logging.getLogger(__name__)


# =============== DOMAIN ERRORS ===============

class NotFound(APIException):
    """Referenced table / foodcourt / order / item does not exist"""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'not_found'


class InvalidState(APIException):
    """Referenced data went stale, e.g. a menu item became unavailable"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The request conflicts with the current state.'
    default_code = 'invalid_state'


class InvalidTransition(APIException):
    """Status change not reachable from the current status"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Status transition is not allowed.'
    default_code = 'invalid_transition'


class Forbidden(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'forbidden'


class ConfigurationError(APIException):
    """A required system level principal or setting is missing"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'System configuration error.'
    default_code = 'configuration_error'


def custom_exception_handler(exc, context):
    """
    Custom exception handler for the foodhall API
    """
    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    # Add custom handling for specific exceptions
    if response is not None:
        custom_response_data = {
            'error': True,
            'code': getattr(exc, 'default_code', 'error'),
            'message': 'An error occurred',
            'details': response.data,
            'status_code': response.status_code
        }

        # Handle specific error types
        if isinstance(exc, (InvalidState, InvalidTransition)):
            detail = exc.detail
            if isinstance(detail, dict):
                detail = detail.get('error', exc.default_detail)
            custom_response_data['message'] = str(detail)
        elif isinstance(exc, ConfigurationError):
            logger.error(f"Configuration Error: {exc.detail}")
            custom_response_data['message'] = 'System configuration error'
        elif response.status_code == 400:
            custom_response_data['message'] = 'Validation error'
        elif response.status_code == 401:
            custom_response_data['message'] = 'Authentication required'
        elif response.status_code == 403:
            custom_response_data['message'] = 'Permission denied'
        elif response.status_code == 404:
            custom_response_data['message'] = 'Resource not found'

        response.data = custom_response_data

    # Handle Django ValidationError
    elif isinstance(exc, ValidationError):
        logger.error(f"Validation Error: {exc}")
        response = Response({
            'error': True,
            'code': 'invalid',
            'message': 'Validation error',
            'details': {'non_field_errors': exc.messages},
            'status_code': 400
        }, status=status.HTTP_400_BAD_REQUEST)

    # Handle Django IntegrityError
    elif isinstance(exc, IntegrityError):
        logger.error(f"Integrity Error: {exc}")
        response = Response({
            'error': True,
            'code': 'integrity_error',
            'message': 'Database integrity error',
            'details': {'error': 'This operation violates database constraints'},
            'status_code': 400
        }, status=status.HTTP_400_BAD_REQUEST)

    # Handle unexpected errors
    else:
        logger.exception(f"Unexpected Error: {exc}")
        response = Response({
            'error': True,
            'code': 'server_error',
            'message': 'An unexpected error occurred',
            'details': {'error': str(exc)} if settings.DEBUG else {},
            'status_code': 500
        }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return response
