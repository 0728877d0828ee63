import logging

from django.db.models import ProtectedError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """DRF's handler, plus JSON answers for errors it does not know about."""
    response = exception_handler(exc, context)
    if response is not None:
        return response

    if isinstance(exc, ProtectedError):
        return Response(
            {"detail": "This record is referenced by other records and cannot be deleted. Hide or deactivate it instead."},
            status=status.HTTP_409_CONFLICT,
        )

    view = context.get('view')
    logger.error(
        "Unhandled error in %s", view.__class__.__name__ if view else 'unknown view',
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    return Response(
        {"detail": "Internal server error."},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
