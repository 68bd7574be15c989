import logging

from django.conf import settings
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from orders.exceptions import (
    AccessDeniedError,
    InvalidTransitionError,
    NotFoundError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """
    Map order engine errors to HTTP responses.

    Anything the engine does not own falls through to DRF's default handler.
    """
    if isinstance(exc, ValidationError):
        return Response(
            {"error": exc.message, "details": exc.detail},
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, NotFoundError):
        return Response({"error": exc.message}, status=status.HTTP_404_NOT_FOUND)

    if isinstance(exc, AccessDeniedError):
        return Response({"error": exc.message}, status=status.HTTP_403_FORBIDDEN)

    if isinstance(exc, InvalidTransitionError):
        return Response(
            {
                "error": exc.message,
                "current_status": exc.current_status,
                "requested_status": exc.requested_status,
            },
            status=status.HTTP_409_CONFLICT,
        )

    if isinstance(exc, StoreError):
        view = context.get("view")
        logger.error(
            f"Store failure during {exc.operation or 'unknown operation'} "
            f"in {view.__class__.__name__ if view else 'unknown view'}: {exc.message}"
        )
        body = {"error": "Internal server error."}
        if settings.DEBUG:
            body["detail"] = exc.message
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return exception_handler(exc, context)
