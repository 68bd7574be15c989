import logging

from django.db import connection, DatabaseError
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """Report database and channel layer availability."""
    dependencies = {}
    healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        dependencies["database"] = "ok"
    except DatabaseError as e:
        logger.error(f"Health check database probe failed: {e}")
        dependencies["database"] = "error"
        healthy = False

    dependencies["channel_layer"] = "ok" if get_channel_layer() is not None else "unavailable"

    return Response(
        {
            "status": "healthy" if healthy else "degraded",
            "dependencies": dependencies,
        },
        status=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
    )
