"""Map catalog errors onto HTTP responses."""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.catalog.exceptions import (
    AlreadyCurated,
    CatalogError,
    ImageMissing,
    KeyConflict,
    NotFound,
    ValidationError,
)
from apps.images.moderation import ModerationUnavailable

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = [
    (NotFound, status.HTTP_404_NOT_FOUND),
    (AlreadyCurated, status.HTTP_409_CONFLICT),
    (KeyConflict, status.HTTP_409_CONFLICT),
    (ImageMissing, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
]


def catalog_exception_handler(exc, context):
    if isinstance(exc, ModerationUnavailable):
        logger.warning("Image moderation unavailable: %s", exc)
        return Response(
            {
                "error": "moderation_unavailable",
                "message": "Image moderation is unavailable, try again later",
                "details": {},
            },
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    if not isinstance(exc, CatalogError):
        return exception_handler(exc, context)

    http_status = status.HTTP_400_BAD_REQUEST
    for error_class, code in STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            http_status = code
            break

    logger.debug("Catalog error %s: %s", exc.code, exc.message)
    return Response(
        {"error": exc.code, "message": exc.message, "details": exc.details},
        status=http_status,
    )
