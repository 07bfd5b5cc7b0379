import json
import logging
from typing import Any, Union

import azure.functions as func
from sqlalchemy.exc import SQLAlchemyError

from services.errors import ComponentTrackingError

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def cors_response(
    body: Union[str, bytes] = b"",
    status: int = 200,
    mime: str = "text/plain"
) -> func.HttpResponse:
    return func.HttpResponse(
        body=body,
        status_code=status,
        mimetype=mime,
        headers=dict(CORS_HEADERS),
    )


def json_response(payload: Any, status: int = 200) -> func.HttpResponse:
    return cors_response(json.dumps(payload), status, "application/json")


def error_response(exc: Exception) -> func.HttpResponse:
    """Map service errors to HTTP; anything unexpected is logged and answered with 500."""
    if isinstance(exc, ComponentTrackingError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__}: {exc}")
        return json_response({"error": str(exc), "type": type(exc).__name__}, exc.status_code)
    if isinstance(exc, SQLAlchemyError):
        logger.exception("Database failure")
        return json_response({"error": "Database unavailable", "type": "DependencyFailure"}, 502)
    logger.exception("Unhandled error")
    return json_response({"error": "Internal server error"}, 500)
