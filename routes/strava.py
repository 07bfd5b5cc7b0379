import azure.functions as func
import logging
from utils.cors import cors_response, json_response, error_response
from utils.params import json_body
from auth.deps import context_from_request
from services.strava_service import strava_service

logger = logging.getLogger(__name__)
bp = func.Blueprint()


@bp.function_name(name="StravaAuthUrl")
@bp.route(route="strava/auth_url", methods=["POST", "OPTIONS"], auth_level=func.AuthLevel.ANONYMOUS)
def strava_auth_url(req: func.HttpRequest) -> func.HttpResponse:
    """Build the Strava consent URL; the callback page lives at {origin}/strava-callback."""
    if req.method == "OPTIONS":
        return cors_response("", 204)

    ctx = context_from_request(req)
    if not ctx:
        return cors_response("Unauthorized", 401)

    try:
        body = json_body(req) if req.get_body() else {}
        redirect_uri = body.get("redirect_uri")
        if not redirect_uri and req.headers.get("origin"):
            redirect_uri = f"{req.headers.get('origin').rstrip('/')}/strava-callback"
        return json_response({"auth_url": strava_service.authorize_url(redirect_uri)})
    except Exception as e:
        return error_response(e)


@bp.function_name(name="StravaExchange")
@bp.route(route="strava/exchange", methods=["POST", "OPTIONS"], auth_level=func.AuthLevel.ANONYMOUS)
def strava_exchange(req: func.HttpRequest) -> func.HttpResponse:
    if req.method == "OPTIONS":
        return cors_response("", 204)

    ctx = context_from_request(req)
    if not ctx:
        return cors_response("Unauthorized", 401)

    try:
        athlete = strava_service.exchange_code(ctx.user_id, json_body(req).get("code"))
        return json_response({"success": True, "athlete": athlete})
    except Exception as e:
        return error_response(e)


@bp.function_name(name="StravaDisconnect")
@bp.route(route="strava/disconnect", methods=["POST", "OPTIONS"], auth_level=func.AuthLevel.ANONYMOUS)
def strava_disconnect(req: func.HttpRequest) -> func.HttpResponse:
    if req.method == "OPTIONS":
        return cors_response("", 204)

    ctx = context_from_request(req)
    if not ctx:
        return cors_response("Unauthorized", 401)

    try:
        strava_service.disconnect(ctx.user_id)
        return json_response({"success": True})
    except Exception as e:
        return error_response(e)


@bp.function_name(name="StravaSync")
@bp.route(route="strava/sync", methods=["POST", "OPTIONS"], auth_level=func.AuthLevel.ANONYMOUS)
def strava_sync(req: func.HttpRequest) -> func.HttpResponse:
    if req.method == "OPTIONS":
        return cors_response("", 204)

    ctx = context_from_request(req)
    if not ctx:
        return cors_response("Unauthorized", 401)

    try:
        result = strava_service.sync_activities(ctx.user_id)
        return json_response({"success": True, **result})
    except Exception as e:
        return error_response(e)
