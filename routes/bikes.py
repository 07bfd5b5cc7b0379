import azure.functions as func
import logging
from utils.cors import cors_response, json_response, error_response
from utils.params import parse_uuid, optional_float, parse_ymd, json_body
from auth.deps import context_from_request
from services.errors import InvalidInput
from services.bike_service import (
    list_bikes,
    create_bike,
    get_bike,
    update_bike,
    record_distance,
    retire_bike,
)

logger = logging.getLogger(__name__)
bp = func.Blueprint()


def _serialize_bike(b) -> dict:
    return {
        "id":             str(b.id),
        "name":           b.name,
        "brand":          b.brand,
        "model":          b.model,
        "bike_type":      b.bike_type,
        "year":           b.year,
        "weight":         b.weight,
        "price":          b.price,
        "purchase_date":  b.purchase_date.isoformat() if b.purchase_date else None,
        "total_distance": b.total_distance,
        "created_at":     b.created_at.isoformat() if b.created_at else None,
    }


def _bike_patch(body: dict) -> dict:
    patch = dict(body)
    if patch.get("purchase_date"):
        patch["purchase_date"] = parse_ymd(patch["purchase_date"])
    for key in ("weight", "price"):
        if key in patch:
            patch[key] = optional_float(patch[key], key)
    if patch.get("year") not in (None, ""):
        try:
            patch["year"] = int(patch["year"])
        except (TypeError, ValueError):
            raise InvalidInput("year must be an integer")
    return patch


@bp.function_name(name="Bikes")
@bp.route(route="bikes", methods=["GET", "POST", "OPTIONS"], auth_level=func.AuthLevel.ANONYMOUS)
def bikes(req: func.HttpRequest) -> func.HttpResponse:
    if req.method == "OPTIONS":
        return cors_response("", 204)

    ctx = context_from_request(req)
    if not ctx:
        return cors_response("Unauthorized", 401)

    try:
        if req.method == "GET":
            return json_response([_serialize_bike(b) for b in list_bikes(ctx.user_id)])

        body = _bike_patch(json_body(req))
        b = create_bike(
            ctx.user_id,
            body.get("name") or "",
            brand=body.get("brand"),
            model=body.get("model"),
            bike_type=body.get("bike_type"),
            year=body.get("year"),
            weight=body.get("weight"),
            price=body.get("price"),
            purchase_date=body.get("purchase_date"),
            total_distance=optional_float(body.get("total_distance"), "total_distance") or 0,
        )
        return json_response(_serialize_bike(b), 201)
    except Exception as e:
        return error_response(e)


@bp.function_name(name="BikeItem")
@bp.route(route="bikes/{bike_id}", methods=["GET", "PUT", "DELETE", "OPTIONS"], auth_level=func.AuthLevel.ANONYMOUS)
def bike_item(req: func.HttpRequest) -> func.HttpResponse:
    if req.method == "OPTIONS":
        return cors_response("", 204)

    ctx = context_from_request(req)
    if not ctx:
        return cors_response("Unauthorized", 401)

    try:
        bid = parse_uuid(req.route_params.get("bike_id"), "bike ID")

        if req.method == "GET":
            b = get_bike(ctx.user_id, bid)
            if not b:
                return cors_response("Not found", 404)
            return json_response(_serialize_bike(b))

        if req.method == "PUT":
            ok = update_bike(ctx.user_id, bid, _bike_patch(json_body(req)))
            return cors_response("Updated" if ok else "Not found", 200 if ok else 404)

        # DELETE retires the bike; its components stay as history
        retire_bike(ctx.user_id, bid)
        return cors_response("", 204)
    except Exception as e:
        return error_response(e)


@bp.function_name(name="BikeDistance")
@bp.route(route="bikes/{bike_id}/distance", methods=["POST", "OPTIONS"], auth_level=func.AuthLevel.ANONYMOUS)
def bike_distance(req: func.HttpRequest) -> func.HttpResponse:
    """Log ridden kilometres against a bike and its installed components."""
    if req.method == "OPTIONS":
        return cors_response("", 204)

    ctx = context_from_request(req)
    if not ctx:
        return cors_response("Unauthorized", 401)

    try:
        bid = parse_uuid(req.route_params.get("bike_id"), "bike ID")
        km = optional_float(json_body(req).get("distance_km"), "distance_km")
        b = record_distance(ctx.user_id, bid, km)
        return json_response(_serialize_bike(b))
    except Exception as e:
        return error_response(e)
