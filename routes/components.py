import azure.functions as func
import logging
from utils.cors import cors_response, json_response, error_response
from utils.params import parse_uuid, optional_uuid, optional_float, optional_int, json_body
from auth.deps import context_from_request
from services import wear
from services.component_service import (
    list_component_types,
    list_active_components,
    add_component,
    replace_component,
    remove_component,
    list_maintenance_records,
    get_garage_condition,
)
from services.inventory_service import (
    list_inventory,
    add_inventory_item,
    update_inventory_quantity,
    delete_inventory_item,
)

logger = logging.getLogger(__name__)
bp = func.Blueprint()


def _serialize_type(t) -> dict:
    return {
        "id":                           str(t.id),
        "name":                         t.name,
        "default_replacement_distance": t.default_replacement_distance,
        "description":                  t.description,
    }


def _serialize_component(c) -> dict:
    usage = wear.usage_percent(c.current_distance, c.replacement_distance)
    return {
        "id":                   str(c.id),
        "bike_id":              str(c.bike_id),
        "component_type_id":    str(c.component_type_id),
        "component_type":       _serialize_type(c.component_type) if c.component_type else None,
        "replacement_distance": c.replacement_distance,
        "current_distance":     c.current_distance,
        "install_distance":     c.install_distance,
        "is_active":            c.is_active,
        "usage_percent":        round(usage, 1),
        "display_percent":      round(wear.display_percent(usage), 1),
        "severity":             wear.severity(usage),
        "remaining_distance":   wear.remaining_distance(c.current_distance, c.replacement_distance),
    }


def _serialize_record(r) -> dict:
    comp = r.bike_component
    return {
        "id":                 str(r.id),
        "bike_component_id":  str(r.bike_component_id),
        "component_name":     comp.component_type.name if comp and comp.component_type else None,
        "action_type":        r.action_type,
        "distance_at_action": r.distance_at_action,
        "cost":               r.cost,
        "notes":              r.notes,
        "created_at":         r.created_at.isoformat() if r.created_at else None,
    }


def _serialize_inventory_item(i) -> dict:
    return {
        "id":                str(i.id),
        "component_type_id": str(i.component_type_id),
        "component_type":    _serialize_type(i.component_type) if i.component_type else None,
        "quantity":          i.quantity,
        "purchase_price":    i.purchase_price,
        "notes":             i.notes,
    }


def _serialize_condition(cond: wear.GarageCondition) -> dict:
    return {
        "average_condition": round(cond.average_condition, 1),
        "component_count":   cond.component_count,
        "breakdown":         dict(cond.breakdown),
    }


@bp.function_name(name="ComponentTypes")
@bp.route(route="component_types", methods=["GET", "OPTIONS"], auth_level=func.AuthLevel.ANONYMOUS)
def component_types(req: func.HttpRequest) -> func.HttpResponse:
    if req.method == "OPTIONS":
        return cors_response("", 204)
    try:
        return json_response([_serialize_type(t) for t in list_component_types()])
    except Exception as e:
        return error_response(e)


@bp.function_name(name="BikeComponents")
@bp.route(route="bikes/{bike_id}/components", methods=["GET", "POST", "OPTIONS"], auth_level=func.AuthLevel.ANONYMOUS)
def bike_components(req: func.HttpRequest) -> func.HttpResponse:
    if req.method == "OPTIONS":
        return cors_response("", 204)

    ctx = context_from_request(req)
    if not ctx:
        return cors_response("Unauthorized", 401)

    try:
        bid = parse_uuid(req.route_params.get("bike_id"), "bike ID")

        if req.method == "GET":
            items = list_active_components(ctx.user_id, bid)
            return json_response([_serialize_component(c) for c in items])

        body = json_body(req)
        comp = add_component(
            ctx.user_id,
            bid,
            parse_uuid(body.get("component_type_id"), "component_type_id"),
            replacement_distance=optional_float(body.get("replacement_distance"), "replacement_distance"),
            current_distance=optional_float(body.get("current_distance"), "current_distance"),
        )
        return json_response(_serialize_component(comp), 201)
    except Exception as e:
        return error_response(e)


@bp.function_name(name="BikeMaintenance")
@bp.route(route="bikes/{bike_id}/maintenance", methods=["GET", "OPTIONS"], auth_level=func.AuthLevel.ANONYMOUS)
def bike_maintenance(req: func.HttpRequest) -> func.HttpResponse:
    if req.method == "OPTIONS":
        return cors_response("", 204)

    ctx = context_from_request(req)
    if not ctx:
        return cors_response("Unauthorized", 401)

    try:
        bid = parse_uuid(req.route_params.get("bike_id"), "bike ID")
        return json_response([_serialize_record(r) for r in list_maintenance_records(ctx.user_id, bid)])
    except Exception as e:
        return error_response(e)


@bp.function_name(name="ComponentReplace")
@bp.route(route="components/{component_id}/replace", methods=["POST", "OPTIONS"], auth_level=func.AuthLevel.ANONYMOUS)
def component_replace(req: func.HttpRequest) -> func.HttpResponse:
    """
    Swap a worn component for a new one.

    Optional JSON body: inventory_item_id (use a spare from stock), cost, notes.
    Returns the freshly installed component.
    """
    if req.method == "OPTIONS":
        return cors_response("", 204)

    ctx = context_from_request(req)
    if not ctx:
        return cors_response("Unauthorized", 401)

    try:
        cid = parse_uuid(req.route_params.get("component_id"), "component ID")
        body = json_body(req) if req.get_body() else {}
        new = replace_component(
            ctx.user_id,
            cid,
            inventory_item_id=optional_uuid(body.get("inventory_item_id"), "inventory_item_id"),
            cost=optional_float(body.get("cost"), "cost"),
            notes=body.get("notes"),
        )
        return json_response(_serialize_component(new), 201)
    except Exception as e:
        return error_response(e)


@bp.function_name(name="ComponentRemove")
@bp.route(route="components/{component_id}/remove", methods=["POST", "OPTIONS"], auth_level=func.AuthLevel.ANONYMOUS)
def component_remove(req: func.HttpRequest) -> func.HttpResponse:
    if req.method == "OPTIONS":
        return cors_response("", 204)

    ctx = context_from_request(req)
    if not ctx:
        return cors_response("Unauthorized", 401)

    try:
        cid = parse_uuid(req.route_params.get("component_id"), "component ID")
        body = json_body(req) if req.get_body() else {}
        record = remove_component(ctx.user_id, cid, notes=body.get("notes"))
        return json_response({"id": str(record.id), "action_type": record.action_type}, 200)
    except Exception as e:
        return error_response(e)


@bp.function_name(name="Inventory")
@bp.route(route="inventory", methods=["GET", "POST", "OPTIONS"], auth_level=func.AuthLevel.ANONYMOUS)
def inventory(req: func.HttpRequest) -> func.HttpResponse:
    if req.method == "OPTIONS":
        return cors_response("", 204)

    ctx = context_from_request(req)
    if not ctx:
        return cors_response("Unauthorized", 401)

    try:
        if req.method == "GET":
            return json_response([_serialize_inventory_item(i) for i in list_inventory(ctx.user_id)])

        body = json_body(req)
        quantity = optional_int(body.get("quantity"), "quantity")
        item = add_inventory_item(
            ctx.user_id,
            parse_uuid(body.get("component_type_id"), "component_type_id"),
            quantity=1 if quantity is None else quantity,
            purchase_price=optional_float(body.get("purchase_price"), "purchase_price"),
            notes=body.get("notes"),
        )
        return json_response(_serialize_inventory_item(item), 201)
    except Exception as e:
        return error_response(e)


@bp.function_name(name="InventoryItem")
@bp.route(route="inventory/{item_id}", methods=["PUT", "DELETE", "OPTIONS"], auth_level=func.AuthLevel.ANONYMOUS)
def inventory_item(req: func.HttpRequest) -> func.HttpResponse:
    """PUT sets the stock count (JSON body: quantity); DELETE drops the item."""
    if req.method == "OPTIONS":
        return cors_response("", 204)

    ctx = context_from_request(req)
    if not ctx:
        return cors_response("Unauthorized", 401)

    try:
        iid = parse_uuid(req.route_params.get("item_id"), "inventory item ID")

        if req.method == "PUT":
            quantity = optional_int(json_body(req).get("quantity"), "quantity")
            item = update_inventory_quantity(ctx.user_id, iid, quantity)
            return json_response(_serialize_inventory_item(item))

        delete_inventory_item(ctx.user_id, iid)
        return cors_response("", 204)
    except Exception as e:
        return error_response(e)


@bp.function_name(name="GarageCondition")
@bp.route(route="garage/condition", methods=["GET", "OPTIONS"], auth_level=func.AuthLevel.ANONYMOUS)
def garage_condition(req: func.HttpRequest) -> func.HttpResponse:
    if req.method == "OPTIONS":
        return cors_response("", 204)

    ctx = context_from_request(req)
    if not ctx:
        return cors_response("Unauthorized", 401)

    try:
        return json_response(_serialize_condition(get_garage_condition(ctx.user_id)))
    except Exception as e:
        return error_response(e)
