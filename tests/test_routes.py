"""Tests for HTTP error mapping, request parsing and response serializers."""

import json
import uuid
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from routes.bikes import _bike_patch
from routes.components import _serialize_component, _serialize_condition
from services import wear
from services.errors import Conflict, DependencyFailure, InvalidInput, NotFound
from utils.cors import error_response
from utils.params import json_body, optional_float, optional_int, parse_uuid, parse_ymd


@pytest.mark.parametrize("exc,status", [
    (InvalidInput("bad"), 400),
    (NotFound("gone"), 404),
    (Conflict("twice"), 409),
    (DependencyFailure("down"), 502),
    (OperationalError("SELECT 1", {}, Exception("db down")), 502),
    (RuntimeError("boom"), 500),
])
def test_error_response_status(exc, status):
    resp = error_response(exc)
    assert resp.status_code == status
    assert resp.headers["Access-Control-Allow-Origin"] == "*"


def test_error_response_body_names_the_error():
    body = json.loads(error_response(Conflict("Chain is already installed on this bike")).get_body())
    assert body == {"error": "Chain is already installed on this bike", "type": "Conflict"}


def test_unexpected_errors_do_not_leak_details():
    body = json.loads(error_response(RuntimeError("password=hunter2")).get_body())
    assert body == {"error": "Internal server error"}


def test_parse_uuid():
    value = uuid.uuid4()
    assert parse_uuid(str(value), "bike ID") == value
    with pytest.raises(InvalidInput, match="Invalid bike ID"):
        parse_uuid("nope", "bike ID")


def test_optional_float():
    assert optional_float("", "cost") is None
    assert optional_float("12.5", "cost") == 12.5
    with pytest.raises(InvalidInput):
        optional_float("twelve", "cost")


def test_parse_ymd():
    assert parse_ymd("2024-03-01").isoformat() == "2024-03-01"
    with pytest.raises(InvalidInput):
        parse_ymd("01/03/2024")


def test_json_body_requires_object():
    with pytest.raises(InvalidInput):
        json_body(SimpleNamespace(get_json=lambda: ["not", "a", "dict"]))


def test_bike_patch_coerces_fields():
    patch = _bike_patch({"year": "2022", "weight": "8.4", "purchase_date": "2022-05-10", "name": "Road"})
    assert patch["year"] == 2022
    assert patch["weight"] == 8.4
    assert patch["purchase_date"].isoformat() == "2022-05-10"
    with pytest.raises(InvalidInput):
        _bike_patch({"year": "last year"})


def _component(current, replacement):
    return SimpleNamespace(
        id=uuid.uuid4(),
        bike_id=uuid.uuid4(),
        component_type_id=uuid.uuid4(),
        component_type=SimpleNamespace(
            id=uuid.uuid4(), name="Chain", default_replacement_distance=3000, description=None,
        ),
        replacement_distance=replacement,
        current_distance=current,
        install_distance=1500,
        is_active=True,
    )


def test_serialize_component_reports_wear():
    data = _serialize_component(_component(2850, 3000))
    assert data["usage_percent"] == 95.0
    assert data["display_percent"] == 95.0
    assert data["severity"] == "critical"
    assert data["remaining_distance"] == 150
    assert data["component_type"]["name"] == "Chain"


def test_serialize_overdue_component_clamps_display_only():
    data = _serialize_component(_component(4500, 3000))
    assert data["usage_percent"] == 150.0
    assert data["display_percent"] == 100.0
    assert data["remaining_distance"] == 0


def test_serialize_condition_rounds_average():
    cond = wear.aggregate_condition([_component(1000, 3000), _component(0, 3000)])
    data = _serialize_condition(cond)
    assert data["average_condition"] == 83.3
    assert data["component_count"] == 2
    assert data["breakdown"] == {"critical": 0, "warning": 0, "good": 1, "excellent": 1}


@pytest.mark.parametrize("value", ["nan", "inf", "-inf", float("nan"), float("inf")])
def test_optional_float_rejects_non_finite(value):
    with pytest.raises(InvalidInput, match="finite"):
        optional_float(value, "distance_km")


@pytest.mark.parametrize("value,expected", [(2, 2), (2.0, 2), ("3", 3), (None, None), ("", None)])
def test_optional_int_accepts_whole_numbers(value, expected):
    assert optional_int(value, "quantity") == expected


@pytest.mark.parametrize("value", [2.5, "two", "nan"])
def test_optional_int_rejects_other_values(value):
    with pytest.raises(InvalidInput):
        optional_int(value, "quantity")
