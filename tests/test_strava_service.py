"""Tests for the Strava OAuth exchange and ride distance sync."""

from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import pytest
import requests

from db import SessionLocal
from models import Bike, BikeComponent, Profile, StravaActivity
from services import component_service
from services.errors import DependencyFailure, InvalidInput
from services.strava_service import StravaService, strava_service


def _response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.json.return_value = payload
    resp.text = "" if payload is None else str(payload)
    return resp


def _connect(user, access="access-1", refresh="refresh-1"):
    with SessionLocal() as db:
        db.add(Profile(
            user_id=user.id,
            strava_access_token=access,
            strava_refresh_token=refresh,
            strava_athlete_id="777",
        ))
        db.commit()


RIDES = [
    {"id": 1001, "type": "Ride", "distance": 25000.0},
    {"id": 1002, "type": "Run", "distance": 10000.0},
    {"id": 1003, "type": "Ride", "distance": 17500.0},
    {"id": 1004, "type": "Ride", "distance": 0},
]


def test_ride_distances_keeps_positive_rides_in_km():
    assert StravaService.ride_distances(RIDES) == {"1001": 25.0, "1003": 17.5}


def test_authorize_url_carries_client_and_scope():
    url = strava_service.authorize_url("https://app.example.com/strava-callback")

    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    assert url.startswith(StravaService.AUTHORIZE_URL)
    assert query["client_id"] == ["12345"]
    assert query["redirect_uri"] == ["https://app.example.com/strava-callback"]
    assert query["response_type"] == ["code"]
    assert query["scope"] == ["read,activity:read_all"]


def test_authorize_url_requires_redirect():
    with pytest.raises(InvalidInput):
        strava_service.authorize_url("")


def test_missing_credentials_is_a_dependency_failure(monkeypatch):
    monkeypatch.delenv("STRAVA_CLIENT_SECRET")
    service = StravaService()
    with pytest.raises(DependencyFailure):
        service.authorize_url("https://app.example.com/strava-callback")


@patch("services.strava_service.requests.post")
def test_exchange_code_stores_tokens(mock_post, user):
    mock_post.return_value = _response(200, {
        "access_token": "new-access",
        "refresh_token": "new-refresh",
        "athlete": {"id": 42, "firstname": "Ada"},
    })

    athlete = strava_service.exchange_code(user.id, "auth-code")

    assert athlete["id"] == 42
    sent = mock_post.call_args.kwargs["json"]
    assert sent["code"] == "auth-code"
    assert sent["grant_type"] == "authorization_code"
    with SessionLocal() as db:
        profile = db.query(Profile).filter(Profile.user_id == user.id).one()
    assert profile.strava_access_token == "new-access"
    assert profile.strava_refresh_token == "new-refresh"
    assert profile.strava_athlete_id == "42"
    assert profile.is_strava_connected


@patch("services.strava_service.requests.post")
def test_exchange_code_rejected_by_strava(mock_post, user):
    mock_post.return_value = _response(400, {"message": "Bad Request"})
    with pytest.raises(DependencyFailure):
        strava_service.exchange_code(user.id, "stale-code")


def test_disconnect_clears_tokens(user):
    _connect(user)

    assert strava_service.disconnect(user.id) is True

    with SessionLocal() as db:
        profile = db.query(Profile).filter(Profile.user_id == user.id).one()
    assert profile.strava_access_token is None
    assert not profile.is_strava_connected


def test_sync_without_connection_is_invalid(user, make_bike):
    make_bike()
    with pytest.raises(InvalidInput, match="Strava not connected"):
        strava_service.sync_activities(user.id)


@patch("services.strava_service.requests.get")
def test_sync_adds_new_ride_distance_once(mock_get, user, make_bike, chain):
    _connect(user)
    bike = make_bike(total_distance=100)
    comp = component_service.add_component(user.id, bike.id, chain.id)
    mock_get.return_value = _response(200, RIDES)

    first = strava_service.sync_activities(user.id)
    second = strava_service.sync_activities(user.id)

    assert first == {"synced_activities": 2, "distance_km": pytest.approx(42.5), "bike_id": str(bike.id)}
    assert second["synced_activities"] == 0
    assert second["distance_km"] == 0
    with SessionLocal() as db:
        assert db.get(Bike, bike.id).total_distance == pytest.approx(142.5)
        assert db.get(BikeComponent, comp.id).current_distance == pytest.approx(42.5)
        assert db.query(StravaActivity).filter(StravaActivity.user_id == user.id).count() == 2


@patch("services.strava_service.requests.get")
def test_sync_goes_to_oldest_garage_bike(mock_get, user, make_bike):
    _connect(user)
    first_bike = make_bike("First")
    make_bike("Second")
    mock_get.return_value = _response(200, RIDES[:1])

    result = strava_service.sync_activities(user.id)

    assert result["bike_id"] == str(first_bike.id)


@patch("services.strava_service.requests.get")
def test_sync_with_no_bikes_does_nothing(mock_get, user):
    _connect(user)
    mock_get.return_value = _response(200, RIDES)

    assert strava_service.sync_activities(user.id) == {"synced_activities": 0, "distance_km": 0.0, "bike_id": None}


@patch("services.strava_service.requests.post")
@patch("services.strava_service.requests.get")
def test_expired_token_is_refreshed_once(mock_get, mock_post, user, make_bike):
    _connect(user, access="expired")
    bike = make_bike()
    mock_get.side_effect = [_response(401, {"message": "Authorization Error"}), _response(200, RIDES[:1])]
    mock_post.return_value = _response(200, {"access_token": "fresh", "refresh_token": "refresh-2"})

    result = strava_service.sync_activities(user.id)

    assert result["synced_activities"] == 1
    assert mock_get.call_count == 2
    assert mock_get.call_args.kwargs["headers"] == {"Authorization": "Bearer fresh"}
    assert mock_post.call_args.kwargs["json"]["grant_type"] == "refresh_token"
    with SessionLocal() as db:
        profile = db.query(Profile).filter(Profile.user_id == user.id).one()
        assert profile.strava_refresh_token == "refresh-2"
        assert db.get(Bike, bike.id).total_distance == pytest.approx(25.0)


@patch("services.strava_service.requests.post")
@patch("services.strava_service.requests.get")
def test_refresh_then_failure_is_dependency_failure(mock_get, mock_post, user, make_bike):
    _connect(user, access="expired")
    make_bike()
    mock_get.side_effect = [_response(401), _response(401)]
    mock_post.return_value = _response(200, {"access_token": "fresh"})

    with pytest.raises(DependencyFailure):
        strava_service.sync_activities(user.id)
    assert mock_get.call_count == 2


@patch("services.strava_service.requests.get")
def test_unreachable_strava_leaves_distance_untouched(mock_get, user, make_bike):
    _connect(user)
    bike = make_bike(total_distance=10)
    mock_get.side_effect = requests.exceptions.ConnectionError("no route to host")

    with pytest.raises(DependencyFailure):
        strava_service.sync_activities(user.id)

    with SessionLocal() as db:
        assert db.get(Bike, bike.id).total_distance == 10
