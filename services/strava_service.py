# services/strava_service.py
import logging
import os
import uuid
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import requests
from sqlalchemy.exc import SQLAlchemyError

from db import SessionLocal
from models import Bike, Profile, StravaActivity
from services.bike_service import accrue_distance
from services.errors import InvalidInput, DependencyFailure

logger = logging.getLogger(__name__)


class StravaService:
    """OAuth token exchange with Strava and distance sync from recent rides"""

    AUTHORIZE_URL = "https://www.strava.com/oauth/authorize"
    TOKEN_URL = "https://www.strava.com/oauth/token"
    ACTIVITIES_URL = "https://www.strava.com/api/v3/athlete/activities"
    SCOPE = "read,activity:read_all"
    PAGE_SIZE = 50

    def __init__(self):
        self.client_id = os.getenv("STRAVA_CLIENT_ID")
        self.client_secret = os.getenv("STRAVA_CLIENT_SECRET")
        if not self.client_id or not self.client_secret:
            logger.warning("STRAVA_CLIENT_ID/STRAVA_CLIENT_SECRET not configured - Strava sync will fail")

    def _require_credentials(self):
        if not self.client_id or not self.client_secret:
            raise DependencyFailure("Strava API credentials not configured")

    def authorize_url(self, redirect_uri: str) -> str:
        self._require_credentials()
        if not redirect_uri:
            raise InvalidInput("redirect_uri is required")
        query = urlencode({
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": self.SCOPE,
        })
        return f"{self.AUTHORIZE_URL}?{query}"

    def _post_token(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST to the token endpoint; any transport or HTTP error is a DependencyFailure."""
        body = {"client_id": self.client_id, "client_secret": self.client_secret, **payload}
        try:
            response = requests.post(self.TOKEN_URL, json=body, timeout=30)
        except requests.exceptions.RequestException as e:
            logger.error(f"Strava token request failed: {e}")
            raise DependencyFailure("Strava is unreachable") from e
        if not response.ok:
            logger.error(f"Strava token request rejected ({response.status_code}): {response.text}")
            raise DependencyFailure(f"Strava token request failed ({payload.get('grant_type')})")
        return response.json()

    def _get_profile(self, db, user_id: uuid.UUID) -> Profile:
        profile = db.query(Profile).filter(Profile.user_id == user_id).first()
        if not profile:
            profile = Profile(user_id=user_id)
            db.add(profile)
        return profile

    def exchange_code(self, user_id: uuid.UUID, code: str) -> Dict[str, Any]:
        """Trade an authorization code for tokens and store them on the user's profile."""
        self._require_credentials()
        if not code:
            raise InvalidInput("Missing authorization code")

        token_data = self._post_token({"code": code, "grant_type": "authorization_code"})
        athlete = token_data.get("athlete") or {}

        with SessionLocal() as db:
            profile = self._get_profile(db, user_id)
            profile.strava_access_token = token_data.get("access_token")
            profile.strava_refresh_token = token_data.get("refresh_token")
            profile.strava_athlete_id = str(athlete["id"]) if athlete.get("id") is not None else None
            db.commit()

        logger.info(f"Strava connected for user {user_id} (athlete {athlete.get('id')})")
        return athlete

    def disconnect(self, user_id: uuid.UUID) -> bool:
        with SessionLocal() as db:
            rows = (
                db.query(Profile)
                .filter(Profile.user_id == user_id)
                .update(
                    {
                        "strava_access_token": None,
                        "strava_refresh_token": None,
                        "strava_athlete_id": None,
                    },
                    synchronize_session=False,
                )
            )
            db.commit()
            return rows > 0

    def _fetch_activities(self, access_token: str) -> requests.Response:
        try:
            return requests.get(
                self.ACTIVITIES_URL,
                params={"per_page": self.PAGE_SIZE},
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=30,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Strava activities request failed: {e}")
            raise DependencyFailure("Strava is unreachable") from e

    def _refresh_tokens(self, user_id: uuid.UUID, refresh_token: str) -> str:
        token_data = self._post_token({"refresh_token": refresh_token, "grant_type": "refresh_token"})
        with SessionLocal() as db:
            profile = self._get_profile(db, user_id)
            profile.strava_access_token = token_data.get("access_token")
            profile.strava_refresh_token = token_data.get("refresh_token") or refresh_token
            db.commit()
        logger.info(f"Refreshed Strava token for user {user_id}")
        return token_data.get("access_token")

    def fetch_recent_activities(self, user_id: uuid.UUID) -> List[Dict[str, Any]]:
        """
        Latest activities for the user. An expired access token is refreshed
        once and the request retried once; nothing else is retried.
        """
        with SessionLocal() as db:
            profile = db.query(Profile).filter(Profile.user_id == user_id).first()
            access_token = profile.strava_access_token if profile else None
            refresh_token = profile.strava_refresh_token if profile else None

        if not access_token:
            raise InvalidInput("Strava not connected")

        response = self._fetch_activities(access_token)
        if response.status_code == 401 and refresh_token:
            self._require_credentials()
            access_token = self._refresh_tokens(user_id, refresh_token)
            response = self._fetch_activities(access_token)
            if not response.ok:
                raise DependencyFailure("Failed to fetch Strava activities after token refresh")
        elif not response.ok:
            raise DependencyFailure("Failed to fetch Strava activities")

        return response.json() or []

    @staticmethod
    def ride_distances(activities: List[Dict[str, Any]]) -> Dict[str, float]:
        """Map activity id to kilometres for rides with a positive distance."""
        rides: Dict[str, float] = {}
        for activity in activities:
            if activity.get("type") != "Ride":
                continue
            meters = float(activity.get("distance") or 0)
            if meters <= 0 or activity.get("id") is None:
                continue
            rides[str(activity["id"])] = meters / 1000
        return rides

    def sync_activities(self, user_id: uuid.UUID) -> Dict[str, Any]:
        """
        Pull recent rides and add the distance of rides not seen before to
        the user's first bike and its active components.
        """
        rides = self.ride_distances(self.fetch_recent_activities(user_id))

        with SessionLocal() as db:
            bike: Optional[Bike] = (
                db.query(Bike)
                .filter(Bike.user_id == user_id, Bike.retired_at.is_(None))
                .order_by(Bike.created_at.asc())
                .with_for_update()
                .first()
            )
            if not bike:
                logger.info(f"Strava sync for user {user_id}: no bikes, nothing to update")
                return {"synced_activities": 0, "distance_km": 0.0, "bike_id": None}

            seen = {
                row.strava_activity_id
                for row in db.query(StravaActivity.strava_activity_id)
                .filter(
                    StravaActivity.user_id == user_id,
                    StravaActivity.strava_activity_id.in_(list(rides.keys())),
                )
                .all()
            } if rides else set()
            fresh = {activity_id: km for activity_id, km in rides.items() if activity_id not in seen}
            total_km = sum(fresh.values())

            if total_km <= 0:
                return {"synced_activities": 0, "distance_km": 0.0, "bike_id": str(bike.id)}

            try:
                accrue_distance(db, bike, total_km)
                for activity_id, km in fresh.items():
                    db.add(StravaActivity(
                        user_id=user_id,
                        bike_id=bike.id,
                        strava_activity_id=activity_id,
                        distance=km,
                    ))
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.exception(f"Strava sync failed to store distance for user {user_id}")
                raise DependencyFailure("Could not store synced distance") from e

            logger.info(f"Strava sync for user {user_id}: {len(fresh)} rides, {total_km:.1f} km onto bike {bike.id}")
            return {"synced_activities": len(fresh), "distance_km": total_km, "bike_id": str(bike.id)}


strava_service = StravaService()
