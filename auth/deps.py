import uuid
from dataclasses import dataclass
from typing import Optional

from db import SessionLocal
from models import User
from auth.token import decode_token


@dataclass(frozen=True)
class RequestContext:
    """Who is calling. Built once per request and handed to the services explicitly."""
    user_id: uuid.UUID
    email: str


def get_current_user(token: str) -> Optional[User]:
    payload = decode_token(token)
    if not payload:
        return None
    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        return None
    with SessionLocal() as db:
        return db.query(User).filter(User.id == user_id).first()


def current_user_from_request(req) -> Optional[User]:
    auth = req.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return get_current_user(auth[7:])


def context_from_request(req) -> Optional[RequestContext]:
    user = current_user_from_request(req)
    if not user:
        return None
    return RequestContext(user_id=user.id, email=user.email)
