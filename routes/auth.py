import azure.functions as func
import json, logging
from utils.cors import cors_response
from auth.utils import hash_password, verify_password
from auth.token import create_access_token
from db import SessionLocal
from models import User, Profile

logger = logging.getLogger(__name__)
bp = func.Blueprint()

MIN_PASSWORD_LENGTH = 8


def _credentials(req: func.HttpRequest):
    data = req.get_json() or {}
    email = (data.get("email") or "").strip().lower()
    password = (data.get("password") or "").strip()
    return email, password, data


def _token_payload(user: User) -> str:
    return json.dumps({
        "success": True,
        "access_token": create_access_token({"sub": str(user.id)}),
        "token_type": "bearer",
        "user": {"id": str(user.id), "email": user.email},
    })


@bp.function_name(name="Signup")
@bp.route(route="signup", methods=["POST", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
def signup(req: func.HttpRequest) -> func.HttpResponse:
    """
    Create an account and return an access token.

    Raises:
        400: Missing email or password, or password too short
        409: Email already registered
        500: Server error
    """
    if req.method == "OPTIONS":
        return cors_response("", 204)

    try:
        email, password, data = _credentials(req)
        if not all([email, password]):
            return cors_response("Missing email or password", 400)
        if len(password) < MIN_PASSWORD_LENGTH:
            return cors_response(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", 400)

        with SessionLocal() as db:
            if db.query(User).filter(User.email == email).first():
                return cors_response("User already exists", 409)

            user = User(email=email, password_hash=hash_password(password))
            db.add(user)
            db.flush()
            db.add(Profile(user_id=user.id, full_name=(data.get("full_name") or "").strip() or None))
            db.commit()

        logger.info(f"Created account {user.id}")
        return cors_response(_token_payload(user), 201, "application/json")

    except Exception as e:
        logger.exception("Signup failed")
        return cors_response(str(e), 500)


@bp.function_name(name="Login")
@bp.route(route="login", methods=["POST", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
def login(req: func.HttpRequest) -> func.HttpResponse:
    """
    Authenticate user with email and password.

    Raises:
        400: Missing email or password
        401: Invalid credentials
        500: Server error
    """
    if req.method == "OPTIONS":
        return cors_response("", 204)

    try:
        email, password, _ = _credentials(req)
        if not all([email, password]):
            return cors_response("Missing email or password", 400)

        with SessionLocal() as db:
            user = db.query(User).filter(User.email == email).first()

        if not user or not verify_password(password, user.password_hash):
            return cors_response("Invalid credentials", 401)

        return cors_response(_token_payload(user), 200, "application/json")

    except Exception as e:
        logger.exception("Login failed")
        return cors_response(str(e), 500)
