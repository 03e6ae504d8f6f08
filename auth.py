"""
Admin authentication.

`require_admin` is the gate in front of every admin-only route: it reads the
bearer token, verifies it and leaves the Principal on `request.state.admin`.
Public routes never depend on it.

Passwords are hashed with bcrypt (cost factor 12) and only the hash is stored.
"""

import logging
from typing import Tuple

import bcrypt
from fastapi import Depends, Request
from pymongo.database import Database

from config import Settings, get_settings
from errors import Internal, Unauthenticated
from tokens import InvalidToken, Principal, TokenService

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(settings.jwt_secret, settings.jwt_expire, settings.jwt_algorithm)


def require_admin(request: Request, tokens: TokenService = Depends(get_token_service)) -> Principal:
    """Reject the request unless it carries a valid admin bearer token."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        logger.info("Missing bearer token", extra={"path": request.url.path})
        raise Unauthenticated("No token provided. Please login to continue.")

    token = auth_header[len(BEARER_PREFIX):].strip()
    try:
        principal = tokens.verify(token)
    except InvalidToken:
        logger.info("Token verification failed", extra={"path": request.url.path})
        raise Unauthenticated("Invalid or expired token. Please login again.")
    except Exception as e:
        logger.exception("Authentication gate failure", extra={"path": request.url.path})
        raise Internal("Authentication error") from e

    request.state.admin = principal
    return principal


def login(db: Database, tokens: TokenService, email: str, password: str) -> Tuple[dict, str]:
    """Check credentials against the admin collection and issue a token.

    Unknown email and wrong password fail the same way.
    """
    email = email.strip().lower()
    admin = db["admin"].find_one({"email": email})
    if not admin or not verify_password(password, admin.get("password", "")):
        logger.info("Failed admin login", extra={"admin_email": email})
        raise Unauthenticated("Invalid email or password")

    token = tokens.issue(Principal(id=str(admin["_id"]), email=admin["email"]))
    logger.info("Admin logged in", extra={"admin_email": admin["email"]})
    return admin, token
