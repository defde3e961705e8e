from dataclasses import dataclass
from typing import Optional

import jwt
import structlog
from fastapi import Depends, Header, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from supabase import Client

from app.core.config import settings
from app.core.errors import AuthError
from app.db.models.user import User
from app.db.session import get_db

logger = structlog.get_logger(__name__)

JWT_AUDIENCE = "authenticated"

_supabase_client: Optional[Client] = None


@dataclass(frozen=True)
class Identity:
    id: str
    email: Optional[str] = None


def get_supabase_client() -> Client:
    global _supabase_client

    if _supabase_client is None:
        from supabase import create_client

        if not settings.SUPABASE_URL:
            raise RuntimeError("SUPABASE_URL environment variable is not set")

        key = settings.SUPABASE_SERVICE_KEY or settings.SUPABASE_ANON_KEY
        if not key:
            raise RuntimeError(
                "Neither SUPABASE_SERVICE_ROLE_KEY nor SUPABASE_ANON_KEY is set"
            )

        _supabase_client = create_client(settings.SUPABASE_URL, key)

    return _supabase_client


def _decode_locally(token: str, secret: str) -> Identity:
    try:
        decoded = jwt.decode(
            token, secret, algorithms=["HS256"], audience=JWT_AUDIENCE
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired")
    except jwt.InvalidTokenError as e:
        raise AuthError(f"Invalid token: {str(e)}")

    user_id = decoded.get("sub")
    if not user_id:
        raise AuthError("Invalid token: no user ID")

    return Identity(id=user_id, email=decoded.get("email"))


def _resolve_with_supabase(token: str) -> Identity:
    try:
        response = get_supabase_client().auth.get_user(token)
    except RuntimeError:
        raise
    except Exception as e:
        raise AuthError(f"Invalid authorization token: {str(e)}")

    user = getattr(response, "user", None)
    if not user or not user.id:
        raise AuthError("Invalid authorization token")

    return Identity(id=str(user.id), email=user.email)


def identify(token: str) -> Identity:
    if not token:
        raise AuthError("Missing bearer token")

    if settings.SUPABASE_JWT_SECRET:
        return _decode_locally(token, settings.SUPABASE_JWT_SECRET)
    return _resolve_with_supabase(token)


def verify_token(authorization: str = Header(None)) -> Identity:
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header required")

    token = authorization.replace("Bearer ", "").strip()
    try:
        return identify(token)
    except AuthError as e:
        logger.info("auth.rejected", reason=e.message)
        raise HTTPException(status_code=401, detail=e.message)


def ensure_user(db: Session, identity: Identity) -> User:
    user = db.get(User, identity.id)
    if user is None:
        user = User(id=identity.id, email=identity.email)
        db.add(user)
    elif identity.email and user.email != identity.email:
        user.email = identity.email
    else:
        return user

    db.commit()
    db.refresh(user)
    return user


def get_current_user(
    identity: Identity = Depends(verify_token),
    db: Session = Depends(get_db),
) -> User:
    try:
        return ensure_user(db, identity)
    except SQLAlchemyError as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to load user: {str(e)}")
