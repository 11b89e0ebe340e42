from __future__ import annotations

from fastapi import Depends, HTTPException, status, Request
import jwt
from sqlalchemy.orm import Session

from . import crud, models, security
from .database import get_db
from .identity import Actor
from .token import decode_access_token


def authenticate_user(db: Session, email: str, password: str) -> models.User | None:
    """
    Authenticates an account by email and password.

    ``OAuth2PasswordRequestForm`` names the field ``username``; it holds the
    email address here. Outdated hashes are upgraded on successful login.
    """
    user = crud.get_user_by_email(db, email)
    if not user or not security.verify_password(password, user.hashed_password):
        return None
    if security.needs_rehash(user.hashed_password):
        user.hashed_password = security.hash_password(password)
        db.commit()
    return user


def get_token_from_cookie_or_header(request: Request) -> str | None:
    """Extract token from either Authorization header or access_token cookie"""
    authorization = request.headers.get("Authorization")
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:]

    cookie_token = request.cookies.get("access_token")
    if cookie_token and cookie_token.startswith("Bearer "):
        return cookie_token[7:]

    return None


def get_current_user(request: Request, db: Session = Depends(get_db)) -> models.User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired access token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = get_token_from_cookie_or_header(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(token)
        account_id: str | None = payload.get("sub")
        if account_id is None or payload.get("user_type") not in ("seeker", "company"):
            raise credentials_exception
    except jwt.PyJWTError:
        raise credentials_exception
    user = crud.get_user(db, account_id)
    if user is None:
        raise credentials_exception
    return user


def get_current_actor(user: models.User = Depends(get_current_user)) -> Actor:
    return Actor.from_user(user)
