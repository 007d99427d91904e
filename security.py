"""
Password hashing, tokens, principal resolution and the ownership guard.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from bson import ObjectId
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from database import USER, get_db
from responses import ForbiddenError, UnauthorizedError

SECRET_KEY = os.getenv("JWT_SECRET", "dev-secret-key-change")
REFRESH_SECRET_KEY = os.getenv("JWT_REFRESH_SECRET", SECRET_KEY + "-refresh")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))
REFRESH_TOKEN_EXPIRE_MINUTES = int(os.getenv("REFRESH_TOKEN_EXPIRE_MINUTES", 60 * 24 * 10))

# Projection applied whenever a user document leaves the auth layer
PUBLIC_USER_PROJECTION = {"password": 0, "refreshToken": 0}

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def _encode(data: dict, secret: str, minutes: int) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)


def create_access_token(user: dict) -> str:
    return _encode(
        {"sub": str(user["_id"]), "username": user.get("username"), "email": user.get("email")},
        SECRET_KEY,
        ACCESS_TOKEN_EXPIRE_MINUTES,
    )


def create_refresh_token(user: dict) -> str:
    return _encode({"sub": str(user["_id"])}, REFRESH_SECRET_KEY, REFRESH_TOKEN_EXPIRE_MINUTES)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise UnauthorizedError("Invalid access token")


# -------------------- Principal --------------------

def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    database=Depends(get_db),
) -> Optional[dict]:
    """The acting principal, or None when the request carries no credential."""
    token = credentials.credentials if credentials else request.cookies.get("accessToken")
    if not token:
        return None

    payload = decode_access_token(token)
    sub = payload.get("sub")
    if not sub or not ObjectId.is_valid(sub):
        raise UnauthorizedError("Invalid access token")

    user = database[USER].find_one({"_id": ObjectId(sub)}, PUBLIC_USER_PROJECTION)
    if not user:
        raise UnauthorizedError("Invalid access token")
    return user


def get_current_user(user: Optional[dict] = Depends(get_optional_user)) -> dict:
    if user is None:
        raise UnauthorizedError()
    return user


def principal_id(user: Optional[dict]) -> Optional[ObjectId]:
    return user["_id"] if user else None


# -------------------- Ownership guard --------------------

def is_owner(resource: dict, user: Optional[dict], field: str = "owner") -> bool:
    owner = resource.get(field)
    if user is None or owner is None:
        return False
    return str(owner) == str(user.get("_id"))


def ensure_owner(resource: dict, user: Optional[dict], action: str = "modify this resource", field: str = "owner") -> None:
    if not is_owner(resource, user, field):
        raise ForbiddenError(f"You are not authorized to {action}")
