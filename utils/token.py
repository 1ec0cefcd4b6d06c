import logging
import os
import uuid
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
from dotenv import load_dotenv
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from db.database import get_db
from model.usermodels import User
from redis_client import RedisClient
from service.access_control import Actor
from utils.exceptions import AuthenticationError

load_dotenv()

logger = logging.getLogger(__name__)

redis_client = RedisClient()
security = HTTPBearer(auto_error=False)

# JWT Configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_REFRESH_SECRET_KEY = os.getenv("JWT_REFRESH_SECRET_KEY", "change-me-too")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

ACCESS_TOKEN_EXPIRY_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRY_MINUTES", "60"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def _token_claims(user: User) -> dict:
    return {"sub": str(user.id), "role": user.role.value, "jti": uuid.uuid4().hex}


def create_access_token(user: User) -> str:
    to_encode = _token_claims(user)
    expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRY_MINUTES)
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def create_refresh_token(user: User) -> str:
    to_encode = _token_claims(user)
    expire = datetime.utcnow() + timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)
    to_encode.update({"exp": expire, "type": "refresh"})
    return jwt.encode(to_encode, JWT_REFRESH_SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_access_token(token: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    return payload if payload.get("type") == "access" else None


def verify_refresh_token(token: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, JWT_REFRESH_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    return payload if payload.get("type") == "refresh" else None


def store_refresh_token(user_id: int, refresh_token: str) -> bool:
    """Store refresh token in Redis with expiry"""
    return redis_client.setex(
        f"refresh_token:{user_id}",
        timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
        refresh_token,
    )


def is_refresh_token_valid(user_id: int, refresh_token: str) -> bool:
    # Without Redis there is nothing to compare against; the signature check stands alone
    if not redis_client.is_available:
        return True
    return redis_client.get(f"refresh_token:{user_id}") == refresh_token


def delete_refresh_token(user_id: int) -> bool:
    return redis_client.delete(f"refresh_token:{user_id}")


def blacklist_access_token(token: str) -> bool:
    return redis_client.setex(
        f"blacklisted_token:{token}",
        timedelta(minutes=ACCESS_TOKEN_EXPIRY_MINUTES),
        "true",
    )


def is_token_blacklisted(token: str) -> bool:
    return redis_client.exists(f"blacklisted_token:{token}")


def get_bearer_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authorized, no token")
    return credentials.credentials


def get_current_user(token: str = Depends(get_bearer_token), db: Session = Depends(get_db)) -> User:
    payload = verify_access_token(token)
    if payload is None:
        raise AuthenticationError("Not authorized, token failed")
    if is_token_blacklisted(token):
        raise AuthenticationError("Token has been revoked")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthenticationError("Not authorized, token failed")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")
    return user


def get_current_actor(user: User = Depends(get_current_user)) -> Actor:
    return Actor.from_user(user)
