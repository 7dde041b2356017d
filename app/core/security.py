"""
Credential primitives: bcrypt password hashes and signed access tokens.
The session cookie is the primary credential; access tokens let API clients
without a cookie jar call the same routes.
"""

import secrets
from datetime import timedelta
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.dates import utcnow
from config import settings

TOKEN_TYPE = "access"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class InvalidTokenError(Exception):
    """Token is malformed, expired, wrongly signed or not an access token"""


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Stored value is not a recognizable hash
        return False


def issue_access_token(user_id: str, role: str, lifetime: Optional[timedelta] = None) -> str:
    """
    Sign a token whose subject is the user id.
    The role claim is informational; authorization always reloads the user.
    """
    issued_at = utcnow()
    claims = {
        "sub": user_id,
        "role": role,
        "type": TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + (lifetime or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)),
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def read_access_token(token: str) -> str:
    """
    Return the user id carried by a valid access token.

    Raises:
        InvalidTokenError: the token cannot be trusted
    """
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e

    if claims.get("type") != TOKEN_TYPE or not claims.get("sub"):
        raise InvalidTokenError("Not an access token")
    return claims["sub"]
