"""Operator credentials: password hashes and short-lived bearer tokens."""

import logging
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from moveops.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ALGORITHM = "HS256"
TOKEN_TYPE = "dispatch-access"


class TokenError(ValueError):
    """Token cannot be used: bad signature, expired, or wrong shape."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(username: str, *, expires_minutes: int | None = None) -> str:
    minutes = settings.access_token_expire_minutes if expires_minutes is None else expires_minutes
    issued = datetime.now(timezone.utc)
    claims = {
        "sub": username,
        "iat": issued,
        "exp": issued + timedelta(minutes=minutes),
        "jti": uuid4().hex,
        "typ": TOKEN_TYPE,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> str:
    """Return the operator's username, or raise TokenError."""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise TokenError("TOKEN_EXPIRED", "Token expired, log in again") from None
    except JWTError:
        raise TokenError("INVALID_TOKEN", "Token invalid") from None

    if claims.get("typ") != TOKEN_TYPE or not claims.get("sub"):
        raise TokenError("INVALID_TOKEN", "Token invalid")
    return claims["sub"]
