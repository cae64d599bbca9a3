"""
Password hashing, bearer token issuance/validation and the request gate
used by every protected route.
"""

import secrets
import time
from datetime import timedelta
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode
from passlib.context import CryptContext

from .config import Settings


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify() -> None:
    """Spend the same time as a real verification when there is no user."""
    pwd_context.dummy_verify()


def generate_reset_code() -> str:
    """Zero-padded 6-digit one-time code."""
    return f"{secrets.randbelow(1_000_000):06d}"


class TokenService:
    """Issues and validates signed, time-limited bearer tokens."""

    def __init__(self, settings: Settings):
        self.secret_key = settings.SECRET_KEY
        self.algorithm = settings.ALGORITHM
        self.expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    def issue(self, user_id: int, email: str, expires_delta: Optional[timedelta] = None) -> str:
        now = int(time.time())
        expires_delta = expires_delta if expires_delta is not None else self.expires_delta
        claims = {
            "sub": str(user_id),
            "email": email,
            "iat": now,
            "exp": now + int(expires_delta.total_seconds()),
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def validate(self, token: str) -> Optional[dict]:
        """
        Return the token claims, or None when the token is malformed, carries
        a bad signature or has expired. ``sub`` is returned as an int.
        """
        segments = token.split(".")
        if len(segments) != 3:
            return None

        # Reject non-canonical signature encodings that decode to the same bytes.
        signature = segments[2].encode("ascii", errors="replace")
        try:
            if base64url_encode(base64url_decode(signature)) != signature:
                return None
        except (ValueError, TypeError):
            return None

        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None

        exp = claims.get("exp")
        if not isinstance(exp, (int, float)) or exp <= time.time():
            return None

        try:
            claims["sub"] = int(claims["sub"])
        except (KeyError, TypeError, ValueError):
            return None
        return claims


# ============================================
# Request gate
# ============================================

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_current_user_id(
    authorization: Optional[str] = Header(None),
    token_service: TokenService = Depends(get_token_service)
) -> int:
    """Resolve the caller's user id from the ``Authorization: Bearer`` header."""
    if not authorization or authorization[:7].lower() != "bearer ":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    claims = token_service.validate(authorization[7:].strip())
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return claims["sub"]
