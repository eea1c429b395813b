"""Password hashing and bearer tokens for API callers.

Tokens identify a caller by email only. Authorities are read from the users
table on every request so revoking one takes effect immediately.
"""
from datetime import timedelta
from typing import Optional
from jose import JWTError, jwt
import bcrypt
from pm_api.core.config import settings
from pm_api.core.time import utc_now


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a login password. Malformed stored hashes never match."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def _token_scope() -> dict:
    # Issuer and audience are only enforced when configured
    scope = {}
    if settings.JWT_ISSUER:
        scope["iss"] = settings.JWT_ISSUER
    if settings.JWT_AUDIENCE:
        scope["aud"] = settings.JWT_AUDIENCE
    return scope


def create_access_token(email: str, expires_minutes: Optional[int] = None) -> str:
    """Issue a bearer token for the user with this email."""
    lifetime = timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {"sub": email, "exp": utc_now() + lifetime, **_token_scope()}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def get_token_subject(token: str) -> Optional[str]:
    """Email a token was issued to, or None if it fails verification."""
    scope = _token_scope()
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=scope.get("aud"),
            issuer=scope.get("iss"),
            options={"verify_aud": "aud" in scope, "verify_iss": "iss" in scope},
        )
    except JWTError:
        return None
    return payload.get("sub") or None
