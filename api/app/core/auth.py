"""Password hashing and the JWT pair issued to players on login."""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

ACCESS = "access"
REFRESH = "refresh"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _encode(user_id: int, token_type: str, lifetime: timedelta) -> str:
    payload = {"sub": str(user_id), "type": token_type, "exp": datetime.now(UTC) + lifetime}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def issue_tokens(user_id: int) -> dict[str, str]:
    """Fresh access and refresh tokens for a user."""
    return {
        "access_token": _encode(user_id, ACCESS, timedelta(minutes=settings.access_token_expire_minutes)),
        "refresh_token": _encode(user_id, REFRESH, timedelta(days=settings.refresh_token_expire_days)),
    }


def read_subject(token: str, token_type: str) -> int:
    """Return the user id carried by a token of the given type.

    Raises JWTError when the token is malformed, expired, of another type
    or has no numeric subject.
    """
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    if payload.get("type") != token_type:
        raise JWTError("Invalid token type")
    try:
        return int(payload["sub"])
    except (KeyError, ValueError):
        raise JWTError("Invalid token subject") from None
