from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Request
from jose import JWTError, jwt
from passlib.context import CryptContext
from starlette.authentication import AuthenticationBackend, AuthCredentials, SimpleUser
from starlette.requests import HTTPConnection
from inventory.config import Settings
from inventory.errors import AuthenticationError
from inventory.logger import get_logger


logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

AUTH_ERROR_SCOPE_KEY = "inventory.auth_error"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: str, username: str, role: Optional[str], settings: Settings,
                        expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT for the given user."""
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(hours=settings.jwt_expiration_hours)
    claims = {
        "sub": user_id,
        "username": username,
        "role": role or "user",
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> dict:
    """Verify signature and expiry; raises JWTError on any failure."""
    claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    if not claims.get("sub") or not claims.get("username"):
        raise JWTError("Token is missing the subject")
    return claims


class TokenUser(SimpleUser):
    def __init__(self, user_id: str, username: str, role: str):
        super().__init__(username)
        self.user_id = user_id
        self.role = role


class BearerAuthBackend(AuthenticationBackend):
    """Stateless bearer token check; never touches the database.

    Requests without a valid token stay anonymous. The reason is kept in the
    scope so that protected routes can report it.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    async def authenticate(self, conn: HTTPConnection):
        header = conn.headers.get("Authorization")
        if not header:
            return
        parts = header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            conn.scope[AUTH_ERROR_SCOPE_KEY] = "Invalid authorization header format"
            return
        try:
            claims = decode_access_token(parts[1], self.settings)
        except JWTError as exc:
            logger.debug("Rejected bearer token: %s", exc)
            conn.scope[AUTH_ERROR_SCOPE_KEY] = "Invalid or expired token"
            return
        role = claims.get("role") or "user"
        return AuthCredentials(["authenticated", role]), TokenUser(claims["sub"], claims["username"], role)


async def require_user(request: Request) -> TokenUser:
    """Dependency guarding the protected route group."""
    if not request.user.is_authenticated:
        raise AuthenticationError(request.scope.get(AUTH_ERROR_SCOPE_KEY, "Authorization header required"))
    return request.user
