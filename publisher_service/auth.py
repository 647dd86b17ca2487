import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

from fastapi import Header, HTTPException, status
from jose import jwt, JWTError
from passlib.context import CryptContext

from .errors import ForbiddenError
from .models import Post, Role, User


JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ALG = os.getenv("JWT_ALG", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    """Identity of the caller, passed explicitly into every operation."""
    user_id: int
    role: Role
    name: str = ""

    @property
    def is_publisher(self) -> bool:
        return self.role == Role.PUBLISHER


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user: User) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "role": Role(user.role).value,
        "name": user.name,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=JWT_EXPIRES_MINUTES)).timestamp()),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)


def decode_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
    except JWTError:
        return None


def context_from_payload(payload: Optional[dict]) -> Optional[AuthContext]:
    if not payload or "sub" not in payload or "role" not in payload:
        return None
    try:
        return AuthContext(user_id=int(payload["sub"]), role=Role(payload["role"]), name=payload.get("name", ""))
    except ValueError:
        return None


def get_auth_context_optional(authorization: Annotated[str | None, Header()] = None) -> AuthContext | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization.split(" ", 1)[1]
    return context_from_payload(decode_token(token))


def get_auth_context_required(authorization: Annotated[str | None, Header()] = None) -> AuthContext:
    ctx = get_auth_context_optional(authorization)
    if ctx is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing or invalid token")
    return ctx


def require_publisher(ctx: AuthContext) -> None:
    if not ctx.is_publisher:
        logger.info("User %s with role %s denied publisher operation", ctx.user_id, ctx.role.value)
        raise ForbiddenError()


def authorize_post_owner(post: Post | None, ctx: AuthContext) -> Post:
    """
    Guard for mutations on a post.

    A missing post and a post owned by someone else are reported the same way
    so callers cannot probe which post ids exist.
    """
    require_publisher(ctx)
    if post is None or post.publisher_id != ctx.user_id:
        logger.info("User %s denied access to post %s", ctx.user_id, post.id if post else None)
        raise ForbiddenError()
    return post
