"""JWT authentication dependency for FastAPI.

Validates Bearer tokens from the Authorization header and extracts user
claims. Tokens are issued by the external identity provider; this module only
verifies them.
"""

import logging
import uuid
from dataclasses import dataclass, field

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from bfood.config import settings
from bfood.exceptions import UnauthorizedException
from bfood.models.enums import UserRole

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthenticatedUser:
    """Represents the authenticated user extracted from a JWT token.

    Restaurant sub-users carry ``owner_id`` (the restaurant account they act
    for) and an explicit ``permissions`` list; owners have ``owner_id=None``.
    """

    id: uuid.UUID
    email: str
    role: UserRole
    owner_id: uuid.UUID | None = None
    permissions: list[str] = field(default_factory=list)

    @property
    def effective_id(self) -> uuid.UUID:
        """The account whose data this user reads and writes."""
        return self.owner_id or self.id

    @property
    def is_sub_user(self) -> bool:
        return self.owner_id is not None


def _decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises UnauthorizedException on failure."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as exc:
        logger.warning("JWT validation failed: %s", exc)
        raise UnauthorizedException("Invalid or expired token") from exc


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> AuthenticatedUser:
    """FastAPI dependency that extracts and validates the current user from JWT."""
    if credentials is None:
        raise UnauthorizedException("Authentication required")

    payload = _decode_token(credentials.credentials)

    try:
        owner = payload.get("owner_id")
        user = AuthenticatedUser(
            id=uuid.UUID(payload["sub"]),
            email=payload["email"],
            role=UserRole(payload.get("role", UserRole.RESTAURANT.value)),
            owner_id=uuid.UUID(owner) if owner else None,
            permissions=list(payload.get("permissions", [])),
        )
    except (KeyError, ValueError) as exc:
        raise UnauthorizedException("Token is missing required claims") from exc

    request.state.user = user
    return user
