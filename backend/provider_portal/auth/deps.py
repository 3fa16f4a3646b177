"""FastAPI dependencies for authentication and authorization.

Dependencies:
  get_verified_claims    → verify the bearer token, no DB lookup
  get_current_identity   → verified claims + active user row → AuthIdentity
  require_role(...)      → restrict to specific roles

Nothing is cached between requests; every request re-verifies its token
and re-reads the user row.
"""

from dataclasses import dataclass

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from provider_portal.auth.jwt import verify_token
from provider_portal.database import get_db
from provider_portal.middleware.exceptions import (
    PermissionDeniedError,
    UnauthenticatedError,
)
from provider_portal.models.user import User, UserRole

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class VerifiedClaims:
    subject_id: str
    email: str | None


@dataclass(frozen=True)
class AuthIdentity:
    """The resolved caller, valid for a single request."""

    user_id: int
    subject_id: str
    email: str
    role: UserRole
    first_name: str
    last_name: str


async def get_verified_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> VerifiedClaims:
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError("Missing or invalid Authorization header")

    claims = verify_token(credentials.credentials)
    return VerifiedClaims(subject_id=claims["sub"], email=claims.get("email"))


async def get_current_identity(
    claims: VerifiedClaims = Depends(get_verified_claims),
    db: AsyncSession = Depends(get_db),
) -> AuthIdentity:
    result = await db.execute(
        select(User).where(
            User.subject_id == claims.subject_id,
            User.is_active == True,  # noqa: E712
        )
    )
    user = result.scalar_one_or_none()
    if not user:
        raise UnauthenticatedError("User not found or inactive")

    return AuthIdentity(
        user_id=user.id,
        subject_id=user.subject_id,
        email=user.email,
        role=user.role,
        first_name=user.first_name,
        last_name=user.last_name,
    )


def require_role(*roles: UserRole):
    """Dependency factory: restrict to one or more roles.

    Usage:
        @router.get("/users")
        async def list_users(caller: AuthIdentity = Depends(require_role(UserRole.ADMIN))):
            ...
    """
    async def _check(
        identity: AuthIdentity = Depends(get_current_identity),
    ) -> AuthIdentity:
        if identity.role not in roles:
            allowed = ", ".join(r.value for r in roles)
            raise PermissionDeniedError(f"Requires role: {allowed}")
        return identity

    return _check
