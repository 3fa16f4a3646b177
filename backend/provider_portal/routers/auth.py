"""Auth routes: self-lookup, user sync, admin listing, DB diagnostics.

Route overview:
  GET  /me          → the caller's own user row
  GET  /users       → every user, newest first (admin only)
  POST /sync-user   → upsert the caller's row from identity-provider data
  GET  /db-check    → table names + user count

Sign-in itself happens at the identity provider; this service only
verifies the bearer token it issues.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from provider_portal.auth.deps import (
    AuthIdentity,
    VerifiedClaims,
    get_current_identity,
    get_verified_claims,
    require_role,
)
from provider_portal.database import get_db
from provider_portal.middleware.exceptions import InternalError, UnauthenticatedError
from provider_portal.models.user import EXTERNAL_PASSWORD_SENTINEL, User, UserRole
from provider_portal.schemas.auth import (
    DbCheckResponse,
    ListUsersResponse,
    SyncUserRequest,
    TableInfo,
    UserOut,
)

router = APIRouter()


# ── Helpers ──────────────────────────────────────────────────

def _build_user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        role=user.role,
        first_name=user.first_name,
        last_name=user.last_name,
        is_active=user.is_active,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


# ── GET /me ──────────────────────────────────────────────────

@router.get("/me", response_model=UserOut)
async def me(
    identity: AuthIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(User).where(User.subject_id == identity.subject_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="user not found")
    return _build_user_out(user)


# ── GET /users ───────────────────────────────────────────────

@router.get("/users", response_model=ListUsersResponse)
async def list_users(
    identity: AuthIdentity = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(User).order_by(User.created_at.desc(), User.id.desc())
    )
    return ListUsersResponse(users=[_build_user_out(u) for u in result.scalars().all()])


# ── POST /sync-user ──────────────────────────────────────────

@router.post("/sync-user", response_model=UserOut)
async def sync_user(
    body: SyncUserRequest,
    claims: VerifiedClaims = Depends(get_verified_claims),
    db: AsyncSession = Depends(get_db),
):
    """Idempotent upsert keyed by the token's subject.

    Only a verified token is needed: the first call is what creates the
    row that every other route looks up. Omitted or empty names keep the
    stored value; the role is only applied when the row is created.
    A deactivated row is rejected like every other route rejects it.
    """
    email = body.email.lower()
    result = await db.execute(select(User).where(User.subject_id == claims.subject_id))
    user = result.scalar_one_or_none()

    if user:
        if not user.is_active:
            raise UnauthenticatedError("User not found or inactive")
        user.email = email
        user.first_name = body.first_name or user.first_name
        user.last_name = body.last_name or user.last_name
        # Refreshed on every resync, even when no other column changed
        user.updated_at = datetime.utcnow()
    else:
        user = User(
            subject_id=claims.subject_id,
            email=email,
            role=body.role or UserRole.CLIENT,
            first_name=body.first_name or "",
            last_name=body.last_name or "",
            password_hash=EXTERNAL_PASSWORD_SENTINEL,
        )
        db.add(user)

    await db.flush()
    await db.refresh(user)
    if user.id is None:
        raise InternalError("failed to sync user")
    return _build_user_out(user)


# ── GET /db-check ────────────────────────────────────────────

@router.get("/db-check", response_model=DbCheckResponse, response_model_exclude_none=True)
async def db_check(
    identity: AuthIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    try:
        conn = await db.connection()
        names = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        users_count = None
        if User.__tablename__ in names:
            users_count = (await db.execute(select(func.count(User.id)))).scalar()
    except SQLAlchemyError as e:
        raise InternalError(f"DB check failed: {e}")

    return DbCheckResponse(
        tables=[TableInfo(name=n) for n in sorted(names)],
        users_count=users_count,
    )
