from datetime import datetime

from pydantic import EmailStr

from provider_portal.models.user import UserRole
from provider_portal.schemas.common import CamelModel


class SyncUserRequest(CamelModel):
    """Upsert the caller's row after the identity provider signs them in."""
    email: EmailStr
    first_name: str | None = None
    last_name: str | None = None
    role: UserRole | None = None   # only honoured when the row is created


class UserOut(CamelModel):
    id: int
    email: str
    role: UserRole
    first_name: str
    last_name: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ListUsersResponse(CamelModel):
    users: list[UserOut]


class TableInfo(CamelModel):
    name: str


class DbCheckResponse(CamelModel):
    tables: list[TableInfo]
    users_count: int | None = None
