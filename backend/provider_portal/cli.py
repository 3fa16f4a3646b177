"""Management CLI for portal users.

Sync never changes a role after the row exists, so staff and admins are
promoted from here.

Usage:
    python -m provider_portal.cli list-users
    python -m provider_portal.cli set-role <email> <admin|staff|client>
    python -m provider_portal.cli deactivate <email>
"""

import sys

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from provider_portal.config import settings
from provider_portal.models import User, UserRole


def _session() -> Session:
    return Session(create_engine(settings.database_url_sync))


def list_users():
    with _session() as session:
        users = session.scalars(select(User).order_by(User.created_at.desc())).all()
        for u in users:
            flag = "" if u.is_active else " (inactive)"
            print(f"  {u.id:>5}  {u.role.value:<6}  {u.email}{flag}")
    print(f"\n{len(users)} user(s)")


def set_role(email: str, role: str) -> int:
    try:
        new_role = UserRole(role)
    except ValueError:
        print(f"Unknown role: {role}")
        return 1
    with _session() as session:
        user = session.scalar(select(User).where(User.email == email.lower()))
        if not user:
            print(f"No user with email {email}")
            return 1
        user.role = new_role
        session.commit()
    print(f"  {email} is now {new_role.value}")
    return 0


def deactivate(email: str) -> int:
    with _session() as session:
        user = session.scalar(select(User).where(User.email == email.lower()))
        if not user:
            print(f"No user with email {email}")
            return 1
        user.is_active = False
        session.commit()
    print(f"  {email} deactivated")
    return 0


def main(argv: list[str]) -> int:
    cmd = argv[0] if argv else ""
    if cmd == "list-users":
        list_users()
        return 0
    if cmd == "set-role" and len(argv) == 3:
        return set_role(argv[1], argv[2])
    if cmd == "deactivate" and len(argv) == 2:
        return deactivate(argv[1])
    print("Usage: python -m provider_portal.cli [list-users|set-role <email> <role>|deactivate <email>]")
    return 2


def run():
    sys.exit(main(sys.argv[1:]))


if __name__ == "__main__":
    run()
