"""Management CLI tests against a throwaway SQLite file."""

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from provider_portal import cli
from provider_portal.config import settings
from provider_portal.database import Base
from provider_portal.models import User, UserRole


@pytest.fixture
def sync_db(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setattr(settings, "database_url_sync", url)
    engine = create_engine(url)
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        session.add(
            User(
                subject_id="sub-cli",
                email="cli@example.com",
                role=UserRole.CLIENT,
                first_name="Cli",
                last_name="User",
            )
        )
        session.commit()
    yield engine
    engine.dispose()


def _user(engine) -> User:
    with Session(engine) as session:
        return session.scalar(select(User).where(User.subject_id == "sub-cli"))


@pytest.mark.unit
class TestCli:
    def test_set_role(self, sync_db):
        assert cli.main(["set-role", "CLI@example.com", "admin"]) == 0
        assert _user(sync_db).role == UserRole.ADMIN

    def test_set_unknown_role(self, sync_db):
        assert cli.main(["set-role", "cli@example.com", "owner"]) == 1
        assert _user(sync_db).role == UserRole.CLIENT

    def test_unknown_email(self, sync_db):
        assert cli.main(["deactivate", "nobody@example.com"]) == 1

    def test_deactivate(self, sync_db):
        assert cli.main(["deactivate", "cli@example.com"]) == 0
        assert _user(sync_db).is_active is False

    def test_list_users(self, sync_db, capsys):
        assert cli.main(["list-users"]) == 0
        out = capsys.readouterr().out
        assert "cli@example.com" in out
        assert "1 user(s)" in out

    def test_usage(self, capsys):
        assert cli.main([]) == 2
        assert "Usage" in capsys.readouterr().out
