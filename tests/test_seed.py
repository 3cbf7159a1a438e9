import pytest
from sqlalchemy import select

import seed
from models import User
from passwords import verify_password


def test_creates_first_admin_once(session):
    assert seed.create_admin_user(session, "root", "root@school.example", "Adm1nPass", "Root")
    admin = session.scalars(select(User).where(User.username == "root")).one()
    assert admin.role == "admin"
    assert verify_password("Adm1nPass", admin.password_hash)

    assert not seed.create_admin_user(session, "root2", "root2@school.example", "Adm1nPass", "Root 2")
    assert session.scalars(select(User).where(User.role == "admin")).all() == [admin]


def test_main_requires_password(monkeypatch):
    monkeypatch.delenv("ADMIN_PASSWORD", raising=False)
    with pytest.raises(SystemExit):
        seed.main(["--username", "root"])


def test_main_rejects_weak_password():
    with pytest.raises(SystemExit):
        seed.main(["--password", "short"])


def test_main_seeds_admin(session):
    assert seed.main(["--username", "boss", "--email", "boss@school.example", "--password", "b0ssPassword"]) == 0
    assert session.scalars(select(User).where(User.username == "boss")).one().role == "admin"
