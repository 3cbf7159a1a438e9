import os
import tempfile
from datetime import timedelta

# Must happen before db.py is imported anywhere.
_DB_DIR = tempfile.mkdtemp(prefix="exam-authority-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "test.db")
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import models  # noqa: E402,F401
import passwords  # noqa: E402
from db import Base, SessionLocal, engine  # noqa: E402
from main import app  # noqa: E402
from models import Exam, Question, User, utcnow  # noqa: E402

PASSWORD = "passw0rd"


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    # real cost is 12; 4 keeps the suite quick
    monkeypatch.setattr(passwords, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def session():
    with SessionLocal() as s:
        yield s


@pytest.fixture
def client():
    # fresh client per test so auth cookies never leak between tests
    with TestClient(app) as c:
        yield c


class Factory:
    def __init__(self, db):
        self.db = db
        self._n = 0

    def _next(self) -> int:
        self._n += 1
        return self._n

    def user(self, role: str = "student", username: str | None = None, password: str = PASSWORD) -> User:
        n = self._next()
        username = username or f"{role}{n}"
        user = User(
            username=username,
            email=f"{username}@school.example",
            password_hash=passwords.hash_password(password),
            role=role,
            full_name=f"{role.title()} {n}",
        )
        self.db.add(user)
        self.db.commit()
        return user

    def exam(self, teacher: User, start=None, end=None, **kw) -> Exam:
        now = utcnow()
        exam = Exam(
            title=kw.pop("title", "Algebra basics"),
            description=kw.pop("description", ""),
            subject=kw.pop("subject", "Mathematics"),
            teacher_id=teacher.id,
            duration=kw.pop("duration", 60),
            passing_score=kw.pop("passing_score", 60),
            start_time=start or now - timedelta(minutes=5),
            end_time=end or now + timedelta(hours=1),
            total_questions=kw.pop("total_questions", 0),
            **kw,
        )
        self.db.add(exam)
        self.db.commit()
        return exam

    def question(self, exam: Exam, correct_answer: str = "1", points: int = 10, **kw) -> Question:
        position = kw.pop("position", self._next())
        q = Question(
            exam_id=exam.id,
            question_text=kw.pop("question_text", f"Question {position}"),
            question_type=kw.pop("question_type", "multiple_choice"),
            options=kw.pop("options", ["a", "b", "c", "d"]),
            correct_answer=correct_answer,
            points=points,
            position=position,
            **kw,
        )
        self.db.add(q)
        exam.total_questions += 1
        self.db.commit()
        return q


@pytest.fixture
def factory(session):
    return Factory(session)


def login(client: TestClient, username: str, password: str = PASSWORD) -> dict:
    r = client.post("/auth/login", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    # tests authenticate by header; drop the cookie so requests stay explicit
    client.cookies.clear()
    return {"Authorization": f"Bearer {r.json()['data']['token']}"}
