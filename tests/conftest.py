import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import pitwall.models  # noqa: F401 - register tables before create_all
from pitwall.api.deps import current_user
from pitwall.app import create_app
from pitwall.core import Settings
from pitwall.models import User


class FakeClock:
    """Epoch-second clock that only moves when told to."""

    def __init__(self, now: float = 1_760_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingMailSender:
    configured = True

    def __init__(self):
        self.sent = []

    def send(self, to, subject, html):
        self.sent.append({"to": to, "subject": subject, "html": html})


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def file_engine(tmp_path):
    """One connection per session, for tests with real concurrent writers."""

    engine = create_engine(
        f"sqlite:///{tmp_path / 'league.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def mail():
    return RecordingMailSender()


@pytest.fixture()
def settings():
    return Settings(secret_key="test-secret", app_env="test", log_level="WARNING")


@pytest.fixture()
def app(settings, engine, clock, mail):
    application = create_app(
        settings, engine=engine, clock=clock, mail=mail, background_rollups=False
    )
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def make_user(engine):
    def _make_user(user_id: str, display_name: str = None, is_admin: bool = False) -> User:
        user = User(
            id=user_id,
            email=f"{user_id}@example.com",
            display_name=display_name or f"Player {user_id}",
            is_admin=is_admin,
        )
        with Session(engine, expire_on_commit=False) as session:
            session.add(user)
            session.commit()
        return user

    return _make_user


@pytest.fixture()
def login_as(app):
    def _login_as(user: User) -> User:
        app.dependency_overrides[current_user] = lambda: user
        return user

    return _login_as
