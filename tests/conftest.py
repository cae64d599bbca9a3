import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from finance_tracker.config import Settings
from finance_tracker.database import get_session
from finance_tracker.main import create_app
from finance_tracker.seed import seed_categories

# Seed order puts expense categories first.
FOOD_CATEGORY_ID = 1
TRANSPORT_CATEGORY_ID = 2
SALARY_CATEGORY_ID = 11


@pytest.fixture
def settings():
    return Settings(SECRET_KEY="test-secret-key", DEBUG=True, LOG_LEVEL="WARNING")


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        seed_categories(session)
        yield session


@pytest.fixture
def app(settings, session):
    app = create_app(settings)
    app.dependency_overrides[get_session] = lambda: session
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(name="client")
def client_fixture(app):
    return TestClient(app)


def register(client, name="Alice", email="a@x.com", password="secret1"):
    return client.post("/api/auth/register", json={"name": name, "email": email, "password": password})


@pytest.fixture
def auth_headers(client):
    response = register(client)
    token = response.json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_headers(client):
    response = register(client, name="Bob", email="b@x.com", password="secret2")
    token = response.json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}
