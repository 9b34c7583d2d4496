import os
from pathlib import Path
import sys

import pytest
from fastapi.testclient import TestClient

os.environ["DATABASE_URL"] = "sqlite:///./test_stocksense.db"
os.environ["AUTH_PASSWORD_PEPPER"] = "test-pepper"

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from stocksense.database import Base, SessionLocal, engine  # noqa: E402
from stocksense.main import app  # noqa: E402
from stocksense.seed import run_seed  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    run_seed()


@pytest.fixture
def db():
    with SessionLocal() as session:
        yield session


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def auth_headers(client: TestClient) -> dict[str, str]:
    response = client.post(
        "/api/auth/login",
        json={"username": "demo", "password": "demo1234"},
    )
    assert response.status_code == 200
    return {"X-API-Key": response.json()["api_key"]}


@pytest.fixture
def browser(client: TestClient) -> TestClient:
    response = client.post(
        "/login",
        data={"username": "demo", "password": "demo1234"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    return client
