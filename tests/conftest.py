import os

# Configure before the app modules read the environment
os.environ["SQLALCHEMY_DATABASE_URL"] = "sqlite://"
os.environ["ENABLE_SCHEDULER"] = "0"
os.environ.pop("REDIS_CONN_STRING", None)

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    from main import app
    return TestClient(app)


@pytest.fixture
def make_user(client):
    def _make_user(name, email=None):
        res = client.post("/user/", json={"name": name, "email": email})
        assert res.status_code == 201
        return res.json()["public_id"]
    return _make_user
