import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session, create_engine
from sqlmodel.pool import StaticPool

import main


@pytest.fixture
def session():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    def get_session_override():
        return session

    main.app.dependency_overrides[main.get_session] = get_session_override
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


@pytest.fixture
def make_group(client):
    def _make(name="Weekend Trip", participants=("Alice", "Bob", "Charlie")):
        r = client.post("/api/groups", json={"name": name, "participants": list(participants)})
        assert r.status_code == 201, r.text
        return r.json()

    return _make
