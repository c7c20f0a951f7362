"""Integration tests for the capacity-guarded join endpoint."""
from __future__ import annotations

import os
from typing import Iterator
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete, update

# Ensure the database URL and JWT secret are available before importing application modules.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_linkup.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from linkup.database import Base, SessionLocal, engine  # noqa: E402
from linkup.main import app  # noqa: E402
from linkup.models import Activity, ActivityParticipant, Profile, User  # noqa: E402
from linkup.services import ActivityJoinError, create_access_token, join_activity  # noqa: E402


@pytest.fixture(scope="module", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        session.execute(delete(ActivityParticipant))
        session.execute(delete(Activity))
        session.execute(delete(Profile))
        session.execute(delete(User))
        session.commit()
    yield


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


def _make_user(email: str = "host@example.com") -> UUID:
    with SessionLocal() as session:
        user = User(email=email, hashed_password="not-a-real-hash")
        session.add(user)
        session.commit()
        return user.id


def _make_activity(*, joined: int = 0, max_people: int | None = None) -> UUID:
    creator_id = _make_user(f"host-{uuid4().hex[:6]}@example.com")
    with SessionLocal() as session:
        activity = Activity(creator_id=creator_id, title="Board games", joined=joined, max_people=max_people)
        session.add(activity)
        session.commit()
        return activity.id


def _joined(activity_id: UUID) -> int:
    with SessionLocal() as session:
        activity = session.get(Activity, activity_id)
        assert activity is not None
        return activity.joined


def test_full_activity_returns_400_and_is_not_mutated(client: TestClient) -> None:
    activity_id = _make_activity(joined=5, max_people=5)

    response = client.patch("/api/join", json={"activity_id": str(activity_id)})

    assert response.status_code == 400
    assert response.json() == {"error": "Activity full"}
    assert _joined(activity_id) == 5


def test_join_below_capacity_increments_counter(client: TestClient) -> None:
    activity_id = _make_activity(joined=2, max_people=5)

    response = client.patch("/api/join", json={"activity_id": str(activity_id)})

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["id"] == str(activity_id)
    assert body["joined"] == 3
    assert _joined(activity_id) == 3


def test_uncapped_activity_always_accepts(client: TestClient) -> None:
    activity_id = _make_activity(joined=40, max_people=None)

    response = client.patch("/api/join", json={"activity_id": str(activity_id)})

    assert response.status_code == 200
    assert _joined(activity_id) == 41


def test_unknown_activity_returns_404(client: TestClient) -> None:
    response = client.patch("/api/join", json={"activity_id": str(uuid4())})

    assert response.status_code == 404
    assert response.json() == {"error": "Activity not found"}


@pytest.mark.parametrize("body", [{}, {"activity_id": "not-a-uuid"}, [1, 2]])
def test_invalid_body_returns_400(client: TestClient, body) -> None:
    response = client.patch("/api/join", json=body)

    assert response.status_code == 400
    assert "error" in response.json()


def test_authenticated_join_records_participant_once(client: TestClient) -> None:
    activity_id = _make_activity(joined=0, max_people=3)
    joiner_id = _make_user("joiner@example.com")
    headers = {"Authorization": f"Bearer {create_access_token(joiner_id)}"}

    first = client.patch("/api/join", json={"activity_id": str(activity_id)}, headers=headers)
    second = client.patch("/api/join", json={"activity_id": str(activity_id)}, headers=headers)

    assert first.status_code == 200, first.text
    assert first.json()["participants"] == [str(joiner_id)]
    assert second.status_code == 400
    assert second.json() == {"error": "Already joined"}
    assert _joined(activity_id) == 1


def test_last_slot_goes_to_exactly_one_joiner(client: TestClient) -> None:
    activity_id = _make_activity(joined=0, max_people=1)
    tokens = [create_access_token(_make_user(f"racer{index}@example.com")) for index in range(2)]

    statuses = [
        client.patch(
            "/api/join",
            json={"activity_id": str(activity_id)},
            headers={"Authorization": f"Bearer {token}"},
        ).status_code
        for token in tokens
    ]

    assert sorted(statuses) == [200, 400]
    assert _joined(activity_id) == 1
    with SessionLocal() as session:
        assert session.query(ActivityParticipant).filter_by(activity_id=activity_id).count() == 1


def test_join_with_stale_read_is_refused_by_conditional_update() -> None:
    activity_id = _make_activity(joined=4, max_people=5)
    joiner_id = _make_user("late@example.com")

    with SessionLocal() as stale:
        loaded = stale.get(Activity, activity_id)
        assert loaded is not None and loaded.joined == 4

        # Another request takes the last slot after this session has read the row.
        with SessionLocal() as other:
            other.execute(update(Activity).where(Activity.id == activity_id).values(joined=5))
            other.commit()

        with pytest.raises(ActivityJoinError) as exc:
            join_activity(stale, activity_id=activity_id, user_id=joiner_id)

    assert exc.value.message == "Activity full"
    assert exc.value.status_code == 400
    assert _joined(activity_id) == 5
    with SessionLocal() as session:
        assert session.query(ActivityParticipant).filter_by(activity_id=activity_id).count() == 0
