import threading

import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient
from main import app
from database import get_db
from relay import get_relay
from routers.auth import get_current_user
import models

client = TestClient(app)


def mock_student():
    return models.User(id=1, username="student1", user_type="student")


@pytest.fixture(autouse=True)
def clean_overrides():
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def relay():
    relay_double = MagicMock()
    relay_double.push_notification = AsyncMock()
    app.dependency_overrides[get_relay] = lambda: relay_double
    return relay_double


def test_add_favorite_notifies_landlord(relay):
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = mock_student

    mock_db.query.return_value.filter.return_value.first.side_effect = [
        models.Property(id=10, title="Garden flat", landlord_id=5),
        None
    ]

    def mock_add(obj):
        obj.id = 7

    mock_db.add.side_effect = mock_add

    response = client.post("/api/favorites", json={"property_id": 10})

    assert response.status_code == 201
    assert response.json()["property_id"] == 10
    assert response.json()["user_id"] == 1

    relay.push_notification.assert_awaited_once()
    notification = relay.push_notification.call_args[0][0]
    assert notification.recipient_id == 5
    assert notification.sender_id == 1
    assert notification.message == "Your property 'Garden flat' has a new favorite!"
    assert notification.link == "/properties/10"


def test_add_favorite_queries_off_the_event_loop(relay):
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = mock_student
    threads = {}

    def push(notification):
        threads["push"] = threading.get_ident()

    mock_db.query.return_value.filter.return_value.first.side_effect = [
        models.Property(id=10, title="Garden flat", landlord_id=5),
        None
    ]
    mock_db.commit.side_effect = lambda: threads.setdefault("commit", threading.get_ident())
    mock_db.add.side_effect = lambda obj: setattr(obj, "id", 7)
    relay.push_notification.side_effect = push

    response = client.post("/api/favorites", json={"property_id": 10})

    assert response.status_code == 201
    assert threads["commit"] != threads["push"]


def test_favoriting_own_listing_sends_no_notification(relay):
    landlord = models.User(id=5, username="owner", user_type="landlord")
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = lambda: landlord

    mock_db.query.return_value.filter.return_value.first.side_effect = [
        models.Property(id=10, title="Garden flat", landlord_id=5),
        None
    ]

    def mock_add(obj):
        obj.id = 7

    mock_db.add.side_effect = mock_add

    response = client.post("/api/favorites", json={"property_id": 10})

    assert response.status_code == 201
    assert not relay.push_notification.called


def test_add_favorite_unknown_property(relay):
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = mock_student
    mock_db.query.return_value.filter.return_value.first.return_value = None

    response = client.post("/api/favorites", json={"property_id": 404})

    assert response.status_code == 404
    assert not mock_db.add.called


def test_second_favorite_conflicts(use_db, db_session, relay, make_user, make_property, auth_header):
    landlord = make_user("owner", user_type="landlord")
    student = make_user("student1")
    prop = make_property(landlord)

    first = client.post("/api/favorites", json={"property_id": prop.id}, headers=auth_header(student))
    second = client.post("/api/favorites", json={"property_id": prop.id}, headers=auth_header(student))

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["detail"] == "Property is already in your favorites."
    assert db_session.query(models.Favorite).filter(
        models.Favorite.user_id == student.id,
        models.Favorite.property_id == prop.id
    ).count() == 1
    assert db_session.query(models.Notification).filter(
        models.Notification.recipient_id == landlord.id
    ).count() == 1


def test_list_and_remove_favorites(use_db, db_session, make_user, make_property, auth_header):
    landlord = make_user("owner", user_type="landlord")
    student = make_user("student1")
    kept = make_property(landlord, title="Kept")
    dropped = make_property(landlord, title="Dropped")
    db_session.add_all([
        models.Favorite(user_id=student.id, property_id=kept.id),
        models.Favorite(user_id=student.id, property_id=dropped.id),
    ])
    db_session.commit()

    removed = client.delete(f"/api/favorites/{dropped.id}", headers=auth_header(student))
    listed = client.get("/api/favorites", headers=auth_header(student))

    assert removed.status_code == 200
    assert removed.json() == {"message": "Favorite removed"}
    assert [p["title"] for p in listed.json()] == ["Kept"]


def test_list_favorites_with_limit(use_db, db_session, make_user, make_property, auth_header):
    landlord = make_user("owner", user_type="landlord")
    student = make_user("student1")
    for i in range(3):
        prop = make_property(landlord, title=f"Flat {i}")
        db_session.add(models.Favorite(user_id=student.id, property_id=prop.id))
        db_session.commit()

    response = client.get("/api/favorites?limit=2", headers=auth_header(student))

    assert response.status_code == 200
    assert [p["title"] for p in response.json()] == ["Flat 2", "Flat 1"]
