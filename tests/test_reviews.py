import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError
from main import app
from ai_client import get_ai_client
from database import get_db
from errors import AIServiceError
from prompts import NOT_ENOUGH_REVIEWS
from routers.auth import get_current_user
import models

client = TestClient(app)


@pytest.fixture(autouse=True)
def clean_overrides():
    yield
    app.dependency_overrides.clear()


def mock_reviewer():
    return models.User(id=1, username="reviewer_1", user_type="student")


def mock_landlord():
    return models.User(id=2, username="landlord_1", user_type="landlord")


@pytest.fixture
def ai():
    client_double = MagicMock()
    client_double.generate = AsyncMock(return_value="Pros: quiet. Cons: small.")
    app.dependency_overrides[get_ai_client] = lambda: client_double
    return client_double


def test_create_review_success():
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = mock_reviewer

    mock_db.query.return_value.filter.return_value.first.side_effect = [
        models.Property(id=10, title="Beach House", landlord_id=2),
        None
    ]

    def mock_add(obj):
        obj.id = 50

    mock_db.add.side_effect = mock_add

    response = client.post("/api/properties/10/reviews", json={"rating": 5, "comment": "Amazing place!"})

    assert response.status_code == 201
    assert response.json()["rating"] == 5
    assert response.json()["user_id"] == 1
    assert response.json()["property_id"] == 10
    assert mock_db.commit.called


def test_create_review_duplicate_error():
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = mock_reviewer

    mock_db.query.return_value.filter.return_value.first.side_effect = [
        models.Property(id=10),
        models.Review(id=1, user_id=1, property_id=10)
    ]

    response = client.post("/api/properties/10/reviews", json={"rating": 4, "comment": "Another one"})

    assert response.status_code == 409
    assert "already reviewed this property" in response.json()["detail"]
    assert not mock_db.add.called


def test_create_review_unique_constraint_race():
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = mock_reviewer
    mock_db.query.return_value.filter.return_value.first.side_effect = [models.Property(id=10), None]
    mock_db.commit.side_effect = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

    response = client.post("/api/properties/10/reviews", json={"rating": 4, "comment": "Twice"})

    assert response.status_code == 409
    assert mock_db.rollback.called


def test_landlords_cannot_review():
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = mock_landlord

    response = client.post("/api/properties/10/reviews", json={"rating": 5, "comment": "My own place"})

    assert response.status_code == 403
    assert response.json()["detail"] == "Only students can leave reviews."


def test_review_for_unknown_property():
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = mock_reviewer
    mock_db.query.return_value.filter.return_value.first.return_value = None

    response = client.post("/api/properties/99/reviews", json={"rating": 3, "comment": "?"})
    assert response.status_code == 404


@pytest.mark.parametrize("payload", [
    {"rating": 0, "comment": "too low"},
    {"rating": 6, "comment": "too high"},
    {"rating": 3, "comment": ""},
    {"rating": 3, "comment": "x" * 1001},
])
def test_review_validation(payload):
    app.dependency_overrides[get_db] = lambda: MagicMock()
    app.dependency_overrides[get_current_user] = mock_reviewer

    response = client.post("/api/properties/10/reviews", json=payload)
    assert response.status_code == 422


def test_second_review_is_stored_once(use_db, db_session, make_user, make_property, auth_header):
    landlord = make_user("owner", user_type="landlord")
    student = make_user("student1")
    prop = make_property(landlord)

    first = client.post(f"/api/properties/{prop.id}/reviews",
                        json={"rating": 5, "comment": "Great"}, headers=auth_header(student))
    second = client.post(f"/api/properties/{prop.id}/reviews",
                         json={"rating": 1, "comment": "Changed my mind"}, headers=auth_header(student))

    assert first.status_code == 201
    assert second.status_code == 409
    assert db_session.query(models.Review).filter(
        models.Review.property_id == prop.id,
        models.Review.user_id == student.id
    ).count() == 1


def test_reviews_listed_newest_first_with_author(use_db, db_session, make_user, make_property):
    prop = make_property(make_user("owner", user_type="landlord"))
    early = make_user("early", profile_picture_url="https://img.test/early.png")
    late = make_user("late")
    db_session.add(models.Review(property_id=prop.id, user_id=early.id, rating=3, comment="First"))
    db_session.commit()
    db_session.add(models.Review(property_id=prop.id, user_id=late.id, rating=4, comment="Second"))
    db_session.commit()

    response = client.get(f"/api/properties/{prop.id}/reviews")

    assert response.status_code == 200
    body = response.json()
    assert [r["comment"] for r in body] == ["Second", "First"]
    assert body[1]["author"]["username"] == "early"
    assert body[1]["author"]["profile_picture_url"] == "https://img.test/early.png"


def test_summary_needs_two_reviews(ai):
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    mock_db.query.return_value.filter.return_value.all.return_value = [
        models.Review(id=1, rating=4, comment="Nice")
    ]

    response = client.get("/api/properties/10/reviews/summary")

    assert response.status_code == 200
    assert response.json() == {"summary": NOT_ENOUGH_REVIEWS}
    assert not ai.generate.called


def test_summary_sends_all_comments(ai):
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    mock_db.query.return_value.filter.return_value.all.return_value = [
        models.Review(id=1, rating=4, comment="Quiet street"),
        models.Review(id=2, rating=2, comment="Tiny kitchen"),
    ]

    response = client.get("/api/properties/10/reviews/summary")

    assert response.status_code == 200
    assert response.json() == {"summary": "Pros: quiet. Cons: small."}
    user_query = ai.generate.call_args[0][1]
    assert "Quiet street" in user_query
    assert "Tiny kitchen" in user_query


def test_summary_ai_failure(ai):
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    mock_db.query.return_value.filter.return_value.all.return_value = [
        models.Review(id=1, rating=4, comment="A"),
        models.Review(id=2, rating=5, comment="B"),
    ]
    ai.generate.side_effect = AIServiceError("API call failed with status: 503")

    response = client.get("/api/properties/10/reviews/summary")

    assert response.status_code == 500
    assert response.json()["detail"] == "Server error generating summary."
