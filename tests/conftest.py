import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models
from database import Base, get_db
from main import app
from routers.auth import pwd_context
from security import create_access_token


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def use_db(db_session):
    """Routes every request through the in-memory database."""
    app.dependency_overrides[get_db] = lambda: db_session
    yield db_session
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def make_user(db_session):
    def _make_user(username, user_type="student", password=None, **fields):
        user = models.User(
            username=username,
            email=f"{username}@test.com",
            hashed_password=pwd_context.hash(password) if password else "not-a-real-hash",
            user_type=user_type,
            **fields
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_property(db_session):
    def _make_property(landlord, **fields):
        values = {
            "title": "Sunny flat",
            "address": "1 Main St",
            "city": "Springfield",
            "price": 500.0,
            "property_type": "apartment",
            "bedrooms": 2,
        }
        values.update(fields)
        prop = models.Property(landlord_id=landlord.id, **values)
        db_session.add(prop)
        db_session.commit()
        db_session.refresh(prop)
        return prop

    return _make_property


@pytest.fixture
def make_conversation(db_session):
    def _make_conversation(student, prop):
        conversation = models.Conversation(
            property_id=prop.id, student_id=student.id, landlord_id=prop.landlord_id
        )
        db_session.add(conversation)
        db_session.commit()
        db_session.refresh(conversation)
        return conversation

    return _make_conversation


@pytest.fixture
def auth_header():
    def _auth_header(user):
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _auth_header
