"""SQLAlchemy database models for users, listings, and their interactions."""
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Float, Text, JSON,
    Boolean, ForeignKey, DateTime, UniqueConstraint
)
from sqlalchemy.orm import relationship

from database import Base


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    user_type = Column(String, nullable=False)  # "student", "landlord", "admin"

    profile_picture_url = Column(String, default="")
    bio = Column(String(250), default="")

    is_verified = Column(Boolean, default=False)
    verification_status = Column(String, default="none")  # "none", "pending", "approved", "rejected"
    verification_document = Column(String, default="")

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    properties = relationship("Property", back_populates="landlord")
    favorites = relationship("Favorite", back_populates="user")
    reviews_given = relationship("Review", back_populates="author")


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)
    landlord_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False, index=True)
    description = Column(Text, default="")
    address = Column(String, nullable=False)
    city = Column(String, nullable=False, index=True)
    price = Column(Float, nullable=False)
    property_type = Column(String, nullable=False)  # "apartment", "house", "room"
    bedrooms = Column(Integer)
    bathrooms = Column(Integer)
    amenities = Column(String)
    image_url = Column(String, default="")
    images = Column(JSON, default=list)
    lat = Column(Float)
    lng = Column(Float)
    virtual_tour_url = Column(String, default="")

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    landlord = relationship("User", back_populates="properties")
    favorites = relationship("Favorite", back_populates="property", cascade="all, delete-orphan")
    views = relationship("PropertyView", back_populates="property", cascade="all, delete-orphan")
    conversations = relationship("Conversation", back_populates="property", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="property", cascade="all, delete-orphan")
    applications = relationship("Application", back_populates="property", cascade="all, delete-orphan")


class Favorite(Base):
    __tablename__ = "favorites"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="favorites")
    property = relationship("Property", back_populates="favorites")

    __table_args__ = (
        UniqueConstraint('user_id', 'property_id', name='_user_property_favorite_uc'),
    )


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    landlord_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    property = relationship("Property", back_populates="conversations")
    student = relationship("User", foreign_keys=[student_id])
    landlord = relationship("User", foreign_keys=[landlord_id])
    messages = relationship("Message", back_populates="conversation", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('student_id', 'property_id', name='_student_property_conversation_uc'),
    )

    def participant_ids(self):
        return {self.student_id, self.landlord_id}

    def counterparty_of(self, user_id):
        """Whichever of the two participants is not `user_id`."""
        return self.landlord_id if self.student_id == user_id else self.student_id


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    conversation = relationship("Conversation", back_populates="messages")


class PropertyView(Base):
    __tablename__ = "property_views"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)

    property = relationship("Property", back_populates="views")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    message = Column(String, nullable=False)
    link = Column(String)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    rating = Column(Integer, nullable=False)  # 1 to 5
    comment = Column(String(1000), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    property = relationship("Property", back_populates="reviews")
    author = relationship("User", back_populates="reviews_given")

    __table_args__ = (
        UniqueConstraint('property_id', 'user_id', name='_property_user_review_uc'),
    )


class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    landlord_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(String, default="pending")  # "pending", "accepted", "rejected"
    message = Column(Text, default="")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    property = relationship("Property", back_populates="applications")
    student = relationship("User", foreign_keys=[student_id])
    landlord = relationship("User", foreign_keys=[landlord_id])

    __table_args__ = (
        UniqueConstraint('property_id', 'student_id', name='_property_student_application_uc'),
    )
