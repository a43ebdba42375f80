"""Pydantic schemas for data validation and serialization."""
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, EmailStr, ConfigDict


# ─── Accounts ────────────────────────────────────────────────────────────────

class UserCreate(BaseModel):
    username: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)
    user_type: str


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    user_type: str
    profile_picture_url: Optional[str] = ""
    bio: Optional[str] = ""
    is_verified: Optional[bool] = False
    verification_status: Optional[str] = "none"

    model_config = ConfigDict(from_attributes=True)


class UserSummary(BaseModel):
    id: int
    username: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class AuthorSummary(BaseModel):
    id: int
    username: str
    profile_picture_url: Optional[str] = ""

    model_config = ConfigDict(from_attributes=True)


class ApplicantSummary(AuthorSummary):
    email: str
    bio: Optional[str] = ""


class VerificationRequest(UserResponse):
    verification_document: Optional[str] = None


class TokenResponse(BaseModel):
    token: str
    user: UserResponse


class VerificationUpload(BaseModel):
    document_image: str = Field(..., min_length=1)


class VerificationAction(BaseModel):
    user_id: int
    action: str


# ─── Properties ──────────────────────────────────────────────────────────────

class PropertyUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    property_type: Optional[Literal["apartment", "house", "room"]] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    amenities: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    virtual_tour_url: Optional[str] = None


class PropertyResponse(BaseModel):
    id: int
    landlord_id: int
    title: str
    description: Optional[str] = ""
    address: str
    city: str
    price: float
    property_type: str
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    amenities: Optional[str] = None
    image_url: Optional[str] = ""
    images: Optional[List[str]] = []
    lat: Optional[float] = None
    lng: Optional[float] = None
    virtual_tour_url: Optional[str] = ""
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PropertyListItem(PropertyResponse):
    average_rating: Optional[float] = None
    review_count: int = 0


class PropertyPage(BaseModel):
    properties: List[PropertyListItem]
    current_page: int
    total_pages: int


class PropertyTitle(BaseModel):
    id: int
    title: str

    model_config = ConfigDict(from_attributes=True)


class DescriptionRequest(BaseModel):
    prompt: Optional[str] = None


# ─── Favorites ───────────────────────────────────────────────────────────────

class FavoriteCreate(BaseModel):
    property_id: int


class FavoriteResponse(FavoriteCreate):
    id: int
    user_id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ─── Conversations & messages ────────────────────────────────────────────────

class ConversationCreate(BaseModel):
    property_id: int


class ConversationStarted(BaseModel):
    conversation_id: int


class ConversationResponse(BaseModel):
    id: int
    property_id: int
    student_id: int
    landlord_id: int
    student: Optional[UserSummary] = None
    landlord: Optional[UserSummary] = None
    property: Optional[PropertyTitle] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    id: int
    conversation_id: int
    sender_id: int
    content: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AskAIRequest(BaseModel):
    question: Optional[str] = None


# ─── Reviews ─────────────────────────────────────────────────────────────────

class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1, max_length=1000)


class ReviewResponse(ReviewCreate):
    id: int
    property_id: int
    user_id: int
    author: Optional[AuthorSummary] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ─── Notifications ───────────────────────────────────────────────────────────

class NotificationResponse(BaseModel):
    id: int
    recipient_id: int
    sender_id: Optional[int] = None
    message: str
    link: Optional[str] = None
    is_read: Optional[bool] = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ─── Dashboard ───────────────────────────────────────────────────────────────

class DashboardSummary(BaseModel):
    total_properties: int
    total_views: int
    total_favorites: int
    total_conversations: int


class PropertyViewStat(BaseModel):
    id: int
    title: str
    view_count: int


class DashboardStats(BaseModel):
    summary: DashboardSummary
    properties: List[PropertyViewStat]


# ─── Profile ─────────────────────────────────────────────────────────────────

class PasswordChange(BaseModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = Field(None, max_length=72)


class UsernameChange(BaseModel):
    new_username: Optional[str] = None


class BioUpdate(BaseModel):
    bio: str = Field("", max_length=250)


class AccountDeletion(BaseModel):
    password: Optional[str] = None


# ─── Applications ────────────────────────────────────────────────────────────

class ApplicationCreate(BaseModel):
    property_id: int
    message: str = ""


class ApplicationStatusUpdate(BaseModel):
    status: Literal["accepted", "rejected"]


class ApplicationResponse(BaseModel):
    id: int
    property_id: int
    student_id: int
    landlord_id: int
    status: str
    message: Optional[str] = ""
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class StudentApplicationResponse(ApplicationResponse):
    property: Optional[PropertyResponse] = None
    landlord: Optional[UserSummary] = None


class LandlordApplicationResponse(ApplicationResponse):
    student: Optional[ApplicantSummary] = None
    property: Optional[PropertyTitle] = None
