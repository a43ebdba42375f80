"""Authentication routes for signup, login, and landlord identity verification."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import models
import schemas
from database import get_db
from errors import ImageUploadError
from image_host import VERIFICATION_FOLDER, CloudinaryClient, get_image_host
from security import create_access_token, decode_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)

SELF_SERVICE_USER_TYPES = ("student", "landlord")


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
):
    """Dependency resolving the bearer token to the stored user."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    claims = decode_token(credentials.credentials)
    try:
        user_id = int(claims["sub"]) if claims else None
    except ValueError:
        user_id = None
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired token")

    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    return user


def token_response(user: models.User) -> schemas.TokenResponse:
    return schemas.TokenResponse(
        token=create_access_token(user),
        user=schemas.UserResponse.model_validate(user),
    )


@router.post("/signup", response_model=schemas.TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(user: schemas.UserCreate, db: Session = Depends(get_db)):
    """Registers a student or landlord and logs them straight in."""
    email = user.email.lower()
    username = user.username.strip()

    if db.query(models.User).filter(models.User.email == email).first():
        raise HTTPException(status_code=409, detail="Email already registered.")

    if db.query(models.User).filter(models.User.username == username).first():
        raise HTTPException(status_code=409, detail="Username is already taken.")

    if user.user_type not in SELF_SERVICE_USER_TYPES:
        raise HTTPException(status_code=400, detail="Invalid user type selection")

    new_user = models.User(
        username=username,
        email=email,
        hashed_password=pwd_context.hash(user.password),
        user_type=user.user_type,
        profile_picture_url="",
        bio="",
        is_verified=False,
        verification_status="none",
        verification_document="",
    )

    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Email or username already exists.")
    db.refresh(new_user)
    return token_response(new_user)


@router.post("/login", response_model=schemas.TokenResponse)
def login(login_data: schemas.UserLogin, db: Session = Depends(get_db)):
    """Exchanges email and password for a signed access token."""
    user = db.query(models.User).filter(models.User.email == login_data.email.lower()).first()

    if not user or not pwd_context.verify(login_data.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid email or password.")

    return token_response(user)


@router.get("/me", response_model=schemas.UserResponse)
def read_me(current_user: models.User = Depends(get_current_user)):
    return current_user


@router.post("/upload-verification", response_model=schemas.UserResponse)
def upload_verification(
    upload: schemas.VerificationUpload,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    image_host: CloudinaryClient = Depends(get_image_host),
):
    """Stores a landlord's ID document and queues them for admin review."""
    if current_user.user_type != "landlord":
        raise HTTPException(status_code=403, detail="Only landlords can request verification")

    if current_user.is_verified:
        raise HTTPException(status_code=400, detail="Account is already verified")

    try:
        document_url = image_host.upload(upload.document_image, VERIFICATION_FOLDER)
    except ImageUploadError:
        raise HTTPException(status_code=500, detail="Server error during upload")

    current_user.verification_status = "pending"
    current_user.verification_document = document_url
    db.commit()
    db.refresh(current_user)
    logger.info("User %s submitted a verification document", current_user.id)
    return current_user
