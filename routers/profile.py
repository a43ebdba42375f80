"""Profile management: stats, credentials, picture, bio and account deletion."""
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session
import models
import schemas
from accounts import delete_account
from database import get_db
from errors import ImageUploadError
from image_host import PROFILE_FOLDER, CloudinaryClient, get_image_host
from security import create_access_token
from .auth import get_current_user, pwd_context

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("/stats")
def get_profile_stats(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    """Counters shown on the profile page; which ones depends on the user type."""
    stats = {}
    if current_user.user_type == "student":
        stats["favorites_count"] = db.query(models.Favorite).filter(
            models.Favorite.user_id == current_user.id
        ).count()
        stats["conversations_count"] = db.query(models.Conversation).filter(
            models.Conversation.student_id == current_user.id
        ).count()
    elif current_user.user_type == "landlord":
        stats["properties_count"] = db.query(models.Property).filter(
            models.Property.landlord_id == current_user.id
        ).count()
        stats["conversations_count"] = db.query(models.Conversation).filter(
            models.Conversation.landlord_id == current_user.id
        ).count()
    return stats


@router.post("/change-password")
def change_password(
    data: schemas.PasswordChange,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    if not data.current_password or not data.new_password:
        raise HTTPException(status_code=400, detail="All fields are required.")

    if not pwd_context.verify(data.current_password, current_user.hashed_password):
        raise HTTPException(status_code=401, detail="Incorrect current password.")

    current_user.hashed_password = pwd_context.hash(data.new_password)
    db.commit()
    return {"message": "Password updated successfully!"}


@router.put("/update-username")
def update_username(
    data: schemas.UsernameChange,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    """Renames the caller and hands back a token carrying the new name."""
    new_username = (data.new_username or "").strip()
    if not new_username:
        raise HTTPException(status_code=400, detail="Username cannot be empty.")

    taken = db.query(models.User).filter(
        models.User.username == new_username,
        models.User.id != current_user.id
    ).first()
    if taken:
        raise HTTPException(status_code=409, detail="Username is already taken.")

    current_user.username = new_username
    db.commit()
    db.refresh(current_user)

    return {
        "message": "Username updated successfully!",
        "new_username": current_user.username,
        "token": create_access_token(current_user),
    }


@router.put("/upload-picture")
def upload_profile_picture(
    profile_picture: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    image_host: CloudinaryClient = Depends(get_image_host)
):
    if profile_picture is None:
        raise HTTPException(status_code=400, detail="No file uploaded.")

    try:
        url = image_host.upload(profile_picture.file, PROFILE_FOLDER)
    except ImageUploadError:
        raise HTTPException(status_code=500, detail="Server error uploading profile picture.")

    current_user.profile_picture_url = url
    db.commit()
    return {"message": "Profile picture updated successfully!", "profile_picture_url": url}


@router.put("/update-bio")
def update_bio(
    data: schemas.BioUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    current_user.bio = data.bio
    db.commit()
    return {"message": "Bio updated successfully!", "bio": current_user.bio}


@router.post("/delete-account")
def delete_my_account(
    data: schemas.AccountDeletion,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    """Permanently deletes the caller after re-checking their password."""
    if not data.password:
        raise HTTPException(status_code=400, detail="Password is required for deletion.")

    if not pwd_context.verify(data.password, current_user.hashed_password):
        raise HTTPException(status_code=401, detail="Incorrect password.")

    delete_account(db, current_user)
    return {"message": "Your account has been permanently deleted."}
