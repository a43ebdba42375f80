"""In-app notifications for the signed-in user."""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import models
import schemas
from database import get_db
from .auth import get_current_user

router = APIRouter(prefix="/notifications", tags=["Notifications"])

LATEST_LIMIT = 20


@router.get("", response_model=List[schemas.NotificationResponse])
def get_notifications(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    """The latest notifications addressed to the caller, newest first."""
    return db.query(models.Notification).filter(
        models.Notification.recipient_id == current_user.id
    ).order_by(
        models.Notification.created_at.desc(), models.Notification.id.desc()
    ).limit(LATEST_LIMIT).all()


@router.put("/mark-read")
def mark_notifications_read(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    db.query(models.Notification).filter(
        models.Notification.recipient_id == current_user.id,
        models.Notification.is_read == False
    ).update({models.Notification.is_read: True}, synchronize_session=False)
    db.commit()
    return {"message": "All notifications marked as read."}
