"""Administrative routes for landlord identity verification."""
import logging
from typing import List

from anyio import from_thread
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import models
import schemas
from database import get_db
from notify import create_notification
from relay import ChatRelay, get_relay
from .auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin Panel"])

VERIFY_ACTIONS = {
    "approve": "approved",
    "reject": "rejected",
}


def require_admin(current_user: models.User = Depends(get_current_user)) -> models.User:
    if current_user.user_type != "admin":
        raise HTTPException(
            status_code=403,
            detail="Access denied: Administrative privileges required"
        )
    return current_user


@router.get("/verifications", response_model=List[schemas.VerificationRequest])
def get_pending_verifications(
        db: Session = Depends(get_db),
        admin: models.User = Depends(require_admin)
):
    """Lists every user waiting for a verification decision."""
    return db.query(models.User).filter(
        models.User.verification_status == "pending"
    ).order_by(models.User.updated_at.asc()).all()


@router.post("/verify-action")
def verify_action(
        data: schemas.VerificationAction,
        db: Session = Depends(get_db),
        admin: models.User = Depends(require_admin),
        relay: ChatRelay = Depends(get_relay)
):
    """Approves or rejects a landlord and tells them the outcome."""
    new_status = VERIFY_ACTIONS.get(data.action)
    if new_status is None:
        raise HTTPException(status_code=400, detail="Invalid action")

    user = db.query(models.User).filter(models.User.id == data.user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="Target user not found")

    user.verification_status = new_status
    user.is_verified = new_status == "approved"
    db.commit()
    db.refresh(user)
    logger.info("Admin %s %s user %s", admin.id, new_status, user.id)

    if user.is_verified:
        message = "Your landlord account has been verified. You can now list properties."
    else:
        message = "Your verification request was rejected. Please upload a clearer document."
    notification = create_notification(
        db, recipient_id=user.id, sender_id=admin.id, message=message, link="/profile"
    )
    from_thread.run(relay.push_notification, notification)

    return {
        "message": f"User {new_status} successfully!",
        "user": schemas.UserResponse.model_validate(user),
    }
