"""Rental applications from students to landlords."""
import logging
from typing import List

from anyio import from_thread
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import models
import schemas
from database import get_db
from notify import create_notification
from relay import ChatRelay, get_relay
from .auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])

DUPLICATE_APPLICATION = "You have already applied here!"


@router.post("", response_model=schemas.ApplicationResponse, status_code=status.HTTP_201_CREATED)
def apply_for_property(
    data: schemas.ApplicationCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    relay: ChatRelay = Depends(get_relay)
):
    """Files an application for a listing. The landlord is whoever owns it."""
    if current_user.user_type != "student":
        raise HTTPException(status_code=403, detail="Only students can apply for properties.")

    prop = db.query(models.Property).filter(models.Property.id == data.property_id).first()
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")

    existing = db.query(models.Application).filter(
        models.Application.property_id == prop.id,
        models.Application.student_id == current_user.id
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail=DUPLICATE_APPLICATION)

    application = models.Application(
        property_id=prop.id,
        student_id=current_user.id,
        landlord_id=prop.landlord_id,
        message=data.message,
        status="pending"
    )
    db.add(application)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=DUPLICATE_APPLICATION)
    db.refresh(application)

    notification = create_notification(
        db,
        recipient_id=prop.landlord_id,
        sender_id=current_user.id,
        message=f"{current_user.username} applied for '{prop.title}'.",
        link="/dashboard",
    )
    from_thread.run(relay.push_notification, notification)
    return application


@router.get("/student", response_model=List[schemas.StudentApplicationResponse])
def get_student_applications(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    return db.query(models.Application).filter(
        models.Application.student_id == current_user.id
    ).order_by(models.Application.created_at.desc(), models.Application.id.desc()).all()


@router.get("/landlord", response_model=List[schemas.LandlordApplicationResponse])
def get_landlord_applications(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    """Applications to the caller's listings, with the applicant's profile."""
    return db.query(models.Application).filter(
        models.Application.landlord_id == current_user.id
    ).order_by(models.Application.created_at.desc(), models.Application.id.desc()).all()


@router.post("/{application_id}/status", response_model=schemas.ApplicationResponse)
def update_application_status(
    application_id: int,
    data: schemas.ApplicationStatusUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    relay: ChatRelay = Depends(get_relay)
):
    """Accepts or rejects an application. Only the landlord it was sent to may decide."""
    application = db.query(models.Application).filter(
        models.Application.id == application_id
    ).first()
    if not application:
        raise HTTPException(status_code=404, detail="Application not found")

    if application.landlord_id != current_user.id:
        raise HTTPException(status_code=403, detail="User not authorized")

    application.status = data.status
    db.commit()
    db.refresh(application)
    logger.info("Application %s marked %s", application.id, application.status)

    title = application.property.title if application.property else "a property"
    notification = create_notification(
        db,
        recipient_id=application.student_id,
        sender_id=current_user.id,
        message=f"Your application for '{title}' was {application.status}.",
        link="/applications",
    )
    from_thread.run(relay.push_notification, notification)
    return application
