"""Saved listings."""
from typing import List, Optional

from anyio import from_thread
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import models
import schemas
from database import get_db
from notify import create_notification
from relay import ChatRelay, get_relay
from .auth import get_current_user

router = APIRouter(prefix="/favorites", tags=["Favorites"])

DUPLICATE_FAVORITE = "Property is already in your favorites."


@router.get("", response_model=List[schemas.PropertyResponse])
def get_favorites(
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    """The caller's favorited listings, most recently saved first."""
    query = db.query(models.Favorite).filter(
        models.Favorite.user_id == current_user.id
    ).order_by(models.Favorite.created_at.desc(), models.Favorite.id.desc())
    if limit:
        query = query.limit(limit)

    return [fav.property for fav in query.all() if fav.property is not None]


@router.post("", response_model=schemas.FavoriteResponse, status_code=status.HTTP_201_CREATED)
def add_favorite(
    favorite: schemas.FavoriteCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    relay: ChatRelay = Depends(get_relay)
):
    """Saves a listing and tells its landlord about it."""
    prop = db.query(models.Property).filter(models.Property.id == favorite.property_id).first()
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")

    existing = db.query(models.Favorite).filter(
        models.Favorite.user_id == current_user.id,
        models.Favorite.property_id == favorite.property_id
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail=DUPLICATE_FAVORITE)

    new_favorite = models.Favorite(user_id=current_user.id, property_id=favorite.property_id)
    db.add(new_favorite)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=DUPLICATE_FAVORITE)
    db.refresh(new_favorite)

    if prop.landlord_id != current_user.id:
        notification = create_notification(
            db,
            recipient_id=prop.landlord_id,
            sender_id=current_user.id,
            message=f"Your property '{prop.title}' has a new favorite!",
            link=f"/properties/{prop.id}",
        )
        from_thread.run(relay.push_notification, notification)

    return new_favorite


@router.delete("/{property_id}")
def remove_favorite(
    property_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    db.query(models.Favorite).filter(
        models.Favorite.user_id == current_user.id,
        models.Favorite.property_id == property_id
    ).delete(synchronize_session=False)
    db.commit()
    return {"message": "Favorite removed"}
