"""Landlord dashboard statistics."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session
import models
import schemas
from database import get_db
from .auth import get_current_user

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=schemas.DashboardStats)
def get_dashboard_stats(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    """Totals across the landlord's listings plus view counts per listing."""
    if current_user.user_type != "landlord":
        raise HTTPException(status_code=403, detail="Access denied.")

    properties = db.query(models.Property.id, models.Property.title).filter(
        models.Property.landlord_id == current_user.id
    ).order_by(models.Property.created_at.desc()).all()
    property_ids = [p.id for p in properties]

    view_counts = {}
    total_favorites = 0
    if property_ids:
        view_counts = dict(
            db.query(models.PropertyView.property_id, func.count(models.PropertyView.id))
            .filter(models.PropertyView.property_id.in_(property_ids))
            .group_by(models.PropertyView.property_id)
            .all()
        )
        total_favorites = db.query(models.Favorite).filter(
            models.Favorite.property_id.in_(property_ids)
        ).count()

    summary = {
        "total_properties": len(properties),
        "total_views": sum(view_counts.values()),
        "total_favorites": total_favorites,
        "total_conversations": db.query(models.Conversation).filter(
            models.Conversation.landlord_id == current_user.id
        ).count(),
    }

    return {
        "summary": summary,
        "properties": [
            {"id": p.id, "title": p.title, "view_count": view_counts.get(p.id, 0)}
            for p in properties
        ],
    }
