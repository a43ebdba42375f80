"""Property reviews, ratings and their AI summary."""
import logging

from anyio import from_thread
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List
import models
import schemas
from ai_client import GeminiClient, get_ai_client
from database import get_db
from errors import AINotConfiguredError, AIServiceError
from prompts import NOT_ENOUGH_REVIEWS, REVIEW_SUMMARY_SYSTEM_PROMPT, review_summary_query
from .auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/properties", tags=["Reviews"])

DUPLICATE_REVIEW = "You have already reviewed this property."


@router.get("/{property_id}/reviews", response_model=List[schemas.ReviewResponse])
def get_property_reviews(property_id: int, db: Session = Depends(get_db)):
    """Retrieves all reviews for a specific listing, newest first."""
    return db.query(models.Review).filter(
        models.Review.property_id == property_id
    ).order_by(models.Review.created_at.desc(), models.Review.id.desc()).all()


@router.post(
    "/{property_id}/reviews",
    response_model=schemas.ReviewResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_review(
    property_id: int,
    review_data: schemas.ReviewCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    """Creates a review. One student can write only one review per listing."""
    if current_user.user_type != "student":
        raise HTTPException(status_code=403, detail="Only students can leave reviews.")

    prop = db.query(models.Property).filter(models.Property.id == property_id).first()
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")

    existing_review = db.query(models.Review).filter(
        models.Review.property_id == property_id,
        models.Review.user_id == current_user.id
    ).first()

    if existing_review:
        raise HTTPException(status_code=409, detail=DUPLICATE_REVIEW)

    new_review = models.Review(
        property_id=property_id,
        user_id=current_user.id,
        rating=review_data.rating,
        comment=review_data.comment
    )

    db.add(new_review)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=DUPLICATE_REVIEW)
    db.refresh(new_review)
    return new_review


@router.get("/{property_id}/reviews/summary")
def summarize_reviews(
    property_id: int,
    db: Session = Depends(get_db),
    ai: GeminiClient = Depends(get_ai_client)
):
    """Pros and cons of a listing condensed from its reviews."""
    reviews = db.query(models.Review).filter(models.Review.property_id == property_id).all()
    if len(reviews) < 2:
        return {"summary": NOT_ENOUGH_REVIEWS}

    try:
        summary = from_thread.run(
            ai.generate,
            REVIEW_SUMMARY_SYSTEM_PROMPT,
            review_summary_query(r.comment for r in reviews),
        )
    except AINotConfiguredError:
        logger.error("GEMINI_API_KEY is not defined.")
        raise HTTPException(status_code=500, detail="AI service is not configured.")
    except AIServiceError as e:
        logger.error("AI summary error: %s", e)
        raise HTTPException(status_code=500, detail="Server error generating summary.")

    return {"summary": summary}
