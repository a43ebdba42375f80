"""Search, creation, editing and photo uploads for rental listings."""
import logging
import math
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import models
import schemas
from ai_client import GeminiClient, get_ai_client
from database import get_db
from errors import AINotConfiguredError, AIServiceError, ImageUploadError
from image_host import PROPERTY_FOLDER, CloudinaryClient, get_image_host
from prompts import DESCRIPTION_SYSTEM_PROMPT, description_query
from .auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/properties", tags=["Properties"])

PROPERTY_TYPES = ("apartment", "house", "room")
MAX_IMAGES = 5
REQUIRED_FIELDS = ("title", "address", "city", "price", "property_type")


def review_stats(db: Session, property_ids):
    """Average rating and review count per property id, computed by the database."""
    if not property_ids:
        return {}
    rows = db.query(
        models.Review.property_id,
        func.avg(models.Review.rating),
        func.count(models.Review.id),
    ).filter(
        models.Review.property_id.in_(property_ids)
    ).group_by(models.Review.property_id).all()
    return {property_id: (avg, count) for property_id, avg, count in rows}


def get_owned_property(db: Session, property_id: int, current_user: models.User) -> models.Property:
    """Loads a listing and checks the caller is the landlord who owns it."""
    prop = db.query(models.Property).filter(models.Property.id == property_id).first()
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")

    if prop.landlord_id != current_user.id:
        raise HTTPException(status_code=403, detail="User not authorized")

    return prop


@router.get("", response_model=schemas.PropertyPage)
def list_properties(
        search: Optional[str] = None,
        page: int = Query(1, ge=1),
        limit: int = Query(6, ge=1, le=100),
        city: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        bedrooms: Optional[str] = None,
        property_type: Optional[str] = None,
        db: Session = Depends(get_db)
):
    """Paginated listing search, newest first, with rating aggregates per listing."""
    query = db.query(models.Property)

    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            models.Property.title.ilike(pattern),
            models.Property.address.ilike(pattern),
            models.Property.city.ilike(pattern),
        ))

    if city and city != "All":
        query = query.filter(models.Property.city == city)

    if min_price is not None:
        query = query.filter(models.Property.price >= min_price)

    if max_price is not None:
        query = query.filter(models.Property.price <= max_price)

    if bedrooms and bedrooms != "Any":
        if bedrooms == "4+":
            query = query.filter(models.Property.bedrooms >= 4)
        else:
            try:
                query = query.filter(models.Property.bedrooms == int(bedrooms))
            except ValueError:
                raise HTTPException(status_code=400, detail="Invalid bedrooms filter")

    if property_type and property_type != "All":
        query = query.filter(models.Property.property_type == property_type)

    total = query.count()
    properties = query.order_by(
        models.Property.created_at.desc(), models.Property.id.desc()
    ).offset((page - 1) * limit).limit(limit).all()

    stats = review_stats(db, [p.id for p in properties])
    items = []
    for prop in properties:
        average, count = stats.get(prop.id, (None, 0))
        items.append(schemas.PropertyListItem.model_validate(prop).model_copy(update={
            "average_rating": float(average) if average is not None else None,
            "review_count": count,
        }))

    return schemas.PropertyPage(
        properties=items,
        current_page=page,
        total_pages=math.ceil(total / limit),
    )


@router.get("/featured", response_model=List[schemas.PropertyResponse])
def featured_properties(limit: int = Query(3, ge=1, le=50), db: Session = Depends(get_db)):
    """Most-favorited listings, topped up with the newest ones."""
    popular = db.query(models.Property).join(models.Favorite).group_by(
        models.Property.id
    ).order_by(
        func.count(models.Favorite.id).desc(), models.Property.id.desc()
    ).limit(limit).all()

    if len(popular) >= limit:
        return popular

    query = db.query(models.Property)
    if popular:
        query = query.filter(models.Property.id.notin_([p.id for p in popular]))
    recent = query.order_by(
        models.Property.created_at.desc(), models.Property.id.desc()
    ).limit(limit - len(popular)).all()
    return popular + recent


@router.get("/cities", response_model=List[str])
def list_cities(db: Session = Depends(get_db)):
    rows = db.query(models.Property.city).distinct().order_by(models.Property.city).all()
    return [city for (city,) in rows]


@router.post("/generate-description")
async def generate_description(
        request: schemas.DescriptionRequest,
        current_user: models.User = Depends(get_current_user),
        ai: GeminiClient = Depends(get_ai_client)
):
    """Drafts a listing description from a few keywords."""
    if not request.prompt or not request.prompt.strip():
        raise HTTPException(status_code=400, detail="Prompt (keywords) is required.")

    try:
        description = await ai.generate(DESCRIPTION_SYSTEM_PROMPT, description_query(request.prompt))
    except AINotConfiguredError:
        logger.error("GEMINI_API_KEY is not defined.")
        raise HTTPException(status_code=500, detail="Server error: AI service is not configured.")
    except AIServiceError as e:
        logger.error("AI description error: %s", e)
        raise HTTPException(status_code=500, detail="Server error generating description.")

    return {"description": description}


@router.get("/{property_id}", response_model=schemas.PropertyResponse)
def get_property_details(property_id: int, db: Session = Depends(get_db)):
    """Detailed view for a specific listing."""
    prop = db.query(models.Property).filter(models.Property.id == property_id).first()
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")

    return prop


@router.post("", response_model=schemas.PropertyResponse, status_code=status.HTTP_201_CREATED)
def create_property(
        title: str = Form(...),
        address: str = Form(...),
        city: str = Form(...),
        price: float = Form(..., ge=0),
        property_type: str = Form(...),
        description: str = Form(""),
        bedrooms: Optional[int] = Form(None),
        bathrooms: Optional[int] = Form(None),
        amenities: Optional[str] = Form(None),
        lat: Optional[float] = Form(None),
        lng: Optional[float] = Form(None),
        virtual_tour_url: str = Form(""),
        images: Optional[List[UploadFile]] = File(None),
        db: Session = Depends(get_db),
        current_user: models.User = Depends(get_current_user),
        image_host: CloudinaryClient = Depends(get_image_host)
):
    """Creates a listing owned by the calling landlord, uploading up to five photos."""
    if current_user.user_type != "landlord":
        raise HTTPException(
            status_code=403,
            detail="Permission denied: Only landlords can create listings"
        )

    if not current_user.is_verified:
        raise HTTPException(
            status_code=403,
            detail="Access Denied: You must be a Verified Landlord to post properties. "
                   "Please upload your ID in the Profile section."
        )

    if property_type not in PROPERTY_TYPES:
        raise HTTPException(status_code=400, detail="Invalid property type")

    images = images or []
    if len(images) > MAX_IMAGES:
        raise HTTPException(status_code=400, detail=f"At most {MAX_IMAGES} images are allowed")

    try:
        image_urls = image_host.upload_many([image.file for image in images], PROPERTY_FOLDER)
    except ImageUploadError:
        raise HTTPException(status_code=500, detail="Server error adding property")

    new_prop = models.Property(
        landlord_id=current_user.id,
        title=title,
        description=description,
        address=address,
        city=city,
        price=price,
        property_type=property_type,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        amenities=amenities,
        image_url=image_urls[0] if image_urls else "",
        images=image_urls,
        lat=lat,
        lng=lng,
        virtual_tour_url=virtual_tour_url or "",
    )

    try:
        db.add(new_prop)
        db.commit()
        db.refresh(new_prop)
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Database error during creation")

    return new_prop


@router.put("/{property_id}", response_model=schemas.PropertyResponse)
def update_property(
        property_id: int,
        changes: schemas.PropertyUpdate,
        db: Session = Depends(get_db),
        current_user: models.User = Depends(get_current_user)
):
    """Edits a listing. Only its landlord may do this."""
    prop = get_owned_property(db, property_id, current_user)

    for field, value in changes.model_dump(exclude_unset=True).items():
        if value is None and field in REQUIRED_FIELDS:
            continue
        setattr(prop, field, value)

    db.commit()
    db.refresh(prop)
    return prop


@router.delete("/{property_id}")
def delete_property(
        property_id: int,
        db: Session = Depends(get_db),
        current_user: models.User = Depends(get_current_user)
):
    """Deletes a listing together with its favorites, views, conversations and reviews."""
    prop = get_owned_property(db, property_id, current_user)

    db.delete(prop)
    db.commit()
    return {"message": "Property removed"}


@router.post("/{property_id}/view")
def record_view(property_id: int, db: Session = Depends(get_db)):
    prop = db.query(models.Property).filter(models.Property.id == property_id).first()
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")

    db.add(models.PropertyView(property_id=property_id))
    db.commit()
    return {"message": "View recorded."}
