"""Student-landlord conversations about a listing."""
import logging
from typing import List

from anyio import from_thread
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import models
import schemas
from ai_client import GeminiClient, get_ai_client
from database import get_db
from errors import AINotConfiguredError, AIServiceError
from prompts import PROPERTY_QA_SYSTEM_PROMPT, property_question_query
from relay import ChatRelay, get_relay
from .auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["Messaging"])


def is_participant(user_id: int):
    return or_(
        models.Conversation.student_id == user_id,
        models.Conversation.landlord_id == user_id
    )


@router.get("", response_model=List[schemas.ConversationResponse])
def get_my_conversations(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    """Every conversation the caller takes part in, with participants and listing title."""
    return db.query(models.Conversation).filter(
        is_participant(current_user.id)
    ).order_by(models.Conversation.updated_at.desc()).all()


@router.post("", response_model=schemas.ConversationStarted, status_code=status.HTTP_201_CREATED)
def start_conversation(
    data: schemas.ConversationCreate,
    response: Response,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    """Opens the conversation between the caller and a listing's landlord, or returns the existing one."""
    prop = db.query(models.Property).filter(models.Property.id == data.property_id).first()
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")

    if prop.landlord_id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot message yourself about your own property")

    if current_user.user_type != "student":
        raise HTTPException(status_code=403, detail="Only students can contact landlords")

    existing = db.query(models.Conversation).filter(
        models.Conversation.property_id == prop.id,
        models.Conversation.student_id == current_user.id
    ).first()
    if existing:
        response.status_code = status.HTTP_200_OK
        return {"conversation_id": existing.id}

    conversation = models.Conversation(
        property_id=prop.id,
        student_id=current_user.id,
        landlord_id=prop.landlord_id
    )
    db.add(conversation)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = db.query(models.Conversation).filter(
            models.Conversation.property_id == prop.id,
            models.Conversation.student_id == current_user.id
        ).first()
        response.status_code = status.HTTP_200_OK
        return {"conversation_id": existing.id}
    db.refresh(conversation)
    return {"conversation_id": conversation.id}


def get_participant_conversation(db: Session, conversation_id: int, user: models.User) -> models.Conversation:
    conversation = db.query(models.Conversation).filter(
        models.Conversation.id == conversation_id,
        is_participant(user.id)
    ).first()
    if not conversation:
        raise HTTPException(status_code=403, detail="Unauthorized.")
    return conversation


@router.get("/{conversation_id}/messages", response_model=List[schemas.MessageResponse])
def get_conversation_messages(
    conversation_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    """Message history in sending order. Only the two participants may read it."""
    conversation = get_participant_conversation(db, conversation_id, current_user)

    return db.query(models.Message).filter(
        models.Message.conversation_id == conversation.id
    ).order_by(models.Message.created_at.asc(), models.Message.id.asc()).all()


@router.post("/{conversation_id}/ask-ai")
def ask_ai(
    conversation_id: int,
    request: schemas.AskAIRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    ai: GeminiClient = Depends(get_ai_client),
    relay: ChatRelay = Depends(get_relay)
):
    """Answers a question about the listing and posts the answer on the landlord's behalf."""
    if not request.question or not request.question.strip():
        raise HTTPException(status_code=400, detail="A question is required.")

    conversation = db.query(models.Conversation).filter(
        models.Conversation.id == conversation_id
    ).first()
    if not conversation:
        raise HTTPException(status_code=404, detail="Conversation not found.")

    if current_user.id not in conversation.participant_ids():
        raise HTTPException(status_code=403, detail="Unauthorized.")

    prop = conversation.property
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found for this conversation.")

    try:
        answer = from_thread.run(
            ai.generate, PROPERTY_QA_SYSTEM_PROMPT, property_question_query(prop, request.question)
        )
    except AINotConfiguredError:
        logger.error("GEMINI_API_KEY is not defined.")
        raise HTTPException(status_code=500, detail="AI service is not configured.")
    except AIServiceError as e:
        logger.error("AI chat error: %s", e)
        raise HTTPException(status_code=500, detail="Server error processing AI request.")

    from_thread.run(relay.post_message, db, conversation, conversation.landlord_id, answer)
    return {"message": "AI response sent."}
