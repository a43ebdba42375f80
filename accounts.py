"""Account removal and everything that hangs off an account."""
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

import models

logger = logging.getLogger(__name__)


def _delete_conversations(db: Session, condition) -> None:
    ids = [cid for (cid,) in db.query(models.Conversation.id).filter(condition).all()]
    if not ids:
        return
    db.query(models.Message).filter(
        models.Message.conversation_id.in_(ids)
    ).delete(synchronize_session=False)
    db.query(models.Conversation).filter(
        models.Conversation.id.in_(ids)
    ).delete(synchronize_session=False)


def _delete_properties(db: Session, landlord_id: int) -> int:
    property_ids = [
        pid for (pid,) in db.query(models.Property.id).filter(
            models.Property.landlord_id == landlord_id
        ).all()
    ]
    if not property_ids:
        return 0

    _delete_conversations(db, models.Conversation.property_id.in_(property_ids))
    for model in (models.Favorite, models.PropertyView, models.Review, models.Application):
        db.query(model).filter(model.property_id.in_(property_ids)).delete(synchronize_session=False)
    db.query(models.Property).filter(
        models.Property.id.in_(property_ids)
    ).delete(synchronize_session=False)
    return len(property_ids)


def delete_account(db: Session, user: models.User) -> None:
    """Deletes a user and every record that only makes sense with them around.

    A landlord takes their listings with them, and with those listings every
    favorite, view, conversation, review and application that points at one.
    """
    user_id = user.id
    removed_properties = 0
    if user.user_type == "landlord":
        removed_properties = _delete_properties(db, user_id)

    _delete_conversations(db, or_(
        models.Conversation.student_id == user_id,
        models.Conversation.landlord_id == user_id,
    ))
    db.query(models.Favorite).filter(models.Favorite.user_id == user_id).delete(synchronize_session=False)
    db.query(models.Review).filter(models.Review.user_id == user_id).delete(synchronize_session=False)
    db.query(models.Application).filter(or_(
        models.Application.student_id == user_id,
        models.Application.landlord_id == user_id,
    )).delete(synchronize_session=False)
    db.query(models.Notification).filter(
        models.Notification.recipient_id == user_id
    ).delete(synchronize_session=False)
    db.query(models.Notification).filter(
        models.Notification.sender_id == user_id
    ).update({models.Notification.sender_id: None}, synchronize_session=False)
    db.query(models.User).filter(models.User.id == user_id).delete(synchronize_session=False)
    db.commit()

    logger.info("Deleted account %s and %s listings", user_id, removed_properties)
