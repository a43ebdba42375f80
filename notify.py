"""Persisted in-app notifications."""
from typing import Optional

from sqlalchemy.orm import Session

import models


def create_notification(
    db: Session,
    recipient_id: int,
    message: str,
    link: Optional[str] = None,
    sender_id: Optional[int] = None,
) -> models.Notification:
    notification = models.Notification(
        recipient_id=recipient_id,
        sender_id=sender_id,
        message=message,
        link=link,
        is_read=False,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification
