"""
Notification service for boundary proposals and adjustments.

Notifications are written to the ``notifications`` table; delivery is
handled elsewhere.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from app.models.boundary import Notification
from app.models.enums import NotificationPriority
from app.services.config_service import config_service

logger = logging.getLogger("app.notifications")


class NotificationService:
    def __init__(self, db: Session, clock: Callable[[], datetime] = config_service.now):
        self.db = db
        self.clock = clock

    def create_notification(
        self,
        recipient_id: str,
        type: str,
        title: str,
        message: str,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Queue a notification for a user.

        Args:
            recipient_id: User to notify
            type: Notification type, e.g. boundary_proposal
            title: Short title
            message: Message body
            priority: Delivery priority
            metadata: Extra structured data for the client

        Returns:
            bool: True if the notification was stored, False otherwise
        """
        try:
            notification = Notification(
                recipient_id=recipient_id,
                type=type,
                title=title,
                message=message,
                priority=priority,
                extra=dict(metadata or {}),
                created_at=self.clock(),
            )
            self.db.add(notification)
            self.db.commit()

            logger.info(f"Notification {type} queued for {recipient_id}")
            return True

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to queue notification {type} for {recipient_id}: {e}")
            return False
