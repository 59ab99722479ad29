from sqlalchemy.orm import Session
from models.enums import NotificationType
from models.notifications import Notification
from utils.logger import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Emits customer-facing order events into the notification outbox.

    Rows are added to the caller's session and committed (or rolled back)
    together with the state change they describe. Push/SMS delivery is the
    dispatcher's job, not ours.
    """

    def __init__(self, db: Session):
        self.db = db

    def emit(self, user_id: int, type: NotificationType, title: str, message: str,
             order_reference: str | None = None) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            order_reference=order_reference,
        )
        self.db.add(notification)

        logger.debug(
            "Notification queued",
            extra={"user_id": user_id, "title": title, "order_number": order_reference}
        )
        return notification
