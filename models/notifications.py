from core.database import Base
from sqlalchemy import (Column, Integer, String, Boolean, ForeignKey, Enum)
from .enums import NotificationType, enum_values
from .mixins import CreatedAtMixin

class Notification(Base, CreatedAtMixin):
    """
    Outbox row for the notification dispatcher.

    Written in the same transaction as the state change it announces, so an
    event exists if and only if the change committed. Delivery (push/SMS) is
    done elsewhere, which flips ``sent``.
    """
    __tablename__ = "notifications"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    type = Column(Enum(NotificationType, values_callable=enum_values, name="notification_type"), nullable=False)
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    order_reference = Column(String, nullable=True)
    sent = Column(Boolean, default=False, nullable=False)
