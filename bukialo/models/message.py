"""Message template and outbound message models."""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid

from bukialo.core.db.session import Base


class MessageChannel(str, Enum):
    EMAIL = "email"
    WHATSAPP = "whatsapp"


class OutboundMessageStatus(str, Enum):
    QUEUED = "queued"
    SENT = "sent"
    FAILED = "failed"


class MessageTemplate(Base):
    """Reusable message template rendered with Jinja2."""

    __tablename__ = "message_templates"

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False)
    channel = Column(String(20), nullable=False, default=MessageChannel.EMAIL.value)
    subject = Column(String(500), nullable=True)
    body = Column(Text, nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )


class OutboundMessage(Base):
    """Rendered message waiting for the delivery service."""

    __tablename__ = "outbound_messages"

    id = Column(Uuid, primary_key=True, default=uuid4)
    template_id = Column(
        Uuid,
        ForeignKey("message_templates.id", ondelete="SET NULL"),
        nullable=True,
    )
    contact_id = Column(
        Uuid,
        ForeignKey("contacts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    channel = Column(String(20), nullable=False)
    recipient = Column(String(255), nullable=False)
    subject = Column(String(500), nullable=True)
    body = Column(Text, nullable=False)
    status = Column(
        String(20), nullable=False, default=OutboundMessageStatus.QUEUED.value, index=True
    )
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
