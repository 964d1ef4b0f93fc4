"""Message repository for templates and queued outbound messages."""

from uuid import UUID

from sqlalchemy.orm import Session

from bukialo.models.message import MessageTemplate, OutboundMessage


class MessageRepository:
    """Repository for message data access."""

    def __init__(self, db: Session):
        """Initialize repository with database session."""
        self.db = db

    # MessageTemplate operations
    def create_template(self, template_data: dict) -> MessageTemplate:
        """Create a new message template."""
        template = MessageTemplate(**template_data)
        self.db.add(template)
        self.db.commit()
        self.db.refresh(template)
        return template

    def get_template_by_id(self, template_id: UUID) -> MessageTemplate | None:
        """Get message template by ID."""
        return (
            self.db.query(MessageTemplate)
            .filter(MessageTemplate.id == template_id)
            .first()
        )

    def get_template_by_name(self, name: str) -> MessageTemplate | None:
        """Get message template by name."""
        return (
            self.db.query(MessageTemplate)
            .filter(MessageTemplate.name == name)
            .first()
        )

    # OutboundMessage operations
    def create_outbound(self, message_data: dict) -> OutboundMessage:
        """Queue an outbound message."""
        message = OutboundMessage(**message_data)
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        return message

    def get_outbound_by_contact(self, contact_id: UUID) -> list[OutboundMessage]:
        """Get outbound messages for a contact, newest first."""
        return (
            self.db.query(OutboundMessage)
            .filter(OutboundMessage.contact_id == contact_id)
            .order_by(OutboundMessage.created_at.desc())
            .all()
        )
