"""Contact model for travellers in the sales pipeline."""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import relationship

from bukialo.core.db.session import Base
from bukialo.core.db.types import JSONType


class ContactStatus(str, Enum):
    """Pipeline stage of a contact."""

    INTERESADO = "INTERESADO"
    PASAJERO = "PASAJERO"
    CLIENTE = "CLIENTE"


class BudgetRange(str, Enum):
    """Declared travel budget of a contact."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    LUXURY = "LUXURY"


class Contact(Base):
    """Contact model for persons interested in or buying trips."""

    __tablename__ = "contacts"

    id = Column(Uuid, primary_key=True, default=uuid4)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    status = Column(
        String(20), nullable=False, default=ContactStatus.INTERESADO.value, index=True
    )
    source = Column(String(50), nullable=True)
    budget_range = Column(String(20), nullable=True)
    tags = Column(JSONType, nullable=False, default=list)
    assigned_agent_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    birth_date = Column(Date, nullable=True)
    last_contact_date = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
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

    # Relationships
    assigned_agent = relationship("User")
    trips = relationship("Trip", back_populates="contact", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_contacts_status_agent", "status", "assigned_agent_id"),
    )

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def __repr__(self) -> str:
        return f"<Contact(id={self.id}, email={self.email}, status={self.status})>"
