"""Trip model for quotes and bookings."""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from bukialo.core.db.session import Base


class TripStatus(str, Enum):
    QUOTE = "QUOTE"
    BOOKED = "BOOKED"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Trip(Base):
    """Trip for a contact, from quote to completion."""

    __tablename__ = "trips"

    id = Column(Uuid, primary_key=True, default=uuid4)
    contact_id = Column(
        Uuid,
        ForeignKey("contacts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    destination = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default=TripStatus.QUOTE.value, index=True)
    departure_date = Column(DateTime(timezone=True), nullable=True)
    return_date = Column(DateTime(timezone=True), nullable=True)
    travelers = Column(Integer, nullable=False, default=1)
    estimated_budget = Column(Numeric(12, 2), nullable=True)
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
    contact = relationship("Contact", back_populates="trips")

    def __repr__(self) -> str:
        return f"<Trip(id={self.id}, destination={self.destination}, status={self.status})>"
