"""Trip repository for data access operations."""

from uuid import UUID

from sqlalchemy.orm import Session

from bukialo.models.trip import Trip


class TripRepository:
    """Repository for trip data access."""

    def __init__(self, db: Session):
        """Initialize repository with database session."""
        self.db = db

    def create(self, trip_data: dict) -> Trip:
        """Create a new trip (quotes start in QUOTE status)."""
        trip = Trip(**trip_data)
        self.db.add(trip)
        self.db.commit()
        self.db.refresh(trip)
        return trip

    def get_by_id(self, trip_id: UUID) -> Trip | None:
        """Get trip by ID."""
        return self.db.query(Trip).filter(Trip.id == trip_id).first()

    def get_by_contact(self, contact_id: UUID) -> list[Trip]:
        """Get trips for a contact."""
        return self.db.query(Trip).filter(Trip.contact_id == contact_id).all()
