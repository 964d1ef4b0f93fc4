"""Contact repository for data access operations."""

from uuid import UUID

from sqlalchemy.orm import Session

from bukialo.models.contact import Contact


class ContactRepository:
    """Repository for contact data access."""

    def __init__(self, db: Session):
        """Initialize repository with database session."""
        self.db = db

    def create(self, contact_data: dict) -> Contact:
        """Create a new contact."""
        contact = Contact(**contact_data)
        self.db.add(contact)
        self.db.commit()
        self.db.refresh(contact)
        return contact

    def get_by_id(self, contact_id: UUID) -> Contact | None:
        """Get contact by ID."""
        return self.db.query(Contact).filter(Contact.id == contact_id).first()

    def update(self, contact: Contact, contact_data: dict) -> Contact:
        """Update contact data."""
        for key, value in contact_data.items():
            setattr(contact, key, value)
        self.db.commit()
        self.db.refresh(contact)
        return contact

    def add_tags(self, contact: Contact, tags: list[str]) -> Contact:
        """Add tags to a contact, keeping existing ones and skipping duplicates."""
        current = list(contact.tags or [])
        merged = current + [tag for tag in dict.fromkeys(tags) if tag not in current]
        # Assign a new list so the JSON column is flagged as modified
        return self.update(contact, {"tags": merged})
