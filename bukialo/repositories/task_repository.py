"""Task repository for data access operations."""

from uuid import UUID

from sqlalchemy.orm import Session

from bukialo.models.task import Task


class TaskRepository:
    """Repository for task data access."""

    def __init__(self, db: Session):
        """Initialize repository with database session."""
        self.db = db

    def create(self, task_data: dict) -> Task:
        """Create a new task."""
        task = Task(**task_data)
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        return task

    def get_by_id(self, task_id: UUID) -> Task | None:
        """Get task by ID."""
        return self.db.query(Task).filter(Task.id == task_id).first()

    def get_by_contact(self, contact_id: UUID) -> list[Task]:
        """Get tasks for a contact, newest first."""
        return (
            self.db.query(Task)
            .filter(Task.contact_id == contact_id)
            .order_by(Task.created_at.desc())
            .all()
        )
