"""Repositories for data access operations."""

from bukialo.repositories.automation_repository import AutomationRepository
from bukialo.repositories.contact_repository import ContactRepository
from bukialo.repositories.message_repository import MessageRepository
from bukialo.repositories.task_repository import TaskRepository
from bukialo.repositories.trip_repository import TripRepository
from bukialo.repositories.user_repository import UserRepository

__all__ = [
    "AutomationRepository",
    "ContactRepository",
    "MessageRepository",
    "TaskRepository",
    "TripRepository",
    "UserRepository",
]
