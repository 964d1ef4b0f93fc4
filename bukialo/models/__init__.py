from bukialo.core.db.session import Base
from bukialo.models.automation import (
    Automation,
    AutomationAction,
    AutomationExecution,
    ScheduledAction,
)
from bukialo.models.contact import Contact
from bukialo.models.message import MessageTemplate, OutboundMessage
from bukialo.models.task import Task
from bukialo.models.trip import Trip
from bukialo.models.user import User

__all__ = [
    "Base",
    "Automation",
    "AutomationAction",
    "AutomationExecution",
    "Contact",
    "MessageTemplate",
    "OutboundMessage",
    "ScheduledAction",
    "Task",
    "Trip",
    "User",
]
