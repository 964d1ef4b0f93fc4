"""Per-type action handlers and the gateways they act through."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol
from uuid import UUID

from bukialo.core.automation.errors import (
    ActionExecutionError,
    MissingReferenceError,
    RelatedEntityNotFoundError,
)
from bukialo.core.automation.parameters import (
    AddTagParameters,
    AssignAgentParameters,
    CreateTaskParameters,
    GenerateQuoteParameters,
    ScheduleCallParameters,
    SendEmailParameters,
    SendWhatsappParameters,
    UpdateStatusParameters,
)
from bukialo.core.clock import Clock
from bukialo.core.messaging.gateway import MessageGateway
from bukialo.models.automation import ActionType
from bukialo.models.contact import Contact
from bukialo.models.message import MessageChannel
from bukialo.models.task import Task, TaskPriority, TaskType
from bukialo.models.trip import Trip, TripStatus
from bukialo.models.user import User

logger = logging.getLogger(__name__)


class ContactGateway(Protocol):
    def get_by_id(self, contact_id: UUID) -> Contact | None: ...

    def update(self, contact: Contact, contact_data: dict) -> Contact: ...

    def add_tags(self, contact: Contact, tags: list[str]) -> Contact: ...


class TaskGateway(Protocol):
    def create(self, task_data: dict) -> Task: ...


class TripGateway(Protocol):
    def create(self, trip_data: dict) -> Trip: ...


class UserGateway(Protocol):
    def get_by_id(self, user_id: UUID) -> User | None: ...


Handler = Callable[[Any, dict[str, Any]], Awaitable[dict[str, Any]]]


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def _str_or_none(value) -> str | None:
    return str(value) if value is not None else None


class ActionHandlers:
    """Side-effect logic for each action type.

    Every handler receives its typed parameters and the trigger payload and
    returns a small JSON-safe result map. Failures are raised as
    ActionExecutionError subclasses.
    """

    def __init__(
        self,
        contacts: ContactGateway,
        tasks: TaskGateway,
        trips: TripGateway,
        users: UserGateway,
        messages: MessageGateway,
        clock: Clock,
        default_task_priority: TaskPriority = TaskPriority.MEDIUM,
    ):
        """Initialize action handlers.

        Args:
            contacts: Contact persistence gateway
            tasks: Task persistence gateway
            trips: Trip persistence gateway
            users: User lookup gateway
            messages: Outbound message gateway
            clock: Time source
            default_task_priority: Priority for create-task actions without one
        """
        self.contacts = contacts
        self.tasks = tasks
        self.trips = trips
        self.users = users
        self.messages = messages
        self.clock = clock
        self.default_task_priority = default_task_priority

        self._handlers: dict[ActionType, Handler] = {
            ActionType.SEND_EMAIL: self.send_email,
            ActionType.CREATE_TASK: self.create_task,
            ActionType.SCHEDULE_CALL: self.schedule_call,
            ActionType.ADD_TAG: self.add_tag,
            ActionType.UPDATE_STATUS: self.update_status,
            ActionType.GENERATE_QUOTE: self.generate_quote,
            ActionType.ASSIGN_AGENT: self.assign_agent,
            ActionType.SEND_WHATSAPP: self.send_whatsapp,
        }

    def supports(self, action_type: str) -> bool:
        try:
            return ActionType(action_type) in self._handlers
        except ValueError:
            return False

    def get(self, action_type: str) -> Handler:
        return self._handlers[ActionType(action_type)]

    # Payload references

    def _find_contact(self, raw_id: Any) -> Contact:
        try:
            contact_id = raw_id if isinstance(raw_id, UUID) else UUID(str(raw_id))
        except ValueError:
            raise RelatedEntityNotFoundError("Contact", raw_id) from None
        contact = self.contacts.get_by_id(contact_id)
        if contact is None:
            raise RelatedEntityNotFoundError("Contact", raw_id)
        return contact

    def _require_contact(self, payload: dict[str, Any], action_type: ActionType) -> Contact:
        raw_id = payload.get("contactId")
        if not raw_id:
            raise MissingReferenceError("contactId", action_type.value)
        return self._find_contact(raw_id)

    @staticmethod
    def _contact_variables(contact: Contact, payload: dict[str, Any]) -> dict[str, Any]:
        return {
            "payload": payload,
            "contact": {
                "firstName": contact.first_name,
                "lastName": contact.last_name,
                "fullName": contact.full_name,
                "email": contact.email,
                "phone": contact.phone,
                "status": contact.status,
            },
            "firstName": contact.first_name,
            "lastName": contact.last_name,
        }

    # Handlers

    async def send_email(
        self, params: SendEmailParameters, payload: dict[str, Any]
    ) -> dict[str, Any]:
        contact = self._require_contact(payload, ActionType.SEND_EMAIL)
        if not contact.email:
            raise ActionExecutionError(f"Contact {contact.id} has no email address")

        variables = {**self._contact_variables(contact, payload), **params.variables}
        sent = self.messages.send(
            MessageChannel.EMAIL,
            contact.email,
            template_id=params.template_id,
            variables=variables,
            contact_id=contact.id,
        )
        logger.info(f"Email {params.template_id} queued for contact {contact.id}")
        return {
            "recipient": contact.email,
            "templateId": params.template_id,
            "messageId": sent.get("messageId"),
            "sentAt": self.clock.now().isoformat(),
        }

    async def create_task(
        self, params: CreateTaskParameters, payload: dict[str, Any]
    ) -> dict[str, Any]:
        # The contact link is optional for plain tasks
        contact = self._find_contact(payload["contactId"]) if payload.get("contactId") else None
        assigned_to_id = params.assigned_to_id or (contact.assigned_agent_id if contact else None)
        priority = params.priority or self.default_task_priority

        task = self.tasks.create(
            {
                "title": params.title,
                "description": params.description,
                "task_type": TaskType.TASK.value,
                "priority": TaskPriority(priority).value,
                "due_date": params.due_date,
                "assigned_to_id": assigned_to_id,
                "contact_id": contact.id if contact else None,
            }
        )
        return {
            "taskId": str(task.id),
            "title": task.title,
            "priority": task.priority,
            "assignedToId": _str_or_none(assigned_to_id),
            "contactId": _str_or_none(contact.id if contact else None),
        }

    async def schedule_call(
        self, params: ScheduleCallParameters, payload: dict[str, Any]
    ) -> dict[str, Any]:
        contact = self._require_contact(payload, ActionType.SCHEDULE_CALL)
        assigned_to_id = params.assigned_to_id or contact.assigned_agent_id

        task = self.tasks.create(
            {
                "title": params.title,
                "description": params.description,
                "task_type": TaskType.CALL.value,
                "priority": self.default_task_priority.value,
                "due_date": params.scheduled_date,
                "duration_minutes": params.duration,
                "assigned_to_id": assigned_to_id,
                "contact_id": contact.id,
            }
        )
        return {
            "taskId": str(task.id),
            "scheduledDate": _iso(params.scheduled_date),
            "duration": params.duration,
            "assignedToId": _str_or_none(assigned_to_id),
        }

    async def add_tag(
        self, params: AddTagParameters, payload: dict[str, Any]
    ) -> dict[str, Any]:
        contact = self._require_contact(payload, ActionType.ADD_TAG)
        before = set(contact.tags or [])
        contact = self.contacts.add_tags(contact, params.tags)
        return {
            "contactId": str(contact.id),
            "added": [tag for tag in params.tags if tag not in before],
            "tags": list(contact.tags),
        }

    async def update_status(
        self, params: UpdateStatusParameters, payload: dict[str, Any]
    ) -> dict[str, Any]:
        contact = self._require_contact(payload, ActionType.UPDATE_STATUS)
        previous = contact.status
        contact = self.contacts.update(contact, {"status": params.status.value})
        return {
            "contactId": str(contact.id),
            "previousStatus": previous,
            "status": contact.status,
            "reason": params.reason,
        }

    async def generate_quote(
        self, params: GenerateQuoteParameters, payload: dict[str, Any]
    ) -> dict[str, Any]:
        contact = self._require_contact(payload, ActionType.GENERATE_QUOTE)
        destination = params.destination or payload.get("destination")
        if not destination:
            raise MissingReferenceError("destination", ActionType.GENERATE_QUOTE.value)

        trip = self.trips.create(
            {
                "contact_id": contact.id,
                "destination": destination,
                "status": TripStatus.QUOTE.value,
                "travelers": params.travelers,
                "estimated_budget": params.estimated_budget,
                "departure_date": params.departure_date,
                "return_date": params.return_date,
                "notes": params.notes,
            }
        )
        return {
            "tripId": str(trip.id),
            "destination": trip.destination,
            "status": trip.status,
            "travelers": trip.travelers,
        }

    async def assign_agent(
        self, params: AssignAgentParameters, payload: dict[str, Any]
    ) -> dict[str, Any]:
        contact = self._require_contact(payload, ActionType.ASSIGN_AGENT)
        agent = self.users.get_by_id(params.agent_id)
        if agent is None:
            raise RelatedEntityNotFoundError("User", params.agent_id)
        if not agent.is_active:
            raise ActionExecutionError(f"Agent {agent.id} is not active")

        previous = contact.assigned_agent_id
        contact = self.contacts.update(contact, {"assigned_agent_id": agent.id})
        return {
            "contactId": str(contact.id),
            "agentId": str(agent.id),
            "previousAgentId": _str_or_none(previous),
        }

    async def send_whatsapp(
        self, params: SendWhatsappParameters, payload: dict[str, Any]
    ) -> dict[str, Any]:
        contact = self._require_contact(payload, ActionType.SEND_WHATSAPP)
        if not contact.phone:
            raise ActionExecutionError(f"Contact {contact.id} has no phone number")

        variables = {**self._contact_variables(contact, payload), **params.variables}
        sent = self.messages.send(
            MessageChannel.WHATSAPP,
            contact.phone,
            template_id=params.template_id,
            variables=variables,
            message=params.message,
            contact_id=contact.id,
        )
        return {
            "recipient": contact.phone,
            "templateId": params.template_id,
            "messageId": sent.get("messageId"),
            "sentAt": self.clock.now().isoformat(),
        }
