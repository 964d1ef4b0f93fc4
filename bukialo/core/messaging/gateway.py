"""Message gateway: template resolution, rendering and queueing."""

import logging
from typing import Any, Protocol
from uuid import UUID

from jinja2 import TemplateError
from jinja2.sandbox import SandboxedEnvironment

from bukialo.core.automation.errors import CollaboratorError, RelatedEntityNotFoundError
from bukialo.models.message import MessageChannel, MessageTemplate, OutboundMessageStatus
from bukialo.repositories.message_repository import MessageRepository

logger = logging.getLogger(__name__)


class MessageGateway(Protocol):
    """Anything that can send a message to a contact."""

    def send(
        self,
        channel: MessageChannel,
        recipient: str,
        template_id: str | None = None,
        variables: dict[str, Any] | None = None,
        message: str | None = None,
        contact_id: UUID | None = None,
    ) -> dict[str, Any]: ...


class TemplateMessageGateway:
    """Renders stored Jinja2 templates and queues the result in outbound_messages.

    Delivery is left to whatever process drains the queue.
    """

    def __init__(self, repository: MessageRepository):
        """Initialize gateway.

        Args:
            repository: Message repository for templates and the outbound queue
        """
        self.repository = repository
        self.html_env = SandboxedEnvironment(autoescape=True)
        self.text_env = SandboxedEnvironment(autoescape=False)

    def _resolve_template(self, template_id: str) -> MessageTemplate:
        try:
            template = self.repository.get_template_by_id(UUID(str(template_id)))
        except ValueError:
            # Not a UUID, templates can also be referenced by name
            template = self.repository.get_template_by_name(template_id)
        if template is None:
            raise RelatedEntityNotFoundError("Message template", template_id)
        return template

    def _render(self, content: str, variables: dict[str, Any], channel: MessageChannel) -> str:
        env = self.html_env if channel == MessageChannel.EMAIL else self.text_env
        try:
            return env.from_string(content).render(**variables)
        except TemplateError as e:
            logger.error(f"Template rendering error: {e}")
            raise CollaboratorError(f"Failed to render template: {e}") from e

    def send(
        self,
        channel: MessageChannel,
        recipient: str,
        template_id: str | None = None,
        variables: dict[str, Any] | None = None,
        message: str | None = None,
        contact_id: UUID | None = None,
    ) -> dict[str, Any]:
        """Render and queue a message.

        Args:
            channel: Delivery channel
            recipient: Email address or phone number
            template_id: Template ID or name (takes precedence over message)
            variables: Template variables
            message: Literal message body, rendered with the same variables
            contact_id: Contact the message is addressed to

        Returns:
            Dictionary with messageId, channel, recipient and status

        Raises:
            RelatedEntityNotFoundError: If the template does not exist
            CollaboratorError: If rendering or queueing fails
        """
        variables = variables or {}
        subject = None
        template = None
        if template_id:
            template = self._resolve_template(template_id)
            body = self._render(template.body, variables, channel)
            if template.subject:
                subject = self._render(template.subject, variables, channel)
        elif message:
            body = self._render(message, variables, channel)
        else:
            raise CollaboratorError("Either a template or a message is required")

        try:
            outbound = self.repository.create_outbound(
                {
                    "template_id": template.id if template else None,
                    "contact_id": contact_id,
                    "channel": channel.value,
                    "recipient": recipient,
                    "subject": subject,
                    "body": body,
                    "status": OutboundMessageStatus.QUEUED.value,
                }
            )
        except Exception as e:
            logger.error(f"Failed to queue {channel.value} message to {recipient}: {e}", exc_info=True)
            raise CollaboratorError(f"Failed to queue message: {e}") from e

        logger.info(f"Queued {channel.value} message {outbound.id} to {recipient}")
        return {
            "messageId": str(outbound.id),
            "channel": channel.value,
            "recipient": recipient,
            "status": outbound.status,
        }
