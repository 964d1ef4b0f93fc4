"""Unit tests for TemplateMessageGateway."""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from bukialo.core.automation.errors import CollaboratorError, RelatedEntityNotFoundError
from bukialo.core.messaging.gateway import TemplateMessageGateway
from bukialo.models.message import MessageChannel, MessageTemplate, OutboundMessage


@pytest.fixture
def template():
    return MessageTemplate(
        id=uuid4(),
        name="welcome",
        channel="email",
        subject="Hola {{ firstName }}",
        body="<p>Bienvenida {{ firstName }} a {{ destination }}</p>",
    )


@pytest.fixture
def repository(template):
    repo = MagicMock()
    repo.get_template_by_id.side_effect = lambda template_id: (
        template if template_id == template.id else None
    )
    repo.get_template_by_name.side_effect = lambda name: template if name == template.name else None
    repo.create_outbound.side_effect = lambda data: OutboundMessage(id=uuid4(), **data)
    return repo


@pytest.fixture
def gateway(repository):
    return TemplateMessageGateway(repository)


def test_send_renders_template_by_name(gateway, repository, template):
    contact_id = uuid4()

    result = gateway.send(
        MessageChannel.EMAIL,
        "ana@example.com",
        template_id="welcome",
        variables={"firstName": "Ana", "destination": "Cusco"},
        contact_id=contact_id,
    )

    repository.get_template_by_id.assert_not_called()
    data = repository.create_outbound.call_args.args[0]
    assert data["body"] == "<p>Bienvenida Ana a Cusco</p>"
    assert data["subject"] == "Hola Ana"
    assert data["template_id"] == template.id
    assert data["contact_id"] == contact_id
    assert data["status"] == "queued"
    assert result["channel"] == "email"
    assert result["recipient"] == "ana@example.com"
    assert result["status"] == "queued"
    assert result["messageId"]


def test_send_resolves_template_by_id(gateway, repository, template):
    gateway.send(MessageChannel.EMAIL, "ana@example.com", template_id=str(template.id))

    repository.get_template_by_name.assert_not_called()


def test_email_variables_are_escaped(gateway, repository):
    gateway.send(
        MessageChannel.EMAIL,
        "ana@example.com",
        template_id="welcome",
        variables={"firstName": "<b>Ana</b>", "destination": "Cusco"},
    )

    body = repository.create_outbound.call_args.args[0]["body"]
    assert "&lt;b&gt;Ana&lt;/b&gt;" in body


def test_whatsapp_literal_message(gateway, repository):
    gateway.send(
        MessageChannel.WHATSAPP,
        "+5491100000000",
        message="Hola {{ firstName }} & familia",
        variables={"firstName": "Ana"},
    )

    data = repository.create_outbound.call_args.args[0]
    assert data["body"] == "Hola Ana & familia"
    assert data["template_id"] is None
    assert data["channel"] == "whatsapp"


def test_missing_template(gateway):
    with pytest.raises(RelatedEntityNotFoundError, match="Message template not found: promo"):
        gateway.send(MessageChannel.EMAIL, "ana@example.com", template_id="promo")


def test_broken_template_raises_collaborator_error(gateway):
    with pytest.raises(CollaboratorError, match="render"):
        gateway.send(MessageChannel.WHATSAPP, "+54911", message="Hola {{ firstName ")


def test_queue_failure_raises_collaborator_error(gateway, repository):
    repository.create_outbound.side_effect = RuntimeError("insert failed")

    with pytest.raises(CollaboratorError, match="queue"):
        gateway.send(MessageChannel.WHATSAPP, "+54911", message="Hola")


def test_template_or_message_required(gateway):
    with pytest.raises(CollaboratorError):
        gateway.send(MessageChannel.EMAIL, "ana@example.com")
