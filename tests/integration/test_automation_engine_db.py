"""Integration tests for AutomationEngine and TriggerHandler against the database."""

from datetime import timedelta

import pytest

from bukialo.core.automation.engine import AutomationEngine
from bukialo.core.automation.service import AutomationService
from bukialo.core.automation.trigger_handler import TriggerHandler
from bukialo.models.automation import (
    AutomationExecution,
    ScheduledAction,
    ScheduledActionStatus,
)
from bukialo.models.contact import Contact
from bukialo.models.message import OutboundMessage
from bukialo.models.task import Task
from bukialo.models.trip import Trip
from bukialo.repositories.automation_repository import AutomationRepository
from bukialo.repositories.message_repository import MessageRepository
from tests.helpers import FIXED_NOW, tag_action


@pytest.fixture
def service(db_session, clock):
    return AutomationService(db_session, clock=clock)


@pytest.fixture
def engine(db_session, clock):
    return AutomationEngine.from_session(db_session, clock=clock)


def _payload(contact):
    return {"contactId": str(contact.id)}


def _executions(db_session, automation_id):
    db_session.expire_all()
    return (
        db_session.query(AutomationExecution)
        .filter(AutomationExecution.automation_id == automation_id)
        .all()
    )


@pytest.mark.asyncio
async def test_execute_applies_every_action(service, engine, db_session, test_contact, manager_user):
    automation = service.create_automation(
        name="Nuevo interesado",
        trigger_type="CONTACT_CREATED",
        created_by_id=manager_user.id,
        actions=[
            tag_action(1, tags=["nuevo"]),
            {"action_type": "UPDATE_STATUS", "parameters": {"status": "PASAJERO"}, "order": 2},
            {"action_type": "CREATE_TASK", "parameters": {"title": "Llamar al contacto"}, "order": 3},
            {
                "action_type": "GENERATE_QUOTE",
                "parameters": {"destination": "Madrid", "travelers": 2},
                "order": 4,
            },
        ],
    )

    result = await engine.execute(automation.id, _payload(test_contact))

    assert result.success is True
    assert result.executed_count == 4

    db_session.expire_all()
    contact = db_session.get(Contact, test_contact.id)
    assert contact.tags == ["web", "nuevo"]
    assert contact.status == "PASAJERO"

    task = db_session.query(Task).filter(Task.contact_id == contact.id).one()
    assert task.title == "Llamar al contacto"
    assert task.assigned_to_id == contact.assigned_agent_id
    trip = db_session.query(Trip).filter(Trip.contact_id == contact.id).one()
    assert trip.destination == "Madrid"
    assert trip.status == "QUOTE"

    [execution] = _executions(db_session, automation.id)
    assert execution.status == "completed"
    assert execution.completed_at is not None
    assert execution.triggered_by == _payload(test_contact)
    assert [entry["order"] for entry in execution.actions_executed] == [1, 2, 3, 4]


@pytest.mark.asyncio
async def test_missing_template_fails_only_that_action(
    service, engine, db_session, test_contact, manager_user
):
    automation = service.create_automation(
        name="Bienvenida",
        trigger_type="CONTACT_CREATED",
        created_by_id=manager_user.id,
        actions=[
            tag_action(1, tags=["bienvenida"]),
            {"action_type": "SEND_EMAIL", "parameters": {"templateId": "no-existe"}, "order": 2},
        ],
    )

    result = await engine.execute(automation.id, _payload(test_contact))

    assert result.success is True
    assert [entry.status.value for entry in result.actions_executed] == ["completed", "failed"]
    assert result.actions_executed[1].error == "Message template not found: no-existe"

    [execution] = _executions(db_session, automation.id)
    assert execution.status == "completed"
    assert execution.actions_executed[1]["status"] == "failed"
    assert "bienvenida" in db_session.get(Contact, test_contact.id).tags


@pytest.mark.asyncio
async def test_send_email_queues_rendered_message(
    service, engine, db_session, test_contact, manager_user
):
    MessageRepository(db_session).create_template(
        {"name": "welcome", "subject": "Hola {{ firstName }}", "body": "Bienvenida {{ contact.fullName }}"}
    )
    automation = service.create_automation(
        name="Bienvenida",
        trigger_type="CONTACT_CREATED",
        created_by_id=manager_user.id,
        actions=[{"action_type": "SEND_EMAIL", "parameters": {"templateId": "welcome"}, "order": 1}],
    )

    result = await engine.execute(automation.id, _payload(test_contact))

    assert result.executed_count == 1
    message = db_session.query(OutboundMessage).one()
    assert message.recipient == "lucia@example.com"
    assert message.subject == "Hola Lucía"
    assert message.status == "queued"


@pytest.mark.asyncio
async def test_missing_contact_reference_is_logged(service, engine, manager_user):
    automation = service.create_automation(
        name="Sin contacto",
        trigger_type="CUSTOM",
        created_by_id=manager_user.id,
        actions=[tag_action(1)],
    )

    result = await engine.execute(automation.id, {})

    assert result.success is True
    assert result.actions_executed[0].error == "contactId is required for ADD_TAG action"


@pytest.mark.asyncio
async def test_inactive_automation_creates_no_execution(
    service, engine, db_session, test_contact, manager_user
):
    automation = service.create_automation(
        name="Apagada",
        trigger_type="CONTACT_CREATED",
        created_by_id=manager_user.id,
        is_active=False,
        actions=[tag_action(1)],
    )

    result = await engine.execute(automation.id, _payload(test_contact))

    assert result.success is False
    assert result.error == "Automation is not active"
    assert _executions(db_session, automation.id) == []


@pytest.mark.asyncio
async def test_delayed_action_is_persisted(service, engine, db_session, test_contact, manager_user):
    automation = service.create_automation(
        name="Seguimiento",
        trigger_type="CONTACT_CREATED",
        created_by_id=manager_user.id,
        actions=[tag_action(1, tags=["seguimiento"], delay_minutes=120)],
    )

    result = await engine.execute(automation.id, _payload(test_contact))

    expected_at = FIXED_NOW + timedelta(minutes=120)
    assert result.actions_executed[0].result == {
        "scheduled": True,
        "executeAt": expected_at.isoformat(),
    }
    scheduled = AutomationRepository(db_session).list_scheduled_actions(automation.id)
    assert len(scheduled) == 1
    assert scheduled[0].status == ScheduledActionStatus.PENDING.value
    assert scheduled[0].execution_id == result.execution_id
    assert scheduled[0].trigger_payload == _payload(test_contact)
    # Not applied yet
    db_session.expire_all()
    assert "seguimiento" not in db_session.get(Contact, test_contact.id).tags
    assert db_session.query(ScheduledAction).count() == 1


@pytest.mark.asyncio
async def test_trigger_handler_fires_matching_automations(
    service, engine, db_session, test_contact, manager_user
):
    matching = service.create_automation(
        name="Interesados web",
        trigger_type="CONTACT_CREATED",
        trigger_conditions={"status": "INTERESADO", "source": "WEBSITE"},
        created_by_id=manager_user.id,
        actions=[tag_action(1, tags=["web-lead"])],
    )
    other = service.create_automation(
        name="Referidos",
        trigger_type="CONTACT_CREATED",
        trigger_conditions={"source": "REFERRAL"},
        created_by_id=manager_user.id,
        actions=[tag_action(1, tags=["referido"])],
    )
    inactive = service.create_automation(
        name="Apagada",
        trigger_type="CONTACT_CREATED",
        is_active=False,
        created_by_id=manager_user.id,
        actions=[tag_action(1, tags=["apagada"])],
    )
    handler = TriggerHandler(AutomationRepository(db_session), engine)

    results = await handler.handle(
        "CONTACT_CREATED",
        {**_payload(test_contact), "status": "INTERESADO", "source": "WEBSITE"},
    )

    assert [r.automation_id for r in results] == [matching.id]
    assert _executions(db_session, other.id) == []
    assert _executions(db_session, inactive.id) == []
    assert db_session.get(Contact, test_contact.id).tags == ["web", "web-lead"]
