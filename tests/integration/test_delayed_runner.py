"""Integration tests for DelayedActionRunner."""

import pytest

from bukialo.core.automation.delayed_runner import DelayedActionRunner
from bukialo.core.automation.engine import AutomationEngine
from bukialo.core.automation.service import AutomationService
from bukialo.core.config_file import get_settings
from bukialo.models.automation import ScheduledAction, ScheduledActionStatus
from bukialo.models.contact import Contact
from tests.helpers import tag_action


@pytest.fixture
def runner(session_factory, clock):
    return DelayedActionRunner(session_factory, clock=clock, settings=get_settings())


async def _defer(db_session, clock, manager_user, contact, actions):
    service = AutomationService(db_session, clock=clock)
    automation = service.create_automation(
        name="Seguimiento",
        trigger_type="CONTACT_CREATED",
        created_by_id=manager_user.id,
        actions=actions,
    )
    engine = AutomationEngine.from_session(db_session, clock=clock)
    await engine.execute(automation.id, {"contactId": str(contact.id)})
    return automation


def _scheduled(db_session):
    db_session.expire_all()
    return db_session.query(ScheduledAction).one()


@pytest.mark.asyncio
async def test_nothing_runs_before_due_time(runner, db_session, clock, manager_user, test_contact):
    await _defer(
        db_session, clock, manager_user, test_contact,
        [tag_action(1, tags=["recordatorio"], delay_minutes=30)],
    )
    clock.advance(minutes=29)

    assert await runner.run_due() == 0
    assert _scheduled(db_session).status == ScheduledActionStatus.PENDING.value


@pytest.mark.asyncio
async def test_due_action_runs_with_stored_payload(
    runner, db_session, clock, manager_user, test_contact
):
    await _defer(
        db_session, clock, manager_user, test_contact,
        [tag_action(1, tags=["recordatorio"], delay_minutes=30)],
    )
    clock.advance(minutes=31)

    assert await runner.run_due() == 1

    scheduled = _scheduled(db_session)
    assert scheduled.status == ScheduledActionStatus.COMPLETED.value
    assert scheduled.processed_at is not None
    assert scheduled.result["added"] == ["recordatorio"]
    assert "recordatorio" in db_session.get(Contact, test_contact.id).tags

    # Already processed rows are not picked up again
    assert await runner.run_due() == 0


@pytest.mark.asyncio
async def test_deactivated_automation_cancels_pending_action(
    runner, db_session, clock, manager_user, test_contact
):
    automation = await _defer(
        db_session, clock, manager_user, test_contact,
        [tag_action(1, tags=["recordatorio"], delay_minutes=10)],
    )
    AutomationService(db_session, clock=clock).toggle_automation(automation.id)
    clock.advance(hours=1)

    assert await runner.run_due() == 1

    scheduled = _scheduled(db_session)
    assert scheduled.status == ScheduledActionStatus.CANCELLED.value
    assert scheduled.error == "Automation is not active"
    assert "recordatorio" not in db_session.get(Contact, test_contact.id).tags


@pytest.mark.asyncio
async def test_failed_handler_marks_row_failed(runner, db_session, clock, manager_user, test_contact):
    await _defer(
        db_session, clock, manager_user, test_contact,
        [
            {
                "action_type": "SEND_EMAIL",
                "parameters": {"templateId": "recordatorio"},
                "delay_minutes": 5,
                "order": 1,
            }
        ],
    )
    clock.advance(minutes=5)

    assert await runner.run_due() == 1

    scheduled = _scheduled(db_session)
    assert scheduled.status == ScheduledActionStatus.FAILED.value
    assert scheduled.error == "Message template not found: recordatorio"


@pytest.mark.asyncio
async def test_start_and_stop(runner):
    runner.poll_seconds = 3600

    await runner.start()
    assert runner._task is not None
    await runner.stop()

    assert runner._task is None
    assert runner._running is False
