"""Helper objects for tests."""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Any
from uuid import UUID, uuid4

FIXED_NOW = datetime(2026, 1, 15, 10, 0, 0, tzinfo=UTC)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


def make_action(
    action_type: str,
    parameters: dict[str, Any] | None = None,
    order: int = 1,
    delay_minutes: int = 0,
    automation_id: UUID | None = None,
) -> SimpleNamespace:
    """Stand-in for an AutomationAction row."""
    return SimpleNamespace(
        id=uuid4(),
        automation_id=automation_id or uuid4(),
        action_type=action_type,
        parameters=parameters or {},
        delay_minutes=delay_minutes,
        order=order,
    )


def make_automation(actions: list[SimpleNamespace], is_active: bool = True, **kwargs):
    """Stand-in for an Automation row."""
    automation_id = kwargs.pop("id", None) or uuid4()
    for action in actions:
        action.automation_id = automation_id
    return SimpleNamespace(
        id=automation_id,
        is_active=is_active,
        actions=actions,
        trigger_conditions=kwargs.pop("trigger_conditions", {}),
        **kwargs,
    )


def tag_action(order: int = 1, tags: list[str] | None = None, delay_minutes: int = 0) -> dict:
    """ADD_TAG action as accepted by AutomationService."""
    return {
        "action_type": "ADD_TAG",
        "parameters": {"tags": tags or ["seguimiento"]},
        "delay_minutes": delay_minutes,
        "order": order,
    }


class TickingClock(FixedClock):
    """Clock that moves forward by `step` on every read."""

    def __init__(self, now: datetime = FIXED_NOW, step: timedelta = timedelta(seconds=1)):
        super().__init__(now)
        self.step = step

    def now(self) -> datetime:
        current = self.current
        self.current += self.step
        return current
