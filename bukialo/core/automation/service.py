"""Automation service for automation management."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from bukialo.core.automation.engine import AutomationEngine
from bukialo.core.automation.errors import AutomationError
from bukialo.core.automation.parameters import (
    dump_rule_content,
    parse_action_parameters,
    parse_trigger_conditions,
)
from bukialo.core.automation.stats import StatsAggregator
from bukialo.core.automation.types import ExecutionResult
from bukialo.core.clock import Clock, SystemClock
from bukialo.core.config_file import Settings, get_settings
from bukialo.models.automation import (
    ActionType,
    Automation,
    AutomationExecution,
    TriggerType,
)
from bukialo.repositories.automation_repository import AutomationRepository

logger = logging.getLogger(__name__)


class AutomationService:
    """Service for automation management."""

    def __init__(
        self,
        db: Session,
        clock: Clock | None = None,
        settings: Settings | None = None,
    ):
        """Initialize service with database session."""
        self.db = db
        self.clock = clock or SystemClock()
        self.settings = settings or get_settings()
        self.repository = AutomationRepository(db)

    def _normalize_conditions(
        self, trigger_type: str, conditions: dict[str, Any] | None
    ) -> dict[str, Any]:
        return dump_rule_content(parse_trigger_conditions(trigger_type, conditions))

    def _normalize_actions(self, actions: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Validate an action set and return rows ready for storage.

        Raises:
            ValueError: If the set is empty, too large, has duplicate orders
                or invalid parameters
        """
        if not actions:
            raise ValueError("At least one action is required")
        if len(actions) > self.settings.AUTOMATION_MAX_ACTIONS:
            raise ValueError(
                f"An automation can have at most {self.settings.AUTOMATION_MAX_ACTIONS} actions"
            )

        orders = [action["order"] for action in actions]
        if len(set(orders)) != len(orders):
            raise ValueError("Action order values must be unique")

        normalized = []
        for action in actions:
            if action["order"] < 1:
                raise ValueError("Action order must be a positive integer")
            delay = action.get("delay_minutes") or 0
            if delay < 0:
                raise ValueError("delayMinutes cannot be negative")
            try:
                params = parse_action_parameters(action["action_type"], action.get("parameters"))
            except AutomationError as e:
                raise ValueError(str(e)) from e
            normalized.append(
                {
                    "action_type": ActionType(action["action_type"]).value,
                    "parameters": dump_rule_content(params),
                    "delay_minutes": delay,
                    "order": action["order"],
                }
            )
        return sorted(normalized, key=lambda a: a["order"])

    def create_automation(
        self,
        name: str,
        trigger_type: TriggerType | str,
        actions: list[dict[str, Any]],
        created_by_id: UUID | None = None,
        description: str | None = None,
        trigger_conditions: dict[str, Any] | None = None,
        is_active: bool = True,
    ) -> Automation:
        """Create a new automation with its actions.

        Args:
            name: Automation name
            trigger_type: Trigger type
            actions: Action dicts with action_type, parameters, delay_minutes, order
            created_by_id: Creating user (optional)
            description: Automation description (optional)
            trigger_conditions: Conditions for the trigger type (optional)
            is_active: Whether the automation starts active

        Returns:
            Created automation

        Raises:
            ValueError: If the conditions or actions are invalid
        """
        trigger_type = TriggerType(trigger_type).value
        automation = self.repository.create_automation(
            {
                "name": name,
                "description": description,
                "trigger_type": trigger_type,
                "trigger_conditions": self._normalize_conditions(
                    trigger_type, trigger_conditions
                ),
                "is_active": is_active,
                "created_by_id": created_by_id,
            },
            self._normalize_actions(actions),
        )
        logger.info(f"Created automation '{name}' (ID: {automation.id})")
        return automation

    def get_automation(self, automation_id: UUID) -> Automation | None:
        """Get an automation by ID."""
        return self.repository.get_automation_by_id(automation_id)

    def get_all_automations(
        self,
        is_active: bool | None = None,
        trigger_type: str | None = None,
        created_by_id: UUID | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[Automation], int]:
        """Get automations with filters.

        Returns:
            Tuple of (page of automations, total matching count)
        """
        automations = self.repository.get_all_automations(
            is_active, trigger_type, created_by_id, skip, limit
        )
        total = self.repository.count_automations(is_active, trigger_type, created_by_id)
        return automations, total

    def update_automation(
        self,
        automation_id: UUID,
        name: str | None = None,
        description: str | None = None,
        trigger_type: TriggerType | str | None = None,
        trigger_conditions: dict[str, Any] | None = None,
        is_active: bool | None = None,
        actions: list[dict[str, Any]] | None = None,
    ) -> Automation | None:
        """Update an automation.

        A provided action list replaces the stored actions as a unit.

        Returns:
            Updated automation or None if not found

        Raises:
            ValueError: If the conditions or actions are invalid
        """
        automation = self.repository.get_automation_by_id(automation_id)
        if not automation:
            return None

        update_data: dict[str, Any] = {}
        if name is not None:
            update_data["name"] = name
        if description is not None:
            update_data["description"] = description
        if is_active is not None:
            update_data["is_active"] = is_active

        final_type = TriggerType(trigger_type).value if trigger_type else automation.trigger_type
        if trigger_type is not None or trigger_conditions is not None:
            conditions = (
                trigger_conditions
                if trigger_conditions is not None
                else automation.trigger_conditions
            )
            update_data["trigger_type"] = final_type
            update_data["trigger_conditions"] = self._normalize_conditions(
                final_type, conditions
            )

        actions_data = self._normalize_actions(actions) if actions is not None else None
        updated = self.repository.update_automation(automation, update_data, actions_data)
        logger.info(f"Updated automation {automation_id}")
        return updated

    def delete_automation(self, automation_id: UUID) -> bool:
        """Delete an automation with its actions and history.

        Returns:
            True if deleted, False if not found
        """
        automation = self.repository.get_automation_by_id(automation_id)
        if not automation:
            return False
        self.repository.delete_automation(automation)
        logger.info(f"Deleted automation {automation_id}")
        return True

    def toggle_automation(self, automation_id: UUID) -> Automation | None:
        """Flip is_active.

        Returns:
            Updated automation or None if not found
        """
        automation = self.repository.get_automation_by_id(automation_id)
        if not automation:
            return None
        updated = self.repository.update_automation(
            automation, {"is_active": not automation.is_active}
        )
        logger.info(
            f"Automation {automation_id} {'activated' if updated.is_active else 'deactivated'}"
        )
        return updated

    def get_executions(
        self, automation_id: UUID, skip: int = 0, limit: int = 100
    ) -> tuple[list[AutomationExecution], int]:
        """Get execution history for an automation, newest first."""
        return (
            self.repository.list_executions(automation_id, skip, limit),
            self.repository.count_executions(automation_id),
        )

    async def execute_automation(
        self, automation_id: UUID, payload: dict[str, Any] | None = None
    ) -> ExecutionResult:
        """Execute an automation manually, without evaluating its conditions."""
        engine = AutomationEngine.from_session(
            self.db, clock=self.clock, settings=self.settings
        )
        return await engine.execute(automation_id, payload or {})

    def get_stats(self, created_by_id: UUID | None = None) -> dict[str, Any]:
        """Get automation stats over the configured window."""
        aggregator = StatsAggregator(
            self.repository,
            self.clock,
            window_days=self.settings.AUTOMATION_STATS_WINDOW_DAYS,
            recent_limit=self.settings.AUTOMATION_RECENT_ACTIVITY_LIMIT,
        )
        return aggregator.get_stats(created_by_id)
