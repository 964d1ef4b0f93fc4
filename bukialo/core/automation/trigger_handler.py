"""Trigger handler: entry point for CRM event producers."""

import logging
from typing import Any, Protocol

from bukialo.core.automation.condition_evaluator import ConditionEvaluator
from bukialo.core.automation.engine import AutomationEngine
from bukialo.core.automation.types import ExecutionResult
from bukialo.models.automation import Automation, TriggerType

logger = logging.getLogger(__name__)


class ActiveAutomationSource(Protocol):
    def get_active_by_trigger(self, trigger_type: str) -> list[Automation]: ...


class TriggerHandler:
    """Fires every active automation whose conditions match an event.

    Inactive automations are filtered out here, never handed to the engine.
    """

    def __init__(
        self,
        automations: ActiveAutomationSource,
        engine: AutomationEngine,
        evaluator: ConditionEvaluator | None = None,
    ):
        """Initialize trigger handler.

        Args:
            automations: Source of active automations per trigger type
            engine: Engine that executes matching automations
            evaluator: Condition evaluator (defaults to ConditionEvaluator())
        """
        self.automations = automations
        self.engine = engine
        self.evaluator = evaluator or ConditionEvaluator()

    async def handle(
        self, trigger_type: TriggerType | str, payload: dict[str, Any]
    ) -> list[ExecutionResult]:
        """Handle one CRM event.

        Args:
            trigger_type: Trigger type of the event
            payload: Event payload

        Returns:
            One ExecutionResult per matching automation, in creation order
        """
        trigger_type = TriggerType(trigger_type)
        candidates = self.automations.get_active_by_trigger(trigger_type.value)

        matched = [
            automation
            for automation in candidates
            if automation.is_active
            and self.evaluator.matches(
                trigger_type, automation.trigger_conditions, payload
            )
        ]
        logger.info(
            f"Trigger {trigger_type.value}: {len(matched)} of {len(candidates)} "
            f"active automations matched"
        )

        results = []
        for automation in matched:
            results.append(await self.engine.execute(automation.id, payload))
        return results
