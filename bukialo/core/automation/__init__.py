"""Automation module: rule engine for CRM events."""

from bukialo.core.automation.action_executor import ActionExecutor
from bukialo.core.automation.condition_evaluator import ConditionEvaluator
from bukialo.core.automation.delayed_runner import DelayedActionRunner
from bukialo.core.automation.engine import AutomationEngine
from bukialo.core.automation.handlers import ActionHandlers
from bukialo.core.automation.recorder import ExecutionRecorder
from bukialo.core.automation.scheduler import DelayScheduler
from bukialo.core.automation.service import AutomationService
from bukialo.core.automation.stats import StatsAggregator
from bukialo.core.automation.trigger_handler import TriggerHandler
from bukialo.core.automation.types import ActionLogEntry, ExecutionResult

__all__ = [
    "ActionExecutor",
    "ActionHandlers",
    "ActionLogEntry",
    "AutomationEngine",
    "AutomationService",
    "ConditionEvaluator",
    "DelayScheduler",
    "DelayedActionRunner",
    "ExecutionRecorder",
    "ExecutionResult",
    "StatsAggregator",
    "TriggerHandler",
]
