"""Automation schemas for API requests and responses.

The wire format uses camelCase keys; attributes stay snake_case.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from bukialo.core.automation.errors import AutomationError
from bukialo.core.automation.parameters import (
    parse_action_parameters,
    parse_trigger_conditions,
)
from bukialo.core.automation.types import ExecutionResult
from bukialo.core.config_file import get_settings
from bukialo.models.automation import ActionType, TriggerType


class CamelSchema(BaseModel):
    """Base schema with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


def _check_action_set(actions: list["AutomationActionCreate"]) -> list["AutomationActionCreate"]:
    max_actions = get_settings().AUTOMATION_MAX_ACTIONS
    if len(actions) > max_actions:
        raise ValueError(f"An automation can have at most {max_actions} actions")
    orders = [action.order for action in actions]
    if len(set(orders)) != len(orders):
        raise ValueError("Action order values must be unique")
    return actions


class AutomationActionCreate(CamelSchema):
    """Action schema for automation authoring."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "actionType": "ADD_TAG",
                "parameters": {"tags": ["nuevo"]},
                "delayMinutes": 0,
                "order": 1,
            }
        }
    )

    action_type: ActionType = Field(..., description="Action type")
    parameters: dict[str, Any] = Field(default_factory=dict, description="Action parameters")
    delay_minutes: int = Field(default=0, ge=0, description="Delay before the action runs")
    order: int = Field(..., ge=1, description="Execution position, unique per automation")

    @model_validator(mode="after")
    def validate_parameters(self) -> "AutomationActionCreate":
        """Validate parameters against the action type."""
        try:
            parse_action_parameters(self.action_type, self.parameters)
        except AutomationError as e:
            raise ValueError(str(e)) from None
        return self

    def to_storage(self) -> dict[str, Any]:
        return {
            "action_type": self.action_type.value,
            "parameters": self.parameters,
            "delay_minutes": self.delay_minutes,
            "order": self.order,
        }


class AutomationCreate(CamelSchema):
    """Schema for creating an automation."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Bienvenida",
                "triggerType": "CONTACT_CREATED",
                "triggerConditions": {"status": "INTERESADO"},
                "actions": [
                    {"actionType": "ADD_TAG", "parameters": {"tags": ["nuevo"]}, "order": 1},
                    {
                        "actionType": "SEND_EMAIL",
                        "parameters": {"templateId": "welcome"},
                        "order": 2,
                    },
                ],
            }
        }
    )

    name: str = Field(..., description="Automation name", min_length=1, max_length=255)
    description: str | None = Field(None, description="Automation description", max_length=1000)
    trigger_type: TriggerType = Field(..., description="Trigger type")
    trigger_conditions: dict[str, Any] = Field(
        default_factory=dict, description="Conditions interpreted per trigger type"
    )
    is_active: bool = Field(default=True, description="Whether the automation is active")
    actions: list[AutomationActionCreate] = Field(
        ..., description="Actions to execute", min_length=1
    )

    @field_validator("actions")
    @classmethod
    def validate_actions(cls, v: list[AutomationActionCreate]) -> list[AutomationActionCreate]:
        return _check_action_set(v)

    @model_validator(mode="after")
    def validate_conditions(self) -> "AutomationCreate":
        parse_trigger_conditions(self.trigger_type, self.trigger_conditions)
        return self


class AutomationUpdate(CamelSchema):
    """Schema for updating an automation. A given action list replaces the stored one."""

    name: str | None = Field(None, description="Automation name", min_length=1, max_length=255)
    description: str | None = Field(None, description="Automation description", max_length=1000)
    trigger_type: TriggerType | None = Field(None, description="Trigger type")
    trigger_conditions: dict[str, Any] | None = Field(None, description="Trigger conditions")
    is_active: bool | None = Field(None, description="Whether the automation is active")
    actions: list[AutomationActionCreate] | None = Field(
        None, description="Replacement action set", min_length=1
    )

    @field_validator("actions")
    @classmethod
    def validate_actions(
        cls, v: list[AutomationActionCreate] | None
    ) -> list[AutomationActionCreate] | None:
        if v is None:
            return None
        return _check_action_set(v)

    @model_validator(mode="after")
    def validate_conditions(self) -> "AutomationUpdate":
        # Without a trigger type the service checks against the stored one
        if self.trigger_type is not None and self.trigger_conditions is not None:
            parse_trigger_conditions(self.trigger_type, self.trigger_conditions)
        return self


class ExecuteAutomationRequest(CamelSchema):
    """Schema for a manual execution."""

    trigger_data: dict[str, Any] = Field(
        default_factory=dict, description="Trigger payload, e.g. {'contactId': '...'}"
    )


class AutomationActionResponse(CamelSchema):
    """Schema for action response."""

    id: UUID
    action_type: str
    parameters: dict[str, Any]
    delay_minutes: int
    order: int


class ExecutionSummary(CamelSchema):
    """Execution as embedded in automation responses."""

    id: UUID
    status: str
    started_at: datetime
    completed_at: datetime | None
    error: str | None


class AutomationExecutionResponse(ExecutionSummary):
    """Schema for execution history entries."""

    automation_id: UUID
    triggered_by: dict[str, Any] | None
    actions_executed: list[dict[str, Any]]


class AutomationResponse(CamelSchema):
    """Schema for automation response."""

    id: UUID
    name: str
    description: str | None
    trigger_type: str
    trigger_conditions: dict[str, Any]
    is_active: bool
    created_by_id: UUID | None
    created_at: datetime
    updated_at: datetime
    actions: list[AutomationActionResponse]
    recent_executions: list[ExecutionSummary] = Field(
        default_factory=list, description="Most recent executions, newest first"
    )


class ExecutionResultResponse(CamelSchema):
    """Schema for the outcome of a manual execution."""

    automation_id: UUID
    execution_id: UUID | None
    success: bool
    actions_executed: list[dict[str, Any]]
    executed_count: int
    error: str | None
    duration: int = Field(..., description="Duration in milliseconds")

    @classmethod
    def from_result(cls, result: ExecutionResult) -> "ExecutionResultResponse":
        return cls(
            automation_id=result.automation_id,
            execution_id=result.execution_id,
            success=result.success,
            actions_executed=[entry.to_dict() for entry in result.actions_executed],
            executed_count=result.executed_count,
            error=result.error,
            duration=result.duration_ms,
        )


class AutomationStatsResponse(CamelSchema):
    """Schema for automation stats."""

    total_automations: int
    active_automations: int
    total_executions: int
    recent_executions: int
    success_rate: float
    recent_activity: list[dict[str, Any]]
