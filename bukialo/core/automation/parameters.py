"""Typed action parameters and trigger conditions, keyed by type."""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from bukialo.core.automation.errors import (
    InvalidActionParametersError,
    UnknownActionTypeError,
)
from bukialo.models.automation import ActionType, TriggerType
from bukialo.models.contact import BudgetRange, ContactStatus
from bukialo.models.task import TaskPriority


class CamelModel(BaseModel):
    """Stored rule content uses camelCase keys; Python code uses snake_case."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


# Action parameters


class SendEmailParameters(CamelModel):
    template_id: str = Field(..., min_length=1)
    variables: dict[str, Any] = Field(default_factory=dict)


class CreateTaskParameters(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    priority: TaskPriority | None = None  # Falls back to AUTOMATION_DEFAULT_TASK_PRIORITY
    assigned_to_id: UUID | None = None
    due_date: datetime | None = None


class ScheduleCallParameters(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    scheduled_date: datetime
    duration: int = Field(30, ge=5, le=480, description="Call length in minutes")
    description: str | None = None
    assigned_to_id: UUID | None = None


class AddTagParameters(CamelModel):
    tags: list[str] = Field(..., min_length=1)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        """Strip tags and reject empty ones."""
        cleaned = [tag.strip() for tag in v]
        if any(not tag for tag in cleaned):
            raise ValueError("Tags cannot be empty")
        return cleaned


class UpdateStatusParameters(CamelModel):
    status: ContactStatus
    reason: str | None = None


class GenerateQuoteParameters(CamelModel):
    destination: str | None = None  # Falls back to the payload destination
    travelers: int = Field(1, ge=1)
    estimated_budget: Decimal | None = Field(None, ge=0)
    departure_date: datetime | None = None
    return_date: datetime | None = None
    notes: str | None = None


class AssignAgentParameters(CamelModel):
    agent_id: UUID


class SendWhatsappParameters(CamelModel):
    template_id: str | None = None
    message: str | None = None
    variables: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def require_template_or_message(self) -> "SendWhatsappParameters":
        if not self.template_id and not self.message:
            raise ValueError("Either templateId or message is required")
        return self


ACTION_PARAMETER_MODELS: dict[ActionType, type[CamelModel]] = {
    ActionType.SEND_EMAIL: SendEmailParameters,
    ActionType.CREATE_TASK: CreateTaskParameters,
    ActionType.SCHEDULE_CALL: ScheduleCallParameters,
    ActionType.ADD_TAG: AddTagParameters,
    ActionType.UPDATE_STATUS: UpdateStatusParameters,
    ActionType.GENERATE_QUOTE: GenerateQuoteParameters,
    ActionType.ASSIGN_AGENT: AssignAgentParameters,
    ActionType.SEND_WHATSAPP: SendWhatsappParameters,
}


# Trigger conditions


class ContactCreatedConditions(CamelModel):
    status: ContactStatus | None = None
    source: str | None = None
    budget_range: BudgetRange | None = None
    tags: list[str] | None = None


class TripQuoteRequestedConditions(CamelModel):
    destination: str | None = None
    budget_min: float | None = Field(None, ge=0)
    budget_max: float | None = Field(None, ge=0)


class PaymentOverdueConditions(CamelModel):
    days_overdue: int | None = Field(None, ge=0)
    amount: float | None = Field(None, ge=0)
    min_amount: float | None = Field(None, ge=0)
    max_amount: float | None = Field(None, ge=0)


class TripCompletedConditions(CamelModel):
    destination: str | None = None
    min_rating: float | None = Field(None, ge=0)
    rating: float | None = Field(None, ge=0)


class NoActivityConditions(CamelModel):
    days: int | None = Field(None, ge=1)
    status: ContactStatus | None = None
    exclude_tags: list[str] | None = None


class SeasonalOpportunityConditions(CamelModel):
    season: str | None = None
    destination: str | None = None


class BirthdayConditions(CamelModel):
    days_before: int | None = Field(None, ge=0)
    status: ContactStatus | None = None
    include_inactive: bool | None = None


class CustomConditions(BaseModel):
    """Free-form conditions: every key must equal the payload value."""

    model_config = ConfigDict(extra="allow")


TRIGGER_CONDITION_MODELS: dict[TriggerType, type[BaseModel]] = {
    TriggerType.CONTACT_CREATED: ContactCreatedConditions,
    TriggerType.TRIP_QUOTE_REQUESTED: TripQuoteRequestedConditions,
    TriggerType.PAYMENT_OVERDUE: PaymentOverdueConditions,
    TriggerType.TRIP_COMPLETED: TripCompletedConditions,
    TriggerType.NO_ACTIVITY_30_DAYS: NoActivityConditions,
    TriggerType.SEASONAL_OPPORTUNITY: SeasonalOpportunityConditions,
    TriggerType.BIRTHDAY: BirthdayConditions,
    TriggerType.CUSTOM: CustomConditions,
}


def _describe(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'parameters'}: {error['msg']}"
        for error in exc.errors()
    )


def parse_action_parameters(
    action_type: ActionType | str, raw: dict[str, Any] | None
) -> CamelModel:
    """Validate stored parameters against the model of their action type.

    Args:
        action_type: Action type (enum or wire value)
        raw: Parameters as stored or as received from the API

    Returns:
        Typed parameters model

    Raises:
        UnknownActionTypeError: If no model exists for the action type
        InvalidActionParametersError: If the parameters do not fit the model
    """
    try:
        model = ACTION_PARAMETER_MODELS[ActionType(action_type)]
    except (ValueError, KeyError):
        raise UnknownActionTypeError(action_type) from None

    try:
        return model.model_validate(raw or {})
    except ValidationError as e:
        raise InvalidActionParametersError(
            f"Invalid parameters for {model.__name__}: {_describe(e)}"
        ) from e


def parse_trigger_conditions(
    trigger_type: TriggerType | str, raw: dict[str, Any] | None
) -> BaseModel:
    """Validate stored conditions against the model of their trigger type.

    Raises:
        ValueError: If the trigger type is unknown or the conditions are invalid
    """
    try:
        model = TRIGGER_CONDITION_MODELS[TriggerType(trigger_type)]
    except (ValueError, KeyError):
        raise ValueError(f"Unknown trigger type: {trigger_type}") from None

    try:
        return model.model_validate(raw or {})
    except ValidationError as e:
        raise ValueError(f"Invalid trigger conditions: {_describe(e)}") from None


def dump_rule_content(model: BaseModel) -> dict[str, Any]:
    """Normalized, JSON-safe form of typed parameters or conditions for storage.

    Custom conditions keep explicit nulls, every stored key takes part in matching.
    """
    if isinstance(model, CustomConditions):
        return model.model_dump(mode="json")
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)
