"""Automation router for automation management."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from bukialo.core.auth.dependencies import get_current_user, is_admin, require_roles
from bukialo.core.automation.service import AutomationService
from bukialo.core.automation.templates import get_action_templates, get_trigger_templates
from bukialo.core.db.deps import get_db
from bukialo.core.exceptions import raise_bad_request, raise_not_found
from bukialo.core.logging import log_automation_change
from bukialo.models.automation import Automation, TriggerType
from bukialo.models.user import User, UserRole
from bukialo.schemas.automation import (
    AutomationCreate,
    AutomationExecutionResponse,
    AutomationResponse,
    AutomationStatsResponse,
    AutomationUpdate,
    ExecuteAutomationRequest,
    ExecutionResultResponse,
    ExecutionSummary,
)
from bukialo.schemas.common import PaginationMeta, StandardListResponse, StandardResponse

router = APIRouter()

DETAIL_EXECUTIONS = 10
LIST_EXECUTIONS = 5

require_editor = require_roles(UserRole.ADMIN, UserRole.MANAGER)


def get_automation_service(db: Annotated[Session, Depends(get_db)]) -> AutomationService:
    """Dependency to get AutomationService."""
    return AutomationService(db)


def _owner_filter(user: User) -> UUID | None:
    """Admins see every automation, everyone else only their own."""
    return None if is_admin(user) else user.id


def _get_visible_automation(
    service: AutomationService, automation_id: UUID, user: User
) -> Automation:
    automation = service.get_automation(automation_id)
    owner = _owner_filter(user)
    if not automation or (owner and automation.created_by_id != owner):
        raise_not_found("Automation", str(automation_id))
    return automation


def _to_response(
    service: AutomationService, automation: Automation, executions: int
) -> AutomationResponse:
    response = AutomationResponse.model_validate(automation)
    response.recent_executions = [
        ExecutionSummary.model_validate(execution)
        for execution in service.repository.list_executions(automation.id, limit=executions)
    ]
    return response


@router.get(
    "/trigger-templates",
    response_model=StandardResponse[list[dict[str, Any]]],
    summary="List trigger templates",
    description="Trigger types with the condition fields each one understands.",
)
async def list_trigger_templates(
    current_user: Annotated[User, Depends(get_current_user)],
) -> StandardResponse[list[dict[str, Any]]]:
    return StandardResponse(data=get_trigger_templates())


@router.get(
    "/action-templates",
    response_model=StandardResponse[list[dict[str, Any]]],
    summary="List action templates",
    description="Action types with the parameters each one takes.",
)
async def list_action_templates(
    current_user: Annotated[User, Depends(get_current_user)],
) -> StandardResponse[list[dict[str, Any]]]:
    return StandardResponse(data=get_action_templates())


@router.get(
    "/stats",
    response_model=StandardResponse[AutomationStatsResponse],
    summary="Get automation stats",
    description="Totals plus success rate and activity over the recent window.",
)
async def get_stats(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AutomationService, Depends(get_automation_service)],
) -> StandardResponse[AutomationStatsResponse]:
    stats = service.get_stats(created_by_id=_owner_filter(current_user))
    return StandardResponse(data=AutomationStatsResponse.model_validate(stats))


@router.get(
    "",
    response_model=StandardListResponse[AutomationResponse],
    status_code=status.HTTP_200_OK,
    summary="List automations",
)
async def list_automations(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AutomationService, Depends(get_automation_service)],
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=20, ge=1, le=100, description="Page size"),
    is_active: bool | None = Query(default=None, description="Filter by active flag"),
    trigger_type: TriggerType | None = Query(default=None, description="Filter by trigger type"),
) -> StandardListResponse[AutomationResponse]:
    """List automations visible to the current user."""
    skip = (page - 1) * page_size
    automations, total = service.get_all_automations(
        is_active=is_active,
        trigger_type=trigger_type.value if trigger_type else None,
        created_by_id=_owner_filter(current_user),
        skip=skip,
        limit=page_size,
    )
    return StandardListResponse(
        data=[_to_response(service, automation, LIST_EXECUTIONS) for automation in automations],
        meta=PaginationMeta.build(total, page, page_size),
    )


@router.post(
    "",
    response_model=StandardResponse[AutomationResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create automation",
    description="Create an automation with its actions. Requires ADMIN or MANAGER role.",
)
async def create_automation(
    automation_data: AutomationCreate,
    current_user: Annotated[User, Depends(require_editor)],
    service: Annotated[AutomationService, Depends(get_automation_service)],
) -> StandardResponse[AutomationResponse]:
    try:
        automation = service.create_automation(
            name=automation_data.name,
            description=automation_data.description,
            trigger_type=automation_data.trigger_type,
            trigger_conditions=automation_data.trigger_conditions,
            is_active=automation_data.is_active,
            actions=[action.to_storage() for action in automation_data.actions],
            created_by_id=current_user.id,
        )
    except ValueError as e:
        raise_bad_request("AUTOMATION_INVALID", str(e))

    log_automation_change(
        current_user.id, "create", automation.id, {"name": automation.name}
    )
    return StandardResponse(data=_to_response(service, automation, DETAIL_EXECUTIONS))


@router.get(
    "/{automation_id}",
    response_model=StandardResponse[AutomationResponse],
    summary="Get automation",
    description="Automation with its actions and its most recent executions.",
)
async def get_automation(
    automation_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AutomationService, Depends(get_automation_service)],
) -> StandardResponse[AutomationResponse]:
    automation = _get_visible_automation(service, automation_id, current_user)
    return StandardResponse(data=_to_response(service, automation, DETAIL_EXECUTIONS))


@router.put(
    "/{automation_id}",
    response_model=StandardResponse[AutomationResponse],
    summary="Update automation",
    description="Update an automation. A provided action list replaces the stored one.",
)
async def update_automation(
    automation_id: UUID,
    automation_data: AutomationUpdate,
    current_user: Annotated[User, Depends(require_editor)],
    service: Annotated[AutomationService, Depends(get_automation_service)],
) -> StandardResponse[AutomationResponse]:
    _get_visible_automation(service, automation_id, current_user)
    try:
        automation = service.update_automation(
            automation_id,
            name=automation_data.name,
            description=automation_data.description,
            trigger_type=automation_data.trigger_type,
            trigger_conditions=automation_data.trigger_conditions,
            is_active=automation_data.is_active,
            actions=(
                [action.to_storage() for action in automation_data.actions]
                if automation_data.actions is not None
                else None
            ),
        )
    except ValueError as e:
        raise_bad_request("AUTOMATION_INVALID", str(e))

    log_automation_change(
        current_user.id,
        "update",
        automation_id,
        {"fields": sorted(automation_data.model_dump(exclude_unset=True))},
    )
    return StandardResponse(data=_to_response(service, automation, DETAIL_EXECUTIONS))


@router.delete(
    "/{automation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete automation",
    description="Delete an automation with its actions and execution history.",
)
async def delete_automation(
    automation_id: UUID,
    current_user: Annotated[User, Depends(require_editor)],
    service: Annotated[AutomationService, Depends(get_automation_service)],
) -> None:
    _get_visible_automation(service, automation_id, current_user)
    service.delete_automation(automation_id)
    log_automation_change(current_user.id, "delete", automation_id)


@router.patch(
    "/{automation_id}/toggle",
    response_model=StandardResponse[AutomationResponse],
    summary="Toggle automation",
    description="Activate an inactive automation or deactivate an active one.",
)
async def toggle_automation(
    automation_id: UUID,
    current_user: Annotated[User, Depends(require_editor)],
    service: Annotated[AutomationService, Depends(get_automation_service)],
) -> StandardResponse[AutomationResponse]:
    _get_visible_automation(service, automation_id, current_user)
    automation = service.toggle_automation(automation_id)
    log_automation_change(
        current_user.id, "toggle", automation_id, {"is_active": automation.is_active}
    )
    return StandardResponse(data=_to_response(service, automation, DETAIL_EXECUTIONS))


@router.post(
    "/{automation_id}/execute",
    response_model=StandardResponse[ExecutionResultResponse],
    summary="Execute automation",
    description=(
        "Run an automation now with the given trigger data, without evaluating "
        "its conditions. Inactive automations are refused."
    ),
)
async def execute_automation(
    automation_id: UUID,
    current_user: Annotated[User, Depends(require_editor)],
    service: Annotated[AutomationService, Depends(get_automation_service)],
    execute_data: ExecuteAutomationRequest | None = None,
) -> StandardResponse[ExecutionResultResponse]:
    _get_visible_automation(service, automation_id, current_user)
    payload = execute_data.trigger_data if execute_data else {}
    result = await service.execute_automation(automation_id, payload)
    log_automation_change(
        current_user.id,
        "execute",
        automation_id,
        {
            "success": result.success,
            "execution_id": str(result.execution_id) if result.execution_id else None,
        },
    )
    return StandardResponse(data=ExecutionResultResponse.from_result(result))


@router.get(
    "/{automation_id}/executions",
    response_model=StandardListResponse[AutomationExecutionResponse],
    summary="List executions",
    description="Execution history of an automation, newest first.",
)
async def list_executions(
    automation_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AutomationService, Depends(get_automation_service)],
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=20, ge=1, le=100, description="Page size"),
) -> StandardListResponse[AutomationExecutionResponse]:
    _get_visible_automation(service, automation_id, current_user)
    executions, total = service.get_executions(
        automation_id, skip=(page - 1) * page_size, limit=page_size
    )
    return StandardListResponse(
        data=[AutomationExecutionResponse.model_validate(e) for e in executions],
        meta=PaginationMeta.build(total, page, page_size),
    )
