"""API v1 router aggregation."""

from fastapi import APIRouter

from bukialo.api.v1 import automations
from bukialo.schemas.common import ErrorResponse

api_router = APIRouter()

ERROR_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
    403: {"model": ErrorResponse, "description": "Inactive user or insufficient role"},
    404: {"model": ErrorResponse, "description": "Automation not found"},
}

api_router.include_router(
    automations.router,
    prefix="/automations",
    tags=["automations"],
    responses=ERROR_RESPONSES,
)
