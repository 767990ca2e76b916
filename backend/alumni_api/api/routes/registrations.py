"""
Registration endpoints for the current user.
"""

from fastapi import APIRouter, Depends

from alumni_api.api.deps import get_registration_orchestrator
from alumni_api.core.security import get_current_user
from alumni_api.models.user import User
from alumni_api.schemas.common import ApiResponse, ok
from alumni_api.schemas.registration import (
    MyRegistrationResponse,
    RegistrationCreate,
    RegistrationResponse,
    RegistrationResult,
    RegistrationUpdate,
)
from alumni_api.services.registration_service import RegistrationOrchestrator

router = APIRouter(prefix="/events/{event_id}", tags=["Registrations"])


@router.post("/register", response_model=ApiResponse[RegistrationResult])
async def register_for_event(
    event_id: int,
    registration_data: RegistrationCreate,
    user: User = Depends(get_current_user),
    orchestrator: RegistrationOrchestrator = Depends(get_registration_orchestrator),
):
    """
    Register the current user.
    400 when registration is not open or required answers are missing,
    409 when the user is already registered.
    """
    outcome = await orchestrator.register(
        event_id,
        user,
        meal_preference=registration_data.meal_preference,
        form_responses=registration_data.form_responses,
    )
    return ok(outcome.as_dict(), "Successfully registered for event")


@router.get("/my-registration", response_model=ApiResponse[MyRegistrationResponse])
async def get_my_registration(
    event_id: int,
    user: User = Depends(get_current_user),
    orchestrator: RegistrationOrchestrator = Depends(get_registration_orchestrator),
):
    mine = await orchestrator.get_my_registration(event_id, user)
    return ok({"registration": mine.registration, "can_modify": mine.can_modify.as_dict()})


@router.put("/my-registration", response_model=ApiResponse[RegistrationResponse])
async def update_my_registration(
    event_id: int,
    registration_data: RegistrationUpdate,
    user: User = Depends(get_current_user),
    orchestrator: RegistrationOrchestrator = Depends(get_registration_orchestrator),
):
    registration = await orchestrator.update_my_registration(
        event_id,
        user,
        meal_preference=registration_data.meal_preference,
        form_responses=registration_data.form_responses,
    )
    return ok(registration, "Registration updated successfully")


@router.delete("/my-registration", response_model=ApiResponse[RegistrationResponse])
async def cancel_my_registration(
    event_id: int,
    user: User = Depends(get_current_user),
    orchestrator: RegistrationOrchestrator = Depends(get_registration_orchestrator),
):
    registration = await orchestrator.cancel_my_registration(event_id, user)
    return ok(registration, "Registration cancelled successfully")
