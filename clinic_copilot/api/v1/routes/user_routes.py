from fastapi import APIRouter, Depends

from clinic_copilot.api.v1.controllers.user_controller import UserController
from clinic_copilot.middlewares.clerk_auth import get_signed_in_user
from clinic_copilot.schemas.health_record import UserRecord
from clinic_copilot.schemas.user_schemas import AuthStateResponse, AuthUser, UserUpdateRequest
from clinic_copilot.utils.app_container import AppContainer, get_container

router = APIRouter(prefix="/user", tags=["User"])


@router.get("/me", summary="Get my record", response_model=UserRecord)
async def get_record(
    container: AppContainer = Depends(get_container),
    user: AuthUser = Depends(get_signed_in_user)
):
    return await UserController.get_record(container, user)


@router.patch("/me", summary="Update profile or preferences", response_model=UserRecord)
async def update_record(
    payload: UserUpdateRequest,
    container: AppContainer = Depends(get_container),
    user: AuthUser = Depends(get_signed_in_user)
):
    return await UserController.update_record(container, user, payload)


@router.delete("/me", summary="Delete my record", response_model=AuthStateResponse)
async def delete_record(
    container: AppContainer = Depends(get_container),
    user: AuthUser = Depends(get_signed_in_user)
):
    """Deletes the record and signs out."""
    return await UserController.delete_record(container, user)
