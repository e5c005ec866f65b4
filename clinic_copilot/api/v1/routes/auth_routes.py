from fastapi import APIRouter, Depends

from clinic_copilot.api.v1.controllers.auth_controller import AuthController
from clinic_copilot.middlewares.clerk_auth import get_caller_session, get_verified_identity
from clinic_copilot.schemas.user_schemas import AuthStateResponse, VerifiedIdentity
from clinic_copilot.utils.app_container import AppContainer, get_container

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/sign-in",
    summary="Sign in with an identity provider token",
    description="Verifies the Clerk bearer token, then resolves or creates the user's record.",
    response_model=AuthStateResponse
)
async def sign_in(
    identity: VerifiedIdentity = Depends(get_verified_identity),
    container: AppContainer = Depends(get_container)
):
    return await AuthController.sign_in(container, identity)


@router.post(
    "/logout",
    summary="Sign out",
    response_model=AuthStateResponse,
    dependencies=[Depends(get_caller_session)]
)
async def logout(container: AppContainer = Depends(get_container)):
    """Clears the session. The user's record is kept."""
    return await AuthController.logout(container)


@router.get(
    "/me",
    summary="Current identity",
    response_model=AuthStateResponse,
    dependencies=[Depends(get_caller_session)]
)
async def me(container: AppContainer = Depends(get_container)):
    return await AuthController.current(container)
