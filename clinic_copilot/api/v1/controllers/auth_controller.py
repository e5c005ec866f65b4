from fastapi import HTTPException, status

from clinic_copilot.core.logger import get_logger
from clinic_copilot.schemas.user_schemas import AuthStateResponse, AuthUser, VerifiedIdentity
from clinic_copilot.utils.app_container import AppContainer

logger = get_logger("auth_controller")


class AuthController:
    """Controller for sign-in state."""

    @staticmethod
    async def sign_in(container: AppContainer, identity: VerifiedIdentity) -> AuthStateResponse:
        try:
            record = await container.auth.sign_in(identity)
            return AuthStateResponse(signed_in=True, user=AuthUser.from_record(record))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"❌ Sign-in failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Sign-in failed"
            )

    @staticmethod
    async def logout(container: AppContainer) -> AuthStateResponse:
        await container.auth.logout()
        return AuthStateResponse(signed_in=False)

    @staticmethod
    async def current(container: AppContainer) -> AuthStateResponse:
        user = await container.auth.restore()
        return AuthStateResponse(signed_in=user is not None, user=user)
