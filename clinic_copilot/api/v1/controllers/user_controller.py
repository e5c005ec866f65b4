from fastapi import HTTPException, status
from pydantic import ValidationError

from clinic_copilot.core.logger import get_logger
from clinic_copilot.exceptions.errors import HealthDataValidationError
from clinic_copilot.schemas.health_record import UserRecord
from clinic_copilot.schemas.user_schemas import AuthStateResponse, AuthUser, UserUpdateRequest
from clinic_copilot.utils.app_container import AppContainer

logger = get_logger("user_controller")


class UserController:
    """Controller for the signed-in user's own record."""

    @staticmethod
    async def get_record(container: AppContainer, user: AuthUser) -> UserRecord:
        record = await container.record_store.get_user(user.id)
        if record is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User record not found"
            )
        return record

    @staticmethod
    async def update_record(container: AppContainer, user: AuthUser, payload: UserUpdateRequest) -> UserRecord:
        current = await UserController.get_record(container, user)

        fields = payload.model_dump(exclude_unset=True, exclude={"preferences"})
        if payload.preferences is not None:
            fields["preferences"] = current.preferences.model_copy(
                update=payload.preferences.model_dump(exclude_unset=True, exclude_none=True)
            )

        try:
            record = await container.record_store.update_user(user.id, fields)
        except ValidationError as e:
            raise HealthDataValidationError(f"Invalid profile update: {e.errors()[0]['msg']}") from e
        if record is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User record not found"
            )

        await container.auth.restore()
        return record

    @staticmethod
    async def delete_record(container: AppContainer, user: AuthUser) -> AuthStateResponse:
        deleted = await container.record_store.delete_user(user.id)
        if not deleted:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User record not found"
            )

        # the store already cleared the session pointer
        await container.auth.restore()
        logger.info(f"🗑️ Deleted user record {user.id}")
        return AuthStateResponse(signed_in=False)
