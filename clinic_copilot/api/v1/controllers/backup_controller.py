import json

from fastapi import Response

from clinic_copilot.core.logger import get_logger
from clinic_copilot.schemas.backup_schemas import ClearResponse, ImportResponse
from clinic_copilot.utils.app_container import AppContainer

logger = get_logger("backup_controller")


class BackupController:
    """Controller for whole-table backup, restore and reset."""

    @staticmethod
    async def export_all(container: AppContainer) -> Response:
        blob = await container.record_store.export_all()
        return Response(
            content=blob,
            media_type="application/json",
            headers={"Content-Disposition": 'attachment; filename="health-ai-users.json"'}
        )

    @staticmethod
    async def import_all(container: AppContainer, blob: str) -> ImportResponse:
        success = await container.record_store.import_all(blob)
        if not success:
            return ImportResponse(success=False, user_count=0)

        # restored data may no longer contain the signed-in user
        await container.auth.restore()
        await container.health_data.reload()

        users = json.loads(await container.record_store.export_all())["users"]
        return ImportResponse(success=True, user_count=len(users))

    @staticmethod
    async def clear_all(container: AppContainer) -> ClearResponse:
        await container.record_store.clear_all()
        await container.auth.restore()
        logger.warning("All user records were cleared")
        return ClearResponse(success=True)
