from fastapi import APIRouter, Body, Depends

from clinic_copilot.api.v1.controllers.backup_controller import BackupController
from clinic_copilot.middlewares.clerk_auth import get_signed_in_user
from clinic_copilot.schemas.backup_schemas import ClearResponse, ImportResponse
from clinic_copilot.utils.app_container import AppContainer, get_container

# Exports and wipes every stored user, so only a signed-in caller may use it
router = APIRouter(
    prefix="/backup",
    tags=["Backup"],
    dependencies=[Depends(get_signed_in_user)]
)


@router.get("/export", summary="Export all records")
async def export_all(container: AppContainer = Depends(get_container)):
    return await BackupController.export_all(container)


@router.post("/import", summary="Restore records from a backup", response_model=ImportResponse)
async def import_all(
    blob: str = Body(..., media_type="text/plain", description="A previously exported backup"),
    container: AppContainer = Depends(get_container)
):
    """Replaces every stored record. A malformed backup is rejected and nothing changes."""
    return await BackupController.import_all(container, blob)


@router.delete("", summary="Erase all records", response_model=ClearResponse)
async def clear_all(container: AppContainer = Depends(get_container)):
    """Irreversible."""
    return await BackupController.clear_all(container)
