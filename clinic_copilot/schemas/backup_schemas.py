from clinic_copilot.schemas.health_record import CamelModel


class ImportResponse(CamelModel):
    success: bool
    user_count: int


class ClearResponse(CamelModel):
    success: bool
