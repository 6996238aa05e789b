from fastapi import APIRouter, Depends

from core.database import get_db
from core.system_settings import get_settings, initialize_settings, update_settings
from models.settings import SystemSettings, SystemSettingsUpdate
from models.user import User
from routes.auth import get_current_user, require_role

router = APIRouter(prefix="/system/settings", tags=["System Settings"])

@router.get("/", response_model=SystemSettings)
async def read_settings(current_user: User = Depends(get_current_user), db=Depends(get_db)):
    return await get_settings(db)

@router.put("/", response_model=SystemSettings)
async def save_settings(
    settings_in: SystemSettingsUpdate,
    current_user: User = Depends(require_role("admin")),
    db=Depends(get_db)
):
    """Admin only. Applies to tasks created or repriced from now on."""
    return await update_settings(db, settings_in)

@router.post("/initialize", response_model=SystemSettings)
async def init_settings(current_user: User = Depends(require_role("admin")), db=Depends(get_db)):
    return await initialize_settings(db)
