import logging

from pymongo import ReturnDocument

from core.config import settings
from core.time_utils import get_current_time
from models.settings import SETTINGS_DOC_ID, SystemSettings, SystemSettingsUpdate

logger = logging.getLogger(__name__)

def default_settings() -> SystemSettings:
    return SystemSettings(
        task_completion_base=settings.DEFAULT_TASK_COMPLETION_BASE,
        complexity_multiplier=settings.DEFAULT_COMPLEXITY_MULTIPLIER,
        monthly_bonus=settings.DEFAULT_MONTHLY_BONUS,
        version=0
    )

async def get_settings(db) -> SystemSettings:
    """Stored reward policy, or the configured defaults (version 0) if never saved."""
    doc = await db.system.find_one({"_id": SETTINGS_DOC_ID})
    if not doc:
        return default_settings()
    doc.pop("_id", None)
    return SystemSettings(**doc)

async def initialize_settings(db) -> SystemSettings:
    """Persist the defaults if no settings document exists yet."""
    if not await db.system.find_one({"_id": SETTINGS_DOC_ID}):
        initial = default_settings()
        initial.version = 1
        initial.updated_at = get_current_time()
        await db.system.insert_one({"_id": SETTINGS_DOC_ID, **initial.model_dump()})
        logger.info("Initialized system settings with defaults")
    return await get_settings(db)

async def update_settings(db, updates: SystemSettingsUpdate) -> SystemSettings:
    """
    Saves the given fields and bumps the version.
    Existing tasks keep the reward they were priced with.
    """
    current = await get_settings(db)
    merged = current.model_dump(exclude={"version", "updated_at"})
    merged.update(updates.model_dump(exclude_none=True))
    doc = await db.system.find_one_and_update(
        {"_id": SETTINGS_DOC_ID},
        {"$set": {**merged, "updated_at": get_current_time()}, "$inc": {"version": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER
    )
    doc.pop("_id", None)
    saved = SystemSettings(**doc)
    logger.info("System settings updated to version %d", saved.version)
    return saved
