from datetime import datetime
from zoneinfo import ZoneInfo

from core.config import settings

LOCAL_TZ = ZoneInfo(settings.TIMEZONE)

def get_current_time():
    """Returns the current time in the configured timezone."""
    return datetime.now(LOCAL_TZ)
