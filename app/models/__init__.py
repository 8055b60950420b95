# Import all models here so Base.metadata sees them
from app.models.waitlist_entry import WaitlistEntryRecord

__all__ = [
    "WaitlistEntryRecord",
]
