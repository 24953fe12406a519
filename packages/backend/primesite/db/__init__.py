from .database import Database, get_database, get_drafts_database, reset_database
from .migrations import init_db, init_drafts_db
from .models import LocalDraft, SiteRecord, SubscriptionStatus, UserProfile
from .utils import store_session

__all__ = [
    "Database",
    "get_database",
    "get_drafts_database",
    "reset_database",
    "init_db",
    "init_drafts_db",
    "LocalDraft",
    "SiteRecord",
    "SubscriptionStatus",
    "UserProfile",
    "store_session",
]
