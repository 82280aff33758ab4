from app.models.transaction import Transaction
from app.models.account_mapping import AccountMapping
from app.models.cached_account import CachedAccount
from app.models.app_setting import AppSetting
from app.models.activity_log import ActivityLogEntry
from app.models.pending_import import PendingImport

__all__ = ["Transaction", "AccountMapping", "CachedAccount", "AppSetting", "ActivityLogEntry", "PendingImport"]
