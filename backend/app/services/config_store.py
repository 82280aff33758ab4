"""
Config Store - persists the global integration configuration as key/value rows.
"""
import logging
from datetime import datetime
from typing import Dict, Optional
from sqlalchemy.orm import Session

from app.models.app_setting import AppSetting
from app.schemas.settings import IntegrationConfig, IntegrationConfigUpdate

logger = logging.getLogger(__name__)


def _serialize(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class ConfigStore:
    """Load and save IntegrationConfig from the app_settings table"""

    def __init__(self, db: Session):
        self.db = db

    def load(self) -> IntegrationConfig:
        rows = self.db.query(AppSetting).all()
        values: Dict[str, str] = {
            row.key: row.value for row in rows
            if row.value is not None and row.key in IntegrationConfig.model_fields
        }
        return IntegrationConfig(**values)

    def save(self, config: IntegrationConfig) -> IntegrationConfig:
        for key, value in config.model_dump().items():
            self._set(key, _serialize(value))
        self.db.commit()
        return config

    def update(self, update: IntegrationConfigUpdate) -> IntegrationConfig:
        """Apply a partial update and return the merged configuration"""
        config = self.load()
        changes = update.model_dump(exclude_none=True)
        if "access_token" in changes:
            # A manually entered token has unknown lifetime
            changes["access_token_expires_at"] = None
        merged = config.model_copy(update=changes)
        self.save(merged)
        logger.info(f"Integration settings updated: {sorted(changes.keys())}")
        return merged

    def save_access_token(self, access_token: str, expires_at: Optional[datetime]) -> None:
        """Write only the current-token rows (last write wins)"""
        self._set("access_token", access_token)
        self._set("access_token_expires_at", _serialize(expires_at))
        self.db.commit()

    def _set(self, key: str, value: Optional[str]) -> None:
        row = self.db.query(AppSetting).filter(AppSetting.key == key).first()
        if row:
            row.value = value
        else:
            self.db.add(AppSetting(key=key, value=value))
