"""
Settings Router - the global Zoho Books integration configuration
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_token_service
from app.schemas.settings import IntegrationConfigResponse, IntegrationConfigUpdate
from app.services.activity_log_service import ActivityLogService
from app.services.config_store import ConfigStore
from app.services.exceptions import TokenRefreshError
from app.services.token_service import TokenService

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("", response_model=IntegrationConfigResponse)
def get_settings(db: Session = Depends(get_db)):
    """Current configuration with secrets masked"""
    return IntegrationConfigResponse.from_config(ConfigStore(db).load())


@router.put("", response_model=IntegrationConfigResponse)
def update_settings(update: IntegrationConfigUpdate, db: Session = Depends(get_db)):
    config = ConfigStore(db).update(update)
    ActivityLogService(db).success("Settings saved")
    return IntegrationConfigResponse.from_config(config)


@router.post("/refresh-token", response_model=IntegrationConfigResponse)
async def refresh_token(
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service)
):
    """Exchange the stored refresh token for a new access token now"""
    activity_log = ActivityLogService(db)
    try:
        await token_service.refresh()
    except TokenRefreshError as e:
        activity_log.error(f"Failed to refresh access token: {e.message}")
        raise HTTPException(status_code=400, detail=e.message)
    activity_log.success("Access token refreshed successfully")
    return IntegrationConfigResponse.from_config(token_service.config)
