"""
Token Service - OAuth2 refresh-token grant for Zoho Books.

The refreshed access token is written into the injected IntegrationConfig (shared with
ZohoBooksClient) and persisted through ConfigStore. Only the current-token rows are
written, so two concurrent refreshes simply resolve last-write-wins.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx

from app.config import settings
from app.database import SessionLocal
from app.schemas.settings import IntegrationConfig
from app.services.activity_log_service import ActivityLogService
from app.services.config_store import ConfigStore
from app.services.exceptions import TokenRefreshError

logger = logging.getLogger(__name__)


class TokenService:
    def __init__(
        self,
        config: IntegrationConfig,
        config_store: Optional[ConfigStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        token_url: Optional[str] = None
    ):
        self.config = config
        self.config_store = config_store
        self.transport = transport
        self.token_url = token_url or settings.zoho_token_url

    async def refresh(self) -> str:
        """
        Exchange the stored refresh token for a new access token.

        Returns:
            The new access token

        Raises:
            TokenRefreshError: credentials missing, request failed, or no access_token in response
        """
        if not self.config.can_refresh():
            raise TokenRefreshError("Cannot refresh token: Missing refresh token or client credentials")

        data = {
            "refresh_token": self.config.refresh_token,
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "grant_type": "refresh_token",
        }

        logger.info("Refreshing Zoho access token...")
        try:
            async with httpx.AsyncClient(timeout=settings.zoho_timeout_seconds, transport=self.transport) as client:
                response = await client.post(self.token_url, data=data)
        except httpx.HTTPError as e:
            raise TokenRefreshError(f"Failed to refresh access token: {str(e)}")

        if not response.is_success:
            raise TokenRefreshError(
                f"Failed to refresh access token: HTTP {response.status_code}",
                status_code=response.status_code,
                details=response.text
            )

        try:
            token_data = response.json()
        except ValueError:
            raise TokenRefreshError("Failed to refresh access token: non-JSON response")

        access_token = token_data.get("access_token")
        if not access_token:
            # Zoho answers 200 with {"error": "invalid_code"} for a revoked refresh token
            raise TokenRefreshError(
                f"No access token in response: {token_data.get('error', 'unknown error')}"
            )

        lifetime = token_data.get("expires_in") or settings.default_token_lifetime_seconds
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(lifetime))

        self.config.access_token = access_token
        self.config.access_token_expires_at = expires_at
        if self.config_store:
            self.config_store.save_access_token(access_token, expires_at)

        logger.info(f"Access token refreshed, expires at {expires_at.isoformat()}")
        return access_token

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Expired when the expiry is unknown or falls within the refresh margin"""
        expires_at = self.config.access_token_expires_at
        if not self.config.access_token or expires_at is None:
            return True
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        now = now or datetime.now(timezone.utc)
        return now >= expires_at - timedelta(seconds=settings.token_refresh_margin_seconds)

    async def refresh_if_expired(self) -> bool:
        """Proactively refresh; returns True if a refresh happened"""
        if not self.config.can_refresh() or not self.is_expired():
            return False
        await self.refresh()
        return True


async def refresh_token_job() -> None:
    """Scheduled job: refresh the stored access token when it has expired"""
    db = SessionLocal()
    try:
        store = ConfigStore(db)
        token_service = TokenService(store.load(), config_store=store)
        try:
            if await token_service.refresh_if_expired():
                ActivityLogService(db).success("Access token refreshed automatically")
        except TokenRefreshError as e:
            ActivityLogService(db).error(
                f"Failed to refresh access token: {e.message}. Please update your credentials in Settings."
            )
    finally:
        db.close()
