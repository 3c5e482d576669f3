"""
Azure session handling.

Signing in is out of scope: the access token, user and tenant come from
settings (``PIPEWRIGHT_AZURE_*``) or the config file. This module only
turns them into per-subscription sessions.
"""

from __future__ import annotations

import structlog

from pipewright.clients.azure import ArmClient
from pipewright.config.settings import Settings
from pipewright.wizard.models import AzureSession, Subscription

logger = structlog.get_logger()


class AzureSessionProvider:
    """Session provider backed by a pre-acquired ARM access token."""

    def __init__(
        self,
        settings: Settings,
        *,
        subscription_filter: list[str] | None = None,
        arm_client: ArmClient | None = None,
    ) -> None:
        self._settings = settings
        self._filter = {s.lower() for s in subscription_filter or []}
        self._arm = arm_client or ArmClient(
            settings.azure_access_token,
            base_url=settings.arm_base_url,
            timeout=settings.http_timeout,
            max_retries=settings.http_max_retries,
            backoff_factor=settings.http_retry_backoff_factor,
        )
        self._subscriptions: dict[str, Subscription] = {}

    async def wait_for_login(self) -> bool:
        return bool(self._settings.azure_access_token)

    async def current_subscriptions(self) -> list[Subscription]:
        subscriptions = await self._arm.list_subscriptions()
        if self._filter:
            subscriptions = [s for s in subscriptions if s.subscription_id.lower() in self._filter]
        self._subscriptions = {s.subscription_id: s for s in subscriptions}
        logger.debug("subscriptions_listed", count=len(subscriptions))
        return sorted(subscriptions, key=lambda s: s.display_name.lower())

    def session_for(self, subscription_id: str) -> AzureSession:
        known = self._subscriptions.get(subscription_id)
        return AzureSession(
            credentials=self._settings.azure_access_token or "",
            tenant_id=(known.tenant_id if known and known.tenant_id else self._settings.azure_tenant_id),
            user_id=self._settings.azure_user_id or "",
            subscription_id=subscription_id,
            portal_url=self._settings.portal_url,
        )
