"""Tests for the token-backed Azure session provider."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pipewright.config.settings import Settings
from pipewright.session import AzureSessionProvider
from pipewright.wizard.models import Subscription


def _settings(**overrides):
    values = {
        "azure_access_token": "arm-token",
        "azure_user_id": "jane@contoso.com",
        "azure_tenant_id": "home-tenant",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _arm(subscriptions):
    arm = MagicMock()
    arm.list_subscriptions = AsyncMock(return_value=subscriptions)
    return arm


@pytest.mark.asyncio
async def test_wait_for_login():
    assert await AzureSessionProvider(_settings(), arm_client=_arm([])).wait_for_login() is True
    assert (
        await AzureSessionProvider(_settings(azure_access_token=None), arm_client=_arm([])).wait_for_login()
        is False
    )


@pytest.mark.asyncio
async def test_current_subscriptions_sorted_and_filtered():
    arm = _arm(
        [
            Subscription(subscription_id="sub-2", display_name="staging"),
            Subscription(subscription_id="SUB-1", display_name="Production"),
            Subscription(subscription_id="sub-3", display_name="Sandbox"),
        ]
    )
    provider = AzureSessionProvider(_settings(), subscription_filter=["sub-1", "sub-2"], arm_client=arm)

    subscriptions = await provider.current_subscriptions()

    assert [s.subscription_id for s in subscriptions] == ["SUB-1", "sub-2"]


@pytest.mark.asyncio
async def test_session_for_uses_subscription_tenant():
    arm = _arm([Subscription(subscription_id="sub-1", display_name="Production", tenant_id="guest-tenant")])
    provider = AzureSessionProvider(_settings(), arm_client=arm)
    await provider.current_subscriptions()

    session = provider.session_for("sub-1")

    assert session.credentials == "arm-token"
    assert session.user_id == "jane@contoso.com"
    assert session.tenant_id == "guest-tenant"
    assert session.subscription_id == "sub-1"


def test_session_for_unknown_subscription_falls_back_to_settings_tenant():
    provider = AzureSessionProvider(_settings(), arm_client=_arm([]))

    session = provider.session_for("sub-9")

    assert session.tenant_id == "home-tenant"
    assert session.subscription_id == "sub-9"
