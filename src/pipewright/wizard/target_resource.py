"""Choose the subscription and deployment target when none was given."""

from __future__ import annotations

import structlog

from pipewright.telemetry import TelemetryKeys
from pipewright.wizard.interfaces import (
    DeploymentTargetClient,
    DeploymentTargetClientFactory,
    PromptSurface,
    SessionProvider,
    Telemetry,
)
from pipewright.wizard.models import Choice, TargetResourceType, WebAppKind, WizardInputs

logger = structlog.get_logger()


class TargetResourceResolver:
    """Fills ``inputs.target_resource`` and ``inputs.azure_session``.

    Listing failures propagate unchanged.
    """

    def __init__(
        self,
        *,
        prompts: PromptSurface,
        telemetry: Telemetry,
        sessions: SessionProvider,
        target_client_factory: DeploymentTargetClientFactory,
    ) -> None:
        self._prompts = prompts
        self._telemetry = telemetry
        self._sessions = sessions
        self._target_client_factory = target_client_factory

    async def resolve(self, inputs: WizardInputs) -> None:
        subscription = await self._prompts.choose_one(
            "select_subscription",
            self._subscription_choices(),
            "Select an Azure subscription",
        )
        subscription_id = subscription.data.subscription_id
        inputs.target_resource.subscription_id = subscription_id
        inputs.azure_session = self._sessions.session_for(subscription_id)

        template = inputs.template
        if template.target_type == TargetResourceType.NONE:
            return

        client = self._target_client_factory(inputs.azure_session)
        kind = template.target_kind or WebAppKind.WINDOWS_APP
        web_app = await self._prompts.choose_one(
            "select_web_app",
            self._web_app_choices(client, kind),
            "Select a web app to deploy to",
        )
        inputs.target_resource.resource = web_app.data
        logger.info("target_resource_selected", resource_id=web_app.data.id, kind=str(kind))

    async def _subscription_choices(self) -> list[Choice]:
        subscriptions = await self._sessions.current_subscriptions()
        return [
            Choice(label=s.display_name or s.subscription_id, data=s, description=s.subscription_id)
            for s in subscriptions
        ]

    async def _web_app_choices(self, client: DeploymentTargetClient, kind: str) -> list[Choice]:
        web_apps = await client.list_web_apps(kind)
        self._telemetry.record_fact(TelemetryKeys.WEB_APP_LIST_COUNT, len(web_apps))
        return [Choice(label=app.name, data=app) for app in web_apps]
