"""Azure Resource Manager and App Service clients."""

from __future__ import annotations

import re
import uuid
from typing import Any

import structlog

from pipewright.clients.base import BaseHTTPClient
from pipewright.core.errors import InvalidTargetResourceError
from pipewright.wizard.models import AzureResource, AzureSession, Subscription

logger = structlog.get_logger()

SUBSCRIPTIONS_API_VERSION = "2020-01-01"
WEB_API_VERSION = "2022-03-01"
WEB_APP_RESOURCE_TYPE = "Microsoft.Web/sites"

_SUBSCRIPTION_IN_ID = re.compile(r"^/subscriptions/(?P<sub>[^/]+)(?:/|$)", re.IGNORECASE)


def parse_subscription_id(resource_id: str) -> str:
    """Extract the subscription id from an ARM resource id."""
    match = _SUBSCRIPTION_IN_ID.match(resource_id.strip())
    if match is None:
        raise InvalidTargetResourceError(
            "Not an Azure resource id.", details={"resource_id": resource_id}
        )
    return match.group("sub")


def validate_target_resource_type(resource: AzureResource) -> None:
    """Only App Service sites can be deployment targets."""
    if resource.type.lower() != WEB_APP_RESOURCE_TYPE.lower():
        raise InvalidTargetResourceError(
            "The selected resource is not supported as a deployment target. Select an App Service.",
            details={"resource_type": resource.type},
        )


class ArmClient(BaseHTTPClient):
    """Subscription-level Resource Manager calls."""

    def __init__(
        self,
        token: str | None,
        *,
        base_url: str = "https://management.azure.com",
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
    ) -> None:
        super().__init__(
            base_url,
            token=token,
            timeout=timeout,
            max_retries=max_retries,
            backoff_factor=backoff_factor,
        )

    async def _list(self, path: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        data = await self.get(path, params=params)
        items.extend(data.get("value", []))
        while data.get("nextLink"):
            data = await self.get(data["nextLink"])
            items.extend(data.get("value", []))
        return items

    async def list_subscriptions(self) -> list[Subscription]:
        items = await self._list("/subscriptions", {"api-version": SUBSCRIPTIONS_API_VERSION})
        return [Subscription.model_validate(item) for item in items]


class AppServiceClient(ArmClient):
    """App Service calls scoped to one subscription."""

    def __init__(self, session: AzureSession, *, base_url: str = "https://management.azure.com", **kwargs: Any):
        super().__init__(session.credentials, base_url=base_url, **kwargs)
        self._subscription_id = session.subscription_id

    async def get_resource(self, resource_id: str) -> AzureResource:
        data = await self.get(resource_id, params={"api-version": WEB_API_VERSION})
        return AzureResource.model_validate(data)

    async def list_web_apps(self, kind: str) -> list[AzureResource]:
        """List sites in the subscription whose kind is exactly ``kind``."""
        items = await self._list(
            f"/subscriptions/{self._subscription_id}/providers/{WEB_APP_RESOURCE_TYPE}",
            {"api-version": WEB_API_VERSION},
        )
        wanted = kind.lower()
        apps = [AzureResource.model_validate(item) for item in items]
        return [app for app in apps if (app.kind or "").lower() == wanted]

    async def update_scm_type(self, resource_id: str, scm_type: str = "VSTSRM") -> None:
        await self.patch(
            f"{resource_id}/config/web",
            params={"api-version": WEB_API_VERSION},
            json={"properties": {"scmType": scm_type}},
        )
        logger.info("web_app_scm_type_updated", resource_id=resource_id, scm_type=scm_type)

    async def get_metadata(self, resource_id: str) -> dict[str, Any]:
        return await self.post(
            f"{resource_id}/config/metadata/list", params={"api-version": WEB_API_VERSION}
        )

    async def update_metadata(self, resource_id: str, metadata: dict[str, Any]) -> None:
        await self.put(
            f"{resource_id}/config/metadata",
            params={"api-version": WEB_API_VERSION},
            json=metadata,
        )

    async def publish_deployment(
        self, resource_id: str, *, message: str, details_url: str, author: str = "pipewright"
    ) -> None:
        """Write a deployment log entry pointing at the pipeline."""
        deployment_id = uuid.uuid4().hex
        await self.put(
            f"{resource_id}/deployments/{deployment_id}",
            params={"api-version": WEB_API_VERSION},
            json={
                "properties": {
                    "status": 4,
                    "status_text": "success",
                    "message": message,
                    "author": author,
                    "deployer": "VSTS",
                    "details": details_url,
                }
            },
        )
