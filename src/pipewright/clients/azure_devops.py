"""Azure DevOps REST client: organizations, projects, repositories, pipelines."""

from __future__ import annotations

import asyncio
import re
from typing import Any
from urllib.parse import quote

import structlog

from pipewright.clients.base import BaseHTTPClient
from pipewright.core.errors import ProviderError
from pipewright.wizard.models import DevOpsOrganization, DevOpsProject, DevOpsRepository

logger = structlog.get_logger()

API_VERSION = "5.0"
SERVICE_ENDPOINT_API_VERSION = "5.1-preview.2"
HOST_ACQUISITION_API_VERSION = "4.0-preview.1"

# Agile process template
DEFAULT_PROCESS_TEMPLATE_ID = "adcc42ab-9882-485e-a3ed-7678f01f66bc"
DEFAULT_AGENT_QUEUE = "Azure Pipelines"

ORGANIZATION_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?$")
ORGANIZATION_NAME_MAX_LENGTH = 50

ORGANIZATION_NAME_RULE_MESSAGE = (
    "Organization names must start and end with a letter or number, can contain only "
    "letters, numbers and hyphens, and be at most 50 characters long."
)


def organization_name_rule_violation(name: str) -> str | None:
    """Static naming rule for organizations; returns a message or None."""
    if not name or name != name.strip() or len(name) > ORGANIZATION_NAME_MAX_LENGTH:
        return ORGANIZATION_NAME_RULE_MESSAGE
    if not ORGANIZATION_NAME_PATTERN.match(name):
        return ORGANIZATION_NAME_RULE_MESSAGE
    if name.lower().startswith("xn--"):
        return f"The organization name {name} is reserved. Enter a different name."
    return None


class AzureDevOpsClient(BaseHTTPClient):
    """Azure DevOps client with retry logic and circuit breaker."""

    def __init__(
        self,
        token: str | None,
        *,
        base_url: str = "https://dev.azure.com",
        vssps_base_url: str = "https://app.vssps.visualstudio.com",
        aex_base_url: str = "https://aex.dev.azure.com",
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
        operation_poll_interval: float = 2.0,
        operation_poll_attempts: int = 30,
    ) -> None:
        super().__init__(
            base_url,
            token=token,
            timeout=timeout,
            max_retries=max_retries,
            backoff_factor=backoff_factor,
        )
        self._vssps_base_url = vssps_base_url.rstrip("/")
        self._aex_base_url = aex_base_url.rstrip("/")
        self._poll_interval = operation_poll_interval
        self._poll_attempts = operation_poll_attempts
        self._organizations: list[DevOpsOrganization] | None = None

    # --- organizations / projects -------------------------------------

    async def get_user_id(self) -> str:
        profile = await self.get(
            f"{self._vssps_base_url}/_apis/profile/profiles/me", params={"api-version": API_VERSION}
        )
        return profile["id"]

    async def list_organizations(self) -> list[DevOpsOrganization]:
        if self._organizations is None:
            member_id = await self.get_user_id()
            data = await self.get(
                f"{self._vssps_base_url}/_apis/accounts",
                params={"memberId": member_id, "api-version": API_VERSION},
            )
            organizations = [
                DevOpsOrganization(account_id=item["accountId"], account_name=item["accountName"])
                for item in data.get("value", [])
            ]
            self._organizations = sorted(organizations, key=lambda org: org.account_name.lower())
        return list(self._organizations)

    async def list_projects(self, organization_name: str) -> list[DevOpsProject]:
        data = await self.get(
            f"/{quote(organization_name)}/_apis/projects", params={"api-version": API_VERSION}
        )
        projects = [DevOpsProject(id=item["id"], name=item["name"]) for item in data.get("value", [])]
        return sorted(projects, key=lambda project: project.name.lower())

    async def get_repository(
        self, organization_name: str, project_name: str, repository_name: str
    ) -> DevOpsRepository:
        data = await self.get(
            f"/{quote(organization_name)}/{quote(project_name)}/_apis/git/repositories/"
            f"{quote(repository_name)}",
            params={"api-version": API_VERSION},
        )
        project = data.get("project", {})
        return DevOpsRepository(
            id=data["id"],
            name=data["name"],
            project=DevOpsProject(id=project["id"], name=project["name"]),
        )

    async def validate_organization_name(self, name: str) -> str | None:
        """Return why ``name`` cannot be used for a new organization, or None."""
        violation = organization_name_rule_violation(name)
        if violation:
            return violation

        data = await self.get(
            f"{self._aex_base_url}/_apis/HostAcquisition/NameAvailability/{quote(name)}",
            params={"api-version": HOST_ACQUISITION_API_VERSION},
        )
        if data.get("name", name).lower() == name.lower() and not data.get("isAvailable", True):
            return data.get("unavailabilityReason") or (
                f"The organization name {name} is not available. Enter a different name."
            )
        return None

    async def create_organization(self, name: str, region: str = "CUS") -> None:
        await self.post(
            f"{self._aex_base_url}/_apis/HostAcquisition/collections",
            params={
                "collectionName": name,
                "preferredRegion": region,
                "api-version": HOST_ACQUISITION_API_VERSION,
            },
            json={"VisualStudio.Services.HostResolution.UseCodexDomainForHostCreation": "true"},
        )
        self._organizations = None
        logger.info("devops_organization_created", organization=name)

    async def create_project(self, organization_name: str, project_name: str) -> None:
        operation = await self.post(
            f"/{quote(organization_name)}/_apis/projects",
            params={"api-version": API_VERSION},
            json={
                "name": project_name,
                "visibility": "private",
                "capabilities": {
                    "versioncontrol": {"sourceControlType": "Git"},
                    "processTemplate": {"templateTypeId": DEFAULT_PROCESS_TEMPLATE_ID},
                },
            },
        )
        await self._wait_for_operation(operation)
        logger.info("devops_project_created", organization=organization_name, project=project_name)

    async def _wait_for_operation(self, operation: dict[str, Any]) -> None:
        url = operation.get("url")
        if not url:
            return

        status = ""
        for _ in range(self._poll_attempts):
            status = (await self.get(url)).get("status", "").lower()
            if status in ("succeeded", "failed", "cancelled"):
                break
            await asyncio.sleep(self._poll_interval)

        if status != "succeeded":
            raise ProviderError(
                "Azure DevOps operation did not succeed", details={"status": status, "url": url}
            )

    async def get_project_id_from_name(self, organization_name: str, project_name: str) -> str:
        data = await self.get(
            f"/{quote(organization_name)}/_apis/projects/{quote(project_name)}",
            params={"api-version": API_VERSION},
        )
        return data["id"]

    # --- service connections ------------------------------------------

    async def _create_service_endpoint(
        self, organization_name: str, project_id: str, body: dict[str, Any]
    ) -> str:
        data = await self.post(
            f"/{quote(organization_name)}/{project_id}/_apis/serviceendpoint/endpoints",
            params={"api-version": SERVICE_ENDPOINT_API_VERSION},
            json=body,
        )
        logger.info("service_connection_created", name=body["name"], type=body["type"])
        return data["id"]

    async def create_github_service_connection(
        self, organization_name: str, project_id: str, name: str, access_token: str
    ) -> str:
        return await self._create_service_endpoint(
            organization_name,
            project_id,
            {
                "name": name,
                "type": "github",
                "url": "https://github.com",
                "authorization": {
                    "scheme": "PersonalAccessToken",
                    "parameters": {"accessToken": access_token},
                },
                "isReady": True,
            },
        )

    async def create_azure_rm_service_connection(
        self,
        organization_name: str,
        project_id: str,
        name: str,
        *,
        subscription_id: str,
        subscription_name: str,
        tenant_id: str | None,
    ) -> str:
        return await self._create_service_endpoint(
            organization_name,
            project_id,
            {
                "name": name,
                "type": "azurerm",
                "url": "https://management.azure.com/",
                "authorization": {
                    "scheme": "ServicePrincipal",
                    "parameters": {
                        "tenantid": tenant_id or "",
                        "authenticationType": "spnKey",
                        "serviceprincipalid": "",
                        "serviceprincipalkey": "",
                    },
                },
                "data": {
                    "subscriptionId": subscription_id,
                    "subscriptionName": subscription_name,
                    "environment": "AzureCloud",
                    "scopeLevel": "Subscription",
                    "creationMode": "Automatic",
                },
                "isReady": False,
            },
        )

    # --- pipelines ----------------------------------------------------

    async def create_build_definition(
        self,
        organization_name: str,
        project_id: str,
        *,
        name: str,
        yaml_path: str,
        repository: dict[str, Any],
    ) -> dict[str, Any]:
        return await self.post(
            f"/{quote(organization_name)}/{project_id}/_apis/build/definitions",
            params={"api-version": API_VERSION},
            json={
                "name": name,
                "type": "build",
                "quality": "definition",
                "path": "\\",
                "process": {"type": 2, "yamlFilename": yaml_path},
                "queue": {"name": DEFAULT_AGENT_QUEUE},
                "repository": repository,
            },
        )

    async def queue_build(
        self,
        organization_name: str,
        project_id: str,
        *,
        definition_id: int | str,
        source_branch: str,
        source_version: str,
    ) -> dict[str, Any]:
        return await self.post(
            f"/{quote(organization_name)}/{project_id}/_apis/build/builds",
            params={"api-version": API_VERSION},
            json={
                "definition": {"id": definition_id},
                "sourceBranch": source_branch,
                "sourceVersion": source_version,
            },
        )

    def build_url(self, organization_name: str, project_id: str, build_id: int | str) -> str:
        return f"{self._base_url}/{quote(organization_name)}/{project_id}/_build/results?buildId={build_id}"

    def build_definition_url(
        self, organization_name: str, project_id: str, definition_id: int | str
    ) -> str:
        return f"{self._base_url}/{quote(organization_name)}/{project_id}/_build?definitionId={definition_id}"
