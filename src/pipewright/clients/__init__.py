from pipewright.clients.azure import (
    AppServiceClient,
    ArmClient,
    parse_subscription_id,
    validate_target_resource_type,
)
from pipewright.clients.azure_devops import AzureDevOpsClient
from pipewright.clients.base import PermanentHTTPError, RetryableHTTPError

__all__ = [
    "AppServiceClient",
    "ArmClient",
    "AzureDevOpsClient",
    "PermanentHTTPError",
    "RetryableHTTPError",
    "parse_subscription_id",
    "validate_target_resource_type",
]
