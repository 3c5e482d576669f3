"""Settings read from ``PIPEWRIGHT_*`` environment variables and ``.env``."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings. YAML config values are layered on by ``WizardConfig.apply_to``."""

    # Azure session (acquired outside pipewright)
    azure_access_token: str | None = None
    azure_user_id: str | None = None
    azure_tenant_id: str | None = None

    # Azure endpoints
    arm_base_url: str = "https://management.azure.com"
    portal_url: str = "https://portal.azure.com"

    # Azure DevOps endpoints
    devops_base_url: str = "https://dev.azure.com"
    vssps_base_url: str = "https://app.vssps.visualstudio.com"
    aex_base_url: str = "https://aex.dev.azure.com"

    # GitHub
    github_base_url: str = "https://github.com"
    github_pipeline_host: str = "github-actions"  # github-actions, azure-pipelines

    # Templates
    templates_extra_dir: str | None = None

    # Check-in
    commit_message: str = "Set up CI/CD pipeline"

    # Display
    open_browser: bool = True

    # retries and timeouts for ARM and Azure DevOps calls
    http_timeout: float = 30.0
    http_max_retries: int = 3
    http_retry_backoff_factor: float = 2.0

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="PIPEWRIGHT_")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
