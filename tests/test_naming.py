"""Tests for generated organization, project and connection names."""

from pipewright.core.naming import (
    DEFAULT_PROJECT_NAME,
    ORGANIZATION_NAME_MAX_LENGTH,
    UNIQUE_RESOURCE_NAME_SUFFIX,
    generate_devops_organization_name,
    generate_devops_project_name,
    service_connection_name,
    user_name_local_part,
)


def test_user_name_local_part():
    assert user_name_local_part("jane@contoso.com") == "jane"
    assert user_name_local_part("jane") == "jane"


def test_organization_name_is_deterministic():
    first = generate_devops_organization_name("jane", "contoso/shop")
    second = generate_devops_organization_name("jane", "contoso/shop")
    assert first == second == "jane-contoso-shop"


def test_organization_name_drops_invalid_characters():
    assert generate_devops_organization_name("jane.doe", "contoso/my_shop") == "janedoe-contoso-myshop"


def test_organization_name_is_truncated():
    name = generate_devops_organization_name("j" * 40, "contoso/" + "s" * 40)
    assert len(name) <= ORGANIZATION_NAME_MAX_LENGTH
    assert not name.endswith("-")


def test_project_name():
    assert generate_devops_project_name("contoso/shop") == "AzurePipelines-shop"
    assert generate_devops_project_name("contoso/shop._") == "AzurePipelines-shop"
    assert generate_devops_project_name(None) == DEFAULT_PROJECT_NAME


def test_unique_suffix_is_stable_for_the_process():
    assert len(UNIQUE_RESOURCE_NAME_SUFFIX) == 5
    assert service_connection_name("contoso/shop", UNIQUE_RESOURCE_NAME_SUFFIX) == (
        f"contoso-shop-{UNIQUE_RESOURCE_NAME_SUFFIX}"
    )


def test_organization_name_never_starts_with_hyphen():
    assert generate_devops_organization_name(".-x", "contoso/shop") == "x-contoso-shop"
