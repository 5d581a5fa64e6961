"""Shared fixtures for the dashboard test suite."""

import pytest

from config_store import ConfigStore

SUBSCRIPTION_ID = "0b1f6471-1bf0-4dda-aec3-cb9272f09590"
THUMBPRINT = "a909502dd82ae41433e6f83886b00d4277a32a7b"


@pytest.fixture
def secret_config():
    return {
        "configName": "Production",
        "keyVaultUri": "https://prod-kv.vault.azure.net/",
        "subscriptionId": SUBSCRIPTION_ID,
        "apiEndpoint": "https://management.azure.com",
        "apiAuthMethod": "clientSecretInKv",
        "tenantIdSecretName": "tenant-id",
        "clientIdSecretName": "client-id",
        "clientSecretName": "client-secret",
    }


@pytest.fixture
def certificate_config():
    return {
        "keyVaultUri": "https://cert-kv.vault.azure.net/",
        "subscriptionId": "5d3b1a2c-9e8f-4a7b-8c6d-1e2f3a4b5c6d",
        "apiEndpoint": "",
        "apiAuthMethod": "clientCertificateInKv",
        "tenantIdSecretName": "tenant-id",
        "clientIdSecretName": "client-id",
        "certificateThumbprintSecretName": THUMBPRINT,
    }


@pytest.fixture
def identity_config():
    return {
        "configName": "Managed",
        "keyVaultUri": "https://mi-kv.vault.azure.net/",
        "subscriptionId": SUBSCRIPTION_ID,
        "apiAuthMethod": "managedIdentityInKv",
        "managedIdentityClientIdSecretName": "uami-client-id",
    }


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "azure-data-sources.config.json"


@pytest.fixture
def store(config_path):
    return ConfigStore(config_path)


@pytest.fixture
def clean_openai_env(monkeypatch):
    """Remove Azure OpenAI env vars so nothing reaches a real endpoint."""
    for key in [
        "AZURE_OPENAI_API_KEY",
        "AZURE_OPENAI_ENDPOINT",
        "AZURE_OPENAI_DEPLOYMENT",
    ]:
        monkeypatch.delenv(key, raising=False)
    yield
