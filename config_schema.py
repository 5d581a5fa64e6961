# config_schema.py - Azure data source configuration schema (Key Vault secret references)
from typing import Annotated, Any, Dict, List, Literal, NamedTuple, Optional, Tuple, Union
from urllib.parse import urlparse

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

# ============================================================
# Constants
# ============================================================
CONFIG_FILE_NAME = "azure-data-sources.config.json"
DEFAULT_API_ENDPOINT = "https://management.azure.com"
DEFAULT_AUTH_METHOD = "clientSecretInKv"

UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
THUMBPRINT_PATTERN = r"^[0-9a-fA-F]{40}$"

AUTH_METHODS = {
    "clientSecretInKv": "Service Principal with Client Secret",
    "clientCertificateInKv": "Service Principal with Client Certificate",
    "managedIdentityInKv": "Azure Managed Identity (for API Access)",
}

COMMON_FIELDS = ("configName", "keyVaultUri", "subscriptionId", "apiEndpoint")

VARIANT_FIELDS = {
    "clientSecretInKv": ("tenantIdSecretName", "clientIdSecretName", "clientSecretName"),
    "clientCertificateInKv": ("tenantIdSecretName", "clientIdSecretName", "certificateThumbprintSecretName"),
    "managedIdentityInKv": ("managedIdentityClientIdSecretName",),
}

OPTIONAL_FIELDS = {"configName", "apiEndpoint", "managedIdentityClientIdSecretName"}

FIELD_LABELS = {
    "configurations": "Configurations",
    "configName": "Configuration Name",
    "keyVaultUri": "Key Vault URI",
    "subscriptionId": "Subscription ID",
    "apiEndpoint": "API Endpoint",
    "apiAuthMethod": "API Authentication Method",
    "tenantIdSecretName": "Tenant ID Secret Name",
    "clientIdSecretName": "Client ID Secret Name",
    "clientSecretName": "Client Secret Name",
    "certificateThumbprintSecretName": "Certificate Thumbprint Secret Name",
    "managedIdentityClientIdSecretName": "User-Assigned MI Client ID Secret Name",
}

# Messages for values that are present but malformed
INVALID_MESSAGES = {
    "keyVaultUri": "Invalid Key Vault URI.",
    "apiEndpoint": "Invalid API Endpoint URL.",
    "subscriptionId": "Invalid Subscription ID format. Must be a UUID.",
    "certificateThumbprintSecretName": "Certificate Thumbprint must be exactly 40 hexadecimal characters.",
    "apiAuthMethod": "Select a valid API authentication method.",
}

_REQUIRED_ERROR_TYPES = {"missing", "string_too_short"}
_INVALID_ERROR_TYPES = {"string_pattern_mismatch", "uri_format", "union_tag_invalid", "union_tag_not_found"}


def default_configuration() -> Dict[str, str]:
    """Fresh, unvalidated entry used to seed an empty settings form."""
    return {
        "configName": "",
        "keyVaultUri": "",
        "apiAuthMethod": DEFAULT_AUTH_METHOD,
        "tenantIdSecretName": "",
        "clientIdSecretName": "",
        "clientSecretName": "",
        "subscriptionId": "",
        "apiEndpoint": DEFAULT_API_ENDPOINT,
    }


# ============================================================
# Field validators
# ============================================================
def _check_absolute_uri(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        parsed = urlparse(value)
    except ValueError:
        raise PydanticCustomError("uri_format", "Value is not a well-formed URI.")
    if not parsed.scheme or not parsed.hostname or any(c.isspace() for c in value):
        raise PydanticCustomError("uri_format", "Value is not a well-formed URI.")
    try:
        parsed.port
    except ValueError:
        raise PydanticCustomError("uri_format", "Value is not a well-formed URI.")
    return value


def _check_optional_uri(value: Optional[str]) -> Optional[str]:
    # empty string means "use the default endpoint"
    if value == "":
        return value
    return _check_absolute_uri(value)


AbsoluteUri = Annotated[str, Field(min_length=1), AfterValidator(_check_absolute_uri)]
OptionalUri = Annotated[Optional[str], AfterValidator(_check_optional_uri)]
SecretName = Annotated[str, Field(min_length=1)]


# ============================================================
# Models
# ============================================================
class _ConfigBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    key_vault_uri: AbsoluteUri
    subscription_id: Annotated[str, Field(pattern=UUID_PATTERN)]
    api_endpoint: OptionalUri = None
    config_name: Optional[str] = Field(None, min_length=1)


class ClientSecretConfig(_ConfigBase):
    """Service principal whose client secret is stored in Key Vault."""
    api_auth_method: Literal["clientSecretInKv"]
    tenant_id_secret_name: SecretName
    client_id_secret_name: SecretName
    client_secret_name: SecretName


class ClientCertificateConfig(_ConfigBase):
    """Service principal authenticating with a certificate referenced in Key Vault."""
    api_auth_method: Literal["clientCertificateInKv"]
    tenant_id_secret_name: SecretName
    client_id_secret_name: SecretName
    certificate_thumbprint_secret_name: Annotated[str, Field(min_length=1, pattern=THUMBPRINT_PATTERN)]


class ManagedIdentityConfig(_ConfigBase):
    """Managed identity; the user-assigned client id may optionally live in Key Vault."""
    api_auth_method: Literal["managedIdentityInKv"]
    managed_identity_client_id_secret_name: Optional[str] = None


DataSourceConfig = Annotated[
    Union[ClientSecretConfig, ClientCertificateConfig, ManagedIdentityConfig],
    Field(discriminator="api_auth_method"),
]


class DataSourceSettings(BaseModel):
    """The persisted document: an ordered list of data source configurations."""
    configurations: List[DataSourceConfig]


_config_adapter = TypeAdapter(DataSourceConfig)


# ============================================================
# Validation errors
# ============================================================
class FieldError(NamedTuple):
    path: Tuple[Union[str, int], ...]
    message: str

    @property
    def field(self) -> str:
        names = [p for p in self.path if isinstance(p, str) and p != "configurations"]
        return names[-1] if names else ""


class ConfigValidationError(ValueError):
    """Raised when a configuration (or set of them) does not match the schema."""

    def __init__(self, errors: List[FieldError]):
        self.errors = errors
        super().__init__(self._summary())

    def _summary(self) -> str:
        parts = []
        for err in self.errors:
            location = ".".join(str(p) for p in err.path) or "<root>"
            parts.append(f"{location}: {err.message}")
        noun = "error" if len(self.errors) == 1 else "errors"
        return f"{len(self.errors)} validation {noun}: " + "; ".join(parts)

    def fields(self) -> List[str]:
        return [err.field for err in self.errors]


def _message_for(field: str, error: Dict[str, Any]) -> str:
    label = FIELD_LABELS.get(field, field)
    if error["type"] in _REQUIRED_ERROR_TYPES:
        return f"{label} is required."
    if error["type"] in _INVALID_ERROR_TYPES:
        return INVALID_MESSAGES.get(field, f"Invalid {label}.")
    if error["type"] == "string_type":
        return f"{label} must be a string."
    return error["msg"]


def _to_field_errors(exc: ValidationError) -> List[FieldError]:
    errors = []
    for error in exc.errors():
        # discriminated unions add the variant tag to the location; drop it
        path = tuple(p for p in error["loc"] if p not in AUTH_METHODS)
        if error["type"] in ("union_tag_invalid", "union_tag_not_found"):
            path = path + ("apiAuthMethod",)
        field = next((p for p in reversed(path) if isinstance(p, str)), "")
        errors.append(FieldError(path, _message_for(field, error)))
    return errors


# ============================================================
# Public API
# ============================================================
def validate_configuration(value: Any) -> Union[ClientSecretConfig, ClientCertificateConfig, ManagedIdentityConfig]:
    try:
        return _config_adapter.validate_python(value)
    except ValidationError as exc:
        raise ConfigValidationError(_to_field_errors(exc)) from exc


def validate_settings(value: Any) -> DataSourceSettings:
    """
    Validate a full ``{"configurations": [...]}`` document.

    Raises ConfigValidationError carrying one FieldError per invalid field,
    with paths such as ``("configurations", 1, "clientSecretName")``.
    """
    if isinstance(value, DataSourceSettings):
        return value
    try:
        return DataSourceSettings.model_validate(value)
    except ValidationError as exc:
        raise ConfigValidationError(_to_field_errors(exc)) from exc


def to_payload(settings: DataSourceSettings) -> Dict[str, Any]:
    """JSON-ready dict using the wire (camelCase) field names; unset optionals are dropped."""
    return settings.model_dump(mode="json", by_alias=True, exclude_none=True)
