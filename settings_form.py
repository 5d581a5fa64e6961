# settings_form.py - Dynamic multi-entry data source form (tagged by apiAuthMethod)
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config_schema import (
    AUTH_METHODS,
    COMMON_FIELDS,
    DEFAULT_AUTH_METHOD,
    VARIANT_FIELDS,
    ConfigValidationError,
    FieldError,
    default_configuration,
    validate_settings,
)
from config_store import ConfigStore, SaveResult

logger = logging.getLogger(__name__)

# Optional fields submitted only when filled in
BLANK_IS_ABSENT = {"configName", "managedIdentityClientIdSecretName"}


@dataclass
class FormEntry:
    """
    One configuration being edited.

    Only the fields of the current auth method live in ``variant``; fields of
    other methods are never held, so they cannot leak into a submission.
    """
    auth_method: str
    common: Dict[str, str]
    variant: Dict[str, str]
    uid: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    revision: int = 0

    @classmethod
    def from_configuration(cls, data: Dict[str, Any]) -> "FormEntry":
        method = data.get("apiAuthMethod")
        if method not in AUTH_METHODS:
            method = DEFAULT_AUTH_METHOD
        common = {name: _as_text(data.get(name)) for name in COMMON_FIELDS}
        variant = {name: _as_text(data.get(name)) for name in VARIANT_FIELDS[method]}
        return cls(method, common, variant)

    @classmethod
    def default(cls) -> "FormEntry":
        return cls.from_configuration(default_configuration())

    @property
    def fields(self) -> List[str]:
        return list(COMMON_FIELDS) + list(VARIANT_FIELDS[self.auth_method])

    @property
    def widget_key(self) -> str:
        # changes whenever the visible field set changes so widgets re-seed from the entry
        return f"cfg-{self.uid}-{self.revision}"

    def value(self, name: str) -> str:
        if name == "apiAuthMethod":
            return self.auth_method
        if name in self.common:
            return self.common[name]
        return self.variant.get(name, "")

    def set_value(self, name: str, value: Optional[str]) -> None:
        if name in self.common:
            self.common[name] = _as_text(value)
        elif name in self.variant:
            self.variant[name] = _as_text(value)
        else:
            raise KeyError(f"{name!r} is not a field of {self.auth_method}")

    def switch(self, method: str) -> bool:
        if method not in AUTH_METHODS:
            raise ValueError(f"Unknown API authentication method: {method!r}")
        if method == self.auth_method:
            return False
        self.auth_method = method
        self.variant = {name: "" for name in VARIANT_FIELDS[method]}
        self.revision += 1
        return True

    def to_configuration(self) -> Dict[str, str]:
        data = {"apiAuthMethod": self.auth_method}
        for name in self.fields:
            value = self.value(name)
            if name in BLANK_IS_ABSENT and not value.strip():
                continue
            data[name] = value
        return data


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


class SettingsForm:
    """
    In-memory state of the data source settings page.

    The live form always keeps at least one entry, even though the stored
    document may legally hold none.
    """

    def __init__(self, entries: Optional[List[FormEntry]] = None):
        self.entries = list(entries) if entries else [FormEntry.default()]
        self.errors: Dict[int, Dict[str, str]] = {}
        self.submitted = False

    @classmethod
    def from_configurations(cls, configurations: List[Dict[str, Any]]) -> "SettingsForm":
        return cls([FormEntry.from_configuration(c) for c in configurations])

    def __len__(self) -> int:
        return len(self.entries)

    # ------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------
    def add_entry(self) -> FormEntry:
        entry = FormEntry.default()
        self.entries.append(entry)
        self._revalidate()
        return entry

    @property
    def can_remove(self) -> bool:
        return len(self.entries) > 1

    def remove_entry(self, index: int) -> bool:
        self.entries[index]  # IndexError for a bad index, even on the last entry
        if not self.can_remove:
            return False
        del self.entries[index]
        self.errors = {}
        self._revalidate()
        return True

    def switch_variant(self, index: int, method: str) -> bool:
        changed = self.entries[index].switch(method)
        if changed:
            self.errors.pop(index, None)
            self._revalidate()
        return changed

    def set_value(self, index: int, name: str, value: Optional[str]) -> None:
        entry = self.entries[index]
        if entry.value(name) == _as_text(value):
            return
        entry.set_value(name, value)
        self._revalidate()

    # ------------------------------------------------------------
    # Validation / submission
    # ------------------------------------------------------------
    def to_payload(self) -> Dict[str, Any]:
        return {"configurations": [entry.to_configuration() for entry in self.entries]}

    def validate(self) -> Dict[int, Dict[str, str]]:
        """Validate every entry; returns and stores ``{index: {field: message}}``."""
        errors: Dict[int, Dict[str, str]] = {}
        try:
            validate_settings(self.to_payload())
        except ConfigValidationError as e:
            for err in e.errors:
                if len(err.path) < 3 or not isinstance(err.path[1], int):
                    continue
                errors.setdefault(err.path[1], {}).setdefault(err.field, err.message)
        self.errors = errors
        return errors

    def _revalidate(self) -> None:
        # after the first submit, errors track edits the way inline validation does
        if self.submitted:
            self.validate()

    def field_error(self, index: int, name: str) -> Optional[str]:
        return self.errors.get(index, {}).get(name)

    def submit(self, store: ConfigStore) -> SaveResult:
        self.submitted = True
        errors = self.validate()
        if errors:
            count = sum(len(v) for v in errors.values())
            logger.info("Settings submission rejected: %d invalid field(s)", count)
            field_errors = [
                FieldError(("configurations", index, name), message)
                for index, messages in sorted(errors.items())
                for name, message in messages.items()
            ]
            return SaveResult(False, "Please correct the highlighted fields before saving.", field_errors)
        result = store.save(self.to_payload())
        if result.success:
            logger.info("Settings submitted: %d configuration(s)", len(self.entries))
        return result
