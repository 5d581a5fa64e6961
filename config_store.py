# config_store.py - JSON-file-backed store for Azure data source configurations
import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from config_schema import (
    CONFIG_FILE_NAME,
    ConfigValidationError,
    DataSourceSettings,
    FieldError,
    default_configuration,
    to_payload,
    validate_settings,
)

logger = logging.getLogger(__name__)


@dataclass
class SaveResult:
    """Outcome of a save, shaped for display: ``{success, message}`` plus field errors."""
    success: bool
    message: str
    errors: List[FieldError] = field(default_factory=list)


class ConfigStore:
    """
    Reads and writes the data source settings file.

    The whole configuration set is replaced on every save; there is no locking,
    so the last writer wins.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else Path.cwd() / CONFIG_FILE_NAME

    def load(self) -> List[Dict[str, Any]]:
        """
        Return the persisted configurations as plain dicts.

        Falls back to a single default entry when the file is missing, unreadable,
        invalid, or holds no configurations. Failures are logged, never raised.
        """
        configurations = self._read(logging.ERROR)
        if not configurations:
            return [default_configuration()]
        return configurations

    def saved_configurations(self) -> List[Dict[str, Any]]:
        """Only what is actually on disk and valid; empty instead of the default entry."""
        return self._read(logging.DEBUG) or []

    def _read(self, failure_level: int) -> Optional[List[Dict[str, Any]]]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("Config file %s not found, using default configuration set.", self.path)
            return None
        except OSError as e:
            logger.log(failure_level, "Failed to read data source settings from %s: %s", self.path, e)
            return None
        except UnicodeDecodeError as e:
            logger.log(failure_level, "Data source settings file %s is not valid UTF-8: %s", self.path, e)
            return None

        try:
            settings = validate_settings(json.loads(text))
        except json.JSONDecodeError as e:
            logger.log(failure_level, "Data source settings file %s is not valid JSON: %s", self.path, e)
            return None
        except ConfigValidationError as e:
            logger.log(failure_level, "Data source settings file %s failed validation: %s", self.path, e)
            return None

        return to_payload(settings)["configurations"]

    def save(self, configurations: Union[DataSourceSettings, Dict[str, Any], List[Dict[str, Any]]]) -> SaveResult:
        """Validate the full set, then atomically replace the settings file."""
        if isinstance(configurations, list):
            configurations = {"configurations": configurations}

        try:
            settings = validate_settings(configurations)
        except ConfigValidationError as e:
            logger.warning("Refusing to save invalid data source settings: %s", e)
            return SaveResult(False, f"Failed to save settings: {e}", e.errors)

        data = json.dumps(to_payload(settings), indent=2)
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(data)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error("Failed to save data source settings to %s: %s", self.path, e)
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            return SaveResult(False, f"Failed to save settings: {e}")

        logger.info("Saved %d data source configuration(s) to %s", len(settings.configurations), self.path)
        return SaveResult(True, "Settings saved successfully.")
