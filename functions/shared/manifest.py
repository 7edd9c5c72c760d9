"""
Workspace Manifest
==================

Maps the logical sheet/column names used in code to the immutable IDs and
current physical names of the quality workspace.

- IDs are primary: sheets and columns can be renamed in Smartsheet without
  breaking the functions
- Names are a fallback for sheets the manifest does not know yet
- The manifest is generated by ``fetch_manifest.py``; regenerate instead of
  editing IDs by hand

Manifest Structure
------------------
{
    "_meta": {"version": "1.0.0", "generated_at": "..."},
    "workspace": {"id": 123456, "name": "Quality Management"},
    "folders": {"01_NON_CONFORMANCE": {"id": 111, "name": "01. Non-Conformance"}},
    "sheets": {
        "RNC_LOG": {
            "id": 222,
            "name": "01 RNC Log",
            "folder": "01_NON_CONFORMANCE",
            "columns": {
                "RNC_NUMBER": {"id": 333, "name": "RNC Number", "type": "TEXT_NUMBER"},
                ...
            }
        }
    }
}

Usage
-----
>>> manifest = WorkspaceManifest.load()
>>> manifest.get_sheet_id("RNC_LOG")
222
>>> manifest.get_column_name("RNC_LOG", "RNC_NUMBER")
'RNC Number'
"""

import os
import json
import logging
from typing import Dict, Optional, Any
from pathlib import Path

logger = logging.getLogger(__name__)


class ManifestError(Exception):
    """Raised when manifest operations fail."""
    pass


class ManifestNotFoundError(ManifestError):
    """Raised when manifest file doesn't exist."""
    pass


class WorkspaceManifest:
    """Read access to a generated workspace manifest."""

    # Checked in order, relative to this package and then to the cwd
    DEFAULT_LOCATIONS = [
        "workspace_manifest.json",
        "../workspace_manifest.json",
        "functions/workspace_manifest.json",
    ]

    ENV_MANIFEST_PATH = "SMARTSHEET_MANIFEST_PATH"

    def __init__(self, manifest_path: Optional[str] = None, data: Optional[Dict[str, Any]] = None):
        self._manifest_path = manifest_path
        self._data: Optional[Dict[str, Any]] = data
        self._loaded = data is not None

    @classmethod
    def load(cls, path: Optional[str] = None) -> "WorkspaceManifest":
        """
        Load manifest from file.

        Raises:
            ManifestNotFoundError: If no manifest file can be found
            ManifestError: If the file is not valid JSON
        """
        instance = cls(path)
        instance._load()
        return instance

    @classmethod
    def load_or_empty(cls, path: Optional[str] = None) -> "WorkspaceManifest":
        """Load manifest, or fall back to an empty one (name lookup mode)."""
        try:
            return cls.load(path)
        except ManifestNotFoundError:
            logger.warning("Manifest not found, using empty manifest (name fallback mode)")
            return cls(path, data=cls._empty_manifest())

    @staticmethod
    def _empty_manifest() -> Dict[str, Any]:
        return {
            "_meta": {"version": "1.0.0", "generated_at": None, "mode": "fallback"},
            "workspace": {"id": None, "name": None},
            "folders": {},
            "sheets": {},
        }

    def _find_manifest_path(self) -> Optional[str]:
        env_path = os.environ.get(self.ENV_MANIFEST_PATH)
        if env_path and os.path.exists(env_path):
            return env_path

        this_dir = Path(__file__).parent
        for location in self.DEFAULT_LOCATIONS:
            check_path = this_dir / location
            if check_path.exists():
                return str(check_path)

        for location in self.DEFAULT_LOCATIONS:
            if os.path.exists(location):
                return location

        return None

    def _load(self):
        path = self._manifest_path or self._find_manifest_path()

        if not path or not os.path.exists(path):
            raise ManifestNotFoundError(
                f"Workspace manifest not found. Searched locations: {self.DEFAULT_LOCATIONS}. "
                f"Run 'python fetch_manifest.py' to generate one."
            )

        try:
            with open(path, "r", encoding="utf-8") as f:
                self._data = json.load(f)
        except json.JSONDecodeError as e:
            raise ManifestError(f"Invalid JSON in manifest file: {e}")

        self._manifest_path = path
        self._loaded = True
        logger.info(f"Loaded workspace manifest from: {path}")

    def _sheet(self, logical_name: str) -> Dict[str, Any]:
        sheets = self._data.get("sheets", {}) if self._data else {}
        return sheets.get(logical_name) or {}

    @property
    def workspace_id(self) -> Optional[int]:
        return self._data.get("workspace", {}).get("id") if self._data else None

    def get_sheet_id(self, logical_name: str) -> Optional[int]:
        """Sheet ID by logical name (e.g. "RNC_LOG"), None if not in manifest."""
        return self._sheet(logical_name).get("id")

    def get_sheet_name(self, logical_name: str) -> Optional[str]:
        """Physical sheet name by logical name."""
        return self._sheet(logical_name).get("name")

    def get_column_id(self, sheet_logical_name: str, column_logical_name: str) -> Optional[int]:
        column_info = self._sheet(sheet_logical_name).get("columns", {}).get(column_logical_name)
        return column_info.get("id") if column_info else None

    def get_column_name(self, sheet_logical_name: str, column_logical_name: str) -> Optional[str]:
        """Physical column name by logical names."""
        column_info = self._sheet(sheet_logical_name).get("columns", {}).get(column_logical_name)
        return column_info.get("name") if column_info else None

    def is_loaded(self) -> bool:
        return self._loaded


# Singleton for easy access
_manifest: Optional[WorkspaceManifest] = None


def get_manifest(force_reload: bool = False) -> WorkspaceManifest:
    """
    Get the singleton workspace manifest.

    Uses load_or_empty to support fallback mode when manifest doesn't exist.
    """
    global _manifest
    if _manifest is None or force_reload:
        _manifest = WorkspaceManifest.load_or_empty()
    return _manifest


def reset_manifest():
    """Reset the singleton manifest (useful for testing)."""
    global _manifest
    _manifest = None
