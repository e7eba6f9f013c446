"""Plugin discovery through the three entry point groups of the package."""

from importlib.metadata import EntryPoint, entry_points
from typing import Any

from cypress_xporter.manifest import Manifest

CATALOGS_GROUP = "cypress_xporter.catalogs"
ISSUE_TRACKERS_GROUP = "cypress_xporter.issue_trackers"
DASHBOARDS_GROUP = "cypress_xporter.dashboards"


class PluginNotFoundError(Exception):
    """Raised when a key names no usable plugin of its group."""


def plugin_entries(group: str) -> dict[str, EntryPoint]:
    """Installed plugins of ``group`` by key, without importing any of them."""
    return {entry.name: entry for entry in entry_points(group=group)}


def load_manifest(group: str, key: str) -> Manifest[Any, Any]:
    """Import the plugin registered as ``key`` and return its manifest.

    Only the selected plugin is imported. A key that is not installed, or
    whose entry point does not resolve to a Manifest, raises
    PluginNotFoundError naming the keys of the group.
    """
    entries = plugin_entries(group)
    entry = entries.get(key)
    if entry is None:
        raise PluginNotFoundError(
            f"Plugin '{key}' not found in {group}. "
            f"Available plugins: {sorted(entries)}"
        )

    manifest = entry.load()
    if not isinstance(manifest, Manifest):
        raise PluginNotFoundError(f"Plugin '{key}' of {group} is not a Manifest")
    return manifest
