"""TestRail catalog module."""

from cypress_xporter.catalogs.testrail.catalog import TestRailCatalog
from cypress_xporter.catalogs.testrail.config import TestRailConfig
from cypress_xporter.catalogs.testrail.manifest import testrail_manifest

__all__ = ["TestRailCatalog", "TestRailConfig", "testrail_manifest"]
