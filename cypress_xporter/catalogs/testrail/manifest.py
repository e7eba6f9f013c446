"""TestRail catalog manifest."""

from cypress_xporter.catalogs.testrail.catalog import TestRailCatalog
from cypress_xporter.catalogs.testrail.config import TestRailConfig
from cypress_xporter.manifest import Manifest

testrail_manifest = Manifest(
    config_cls=TestRailConfig,
    factory=TestRailCatalog.from_config,
)
