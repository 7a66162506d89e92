# site_harvest/__init__.py
"""
SiteHarvest package initializer.
Defines package version and exposes the CLI group as ``main_cli``.
"""
__version__ = "0.1.0"

# `site_harvest.cli` stays the module so it can be patched in tests
from site_harvest.cli import cli as main_cli
