# carrier_scout/__init__.py
"""
CarrierScout package initializer.
Defines package version and exposes CLI.
"""
__version__ = "0.1.0"

from carrier_scout.cli import cli  # noqa: E402

__all__ = ["__version__", "cli"]
