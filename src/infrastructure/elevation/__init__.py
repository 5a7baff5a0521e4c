"""Infrastructure adapters for elevation lookups.

Exported for simplified imports.
"""

from .http_adapter import HttpElevationLookup

__all__ = ["HttpElevationLookup"]
