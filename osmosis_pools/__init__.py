"""
Top-level public API surface. Stable facades only.
Harvest Osmosis pools into a canonical JSON corpus and query it.
Does not import cli.
"""

from __future__ import annotations

from . import core, providers, store
from ._version import __version__

# Do not add exports without updating __all__.
__all__ = [
    "__version__",
    "core",
    "providers",
    "store",
]
