"""AgriTrace: agricultural supply-chain traceability ledger.

Records every custody event of a product (farmer → distributor → retailer →
consumer) as an immutable, timestamped, attributable activity and exposes the
full audit trail on demand.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("agritrace")
except PackageNotFoundError:
    __version__ = "0.1.0"
