"""
Fee router integration layer
"""

from .memory_ledger import InMemoryLedger
from .router_config import RouterSettings, load_config_file
from .router_engine import FeeRouter, PageResult

__all__ = [
    "InMemoryLedger",
    "RouterSettings",
    "load_config_file",
    "FeeRouter",
    "PageResult",
]
