"""
Execution ledger backends.
"""

from .memory import MemoryExecutionLedger
from .sql import SQLExecutionLedger

__all__ = ["MemoryExecutionLedger", "SQLExecutionLedger"]
