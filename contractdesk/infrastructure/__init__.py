"""
Infrastructure package for ContractDesk.

Centralizes I/O concerns: Postgres connectivity (factories, pooling), the
contract repository, and the document storage client. Keep this layer
focused on I/O and resource management, decoupled from sampling and
analysis logic.
"""

from contractdesk.infrastructure.db_factory import PoolManager, build_dsn, connect
from contractdesk.infrastructure.repository import ContractRepository, build_filter_query
from contractdesk.infrastructure.storage import StorageClient

__all__ = [
    "ContractRepository",
    "PoolManager",
    "StorageClient",
    "build_dsn",
    "build_filter_query",
    "connect",
]
