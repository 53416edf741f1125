"""
Database backend implementations for benchmarking.

Available backends:
- RethinkDB
"""

from core.backend import BackendType, Backend, BackendFactory

# Import backend implementations
from .rethink import RethinkDBBackend, RethinkDBClient

# Register backends with factory
BackendFactory.register(BackendType.RETHINKDB, RethinkDBBackend)

__all__ = [
    'Backend',
    'BackendType',
    'BackendFactory',
    'RethinkDBBackend',
    'RethinkDBClient',
]
