"""
Abstract backend interface for YCSB-style benchmarking.

A backend maps the five benchmark operations (read, scan, update, insert,
delete) plus init/cleanup onto a remote store. One backend instance is
owned by exactly one benchmark worker thread.

Supports: RethinkDB, and extensible to others.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Any, Optional, Set
from dataclasses import dataclass
from enum import Enum


class BackendType(Enum):
    """Supported database backends"""
    RETHINKDB = "rethinkdb"


class Status(Enum):
    """Outcome of a single benchmark operation"""
    OK = "OK"
    NOT_FOUND = "NOT_FOUND"
    ERROR = "ERROR"


class BackendError(RuntimeError):
    """Base class for backend failures."""


class BackendConnectionError(BackendError):
    """Endpoint unreachable, handshake failure or schema bootstrap failure."""


class OperationError(BackendError):
    """Transport or query fault raised during a CRUD call."""


@dataclass
class OperationResult:
    """Standardized operation result across all backends"""
    status: Status
    latency_ms: float = 0.0
    data: Optional[Any] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is Status.OK

    @classmethod
    def not_found(cls, latency_ms: float = 0.0) -> "OperationResult":
        return cls(status=Status.NOT_FOUND, latency_ms=latency_ms)

    @classmethod
    def failed(cls, error: str, latency_ms: float = 0.0) -> "OperationResult":
        return cls(status=Status.ERROR, latency_ms=latency_ms, error=error)


class Backend(ABC):
    """
    Abstract base class for database backends.

    All backends must implement this interface to be benchmarked.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = dict(config or {})
        self.backend_type = None  # Set by subclass
        self.connection = None

    @abstractmethod
    def init(self) -> None:
        """
        Connect to the store and make sure the target schema exists.

        Called once per instance, before any CRUD call.

        Raises:
            BackendConnectionError: endpoint unreachable or bootstrap failed
        """
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """
        Release the connection.

        Raises:
            BackendConnectionError: if the connection cannot be closed
        """
        pass

    @abstractmethod
    def read(self, table: str, key: str, fields: Optional[Set[str]] = None) -> OperationResult:
        """
        Read a single record.

        Args:
            table: Name of the table
            key: Record key
            fields: Fields to return, or None for all of them

        Returns:
            OperationResult whose data is a dict of field/value pairs
        """
        pass

    @abstractmethod
    def scan(self, table: str, start_key: str, count: int,
             fields: Optional[Set[str]] = None) -> OperationResult:
        """
        Range scan in ascending key order.

        Args:
            table: Name of the table
            start_key: First key of the range (inclusive)
            count: Maximum number of records to return
            fields: Fields to return, or None for all of them

        Returns:
            OperationResult whose data is a list of field/value dicts
        """
        pass

    @abstractmethod
    def update(self, table: str, key: str, values: Dict[str, str]) -> OperationResult:
        """
        Overwrite the given fields of an existing record.

        Fields not mentioned in values are left untouched.
        """
        pass

    @abstractmethod
    def insert(self, table: str, key: str, values: Dict[str, str]) -> OperationResult:
        """Insert a new record; an existing key is a failure."""
        pass

    @abstractmethod
    def delete(self, table: str, key: str) -> OperationResult:
        """Delete a record by key."""
        pass

    def get_backend_info(self) -> Dict[str, Any]:
        """
        Get information about the backend.

        Returns:
            Dict with backend metadata
        """
        return {
            'type': self.backend_type.value if self.backend_type else 'unknown',
            'name': self.__class__.__name__,
            'config': self._get_safe_config(),
            'connected': self.connection is not None,
        }

    def _get_safe_config(self) -> Dict[str, Any]:
        """
        Get config with sensitive values masked.

        Returns:
            Config dict with passwords/tokens masked
        """
        safe_config = self.config.copy()
        sensitive_keys = ['password', 'token', 'secret', 'auth_key']

        for key in safe_config:
            if any(sensitive in key.lower() for sensitive in sensitive_keys):
                if isinstance(safe_config[key], str) and len(safe_config[key]) > 0:
                    safe_config[key] = '***' + safe_config[key][-4:]

        return safe_config


class BackendFactory:
    """
    Factory for creating backend instances.
    """

    _backends = {}

    @classmethod
    def register(cls, backend_type: BackendType, backend_class):
        """Register a backend implementation"""
        cls._backends[backend_type] = backend_class

    @classmethod
    def create(cls, backend_type: BackendType, config: Dict[str, Any]) -> Backend:
        """
        Create a backend instance.

        Args:
            backend_type: Type of backend to create
            config: Configuration dict for the backend

        Returns:
            Backend instance

        Raises:
            ValueError: If backend type is not registered
        """
        if backend_type not in cls._backends:
            available = ', '.join([bt.value for bt in cls._backends.keys()])
            raise ValueError(
                f"Backend '{backend_type.value}' not registered. "
                f"Available backends: {available}"
            )

        return cls._backends[backend_type](config)

    @classmethod
    def list_backends(cls) -> List[BackendType]:
        """List all registered backends"""
        return list(cls._backends.keys())

    @classmethod
    def is_registered(cls, backend_type: BackendType) -> bool:
        """Check if a backend is registered"""
        return backend_type in cls._backends
