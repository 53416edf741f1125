"""
Round-robin host selection shared by every backend instance in a process.
"""

import threading
from typing import Dict, Iterable, Tuple


class HostPool:
    """Hands out hosts in round-robin order; safe for concurrent callers."""

    _pools: Dict[Tuple[str, ...], "HostPool"] = {}
    _pools_lock = threading.Lock()

    def __init__(self, hosts: Iterable[str]):
        self.hosts = tuple(hosts)
        if not self.hosts:
            raise ValueError("HostPool needs at least one host")
        self._lock = threading.Lock()
        self._counter = 0

    def next_host(self) -> str:
        """Return hosts[i % len(hosts)] for the i-th call, starting at 0."""
        with self._lock:
            index = self._counter
            self._counter += 1
        return self.hosts[index % len(self.hosts)]

    @classmethod
    def shared(cls, hosts: Iterable[str]) -> "HostPool":
        """Get the process-wide pool for this host list."""
        hosts = tuple(hosts)
        with cls._pools_lock:
            pool = cls._pools.get(hosts)
            if pool is None:
                pool = cls(hosts)
                cls._pools[hosts] = pool
            return pool

    @classmethod
    def reset_shared(cls):
        """Forget all process-wide pools (used by tests)."""
        with cls._pools_lock:
            cls._pools.clear()
