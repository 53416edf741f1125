"""
Backend configuration parsed from the harness property bag.

Keys are accepted with the ``rethinkdb.`` prefix used by the harness
properties (``rethinkdb.host``) or bare (``host``). Missing keys fall back
to ``RETHINKDB_<KEY>`` environment variables, then to defaults.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from dotenv import load_dotenv


PROPERTY_PREFIX = 'rethinkdb.'
ENV_PREFIX = 'RETHINKDB_'

DEFAULT_HOST = 'localhost'
DEFAULT_PORT = 28015
DEFAULT_DURABILITY = 'hard'
DEFAULT_TABLE = 'usertable'
DEFAULT_DATABASE = 'ycsb'
DEFAULT_TIMEOUT = 20

DURABILITY_MODES = ('hard', 'soft')
READ_CONSISTENCY_MODES = ('single', 'majority', 'outdated')


def _lookup(properties: Mapping[str, Any], name: str, use_env: bool = True) -> Optional[str]:
    for key in (PROPERTY_PREFIX + name, name):
        value = properties.get(key)
        if value is not None and str(value).strip() != '':
            return str(value).strip()
    if not use_env:
        return None
    value = os.getenv(ENV_PREFIX + name.upper())
    if value is not None and value.strip() != '':
        return value.strip()
    return None


def parse_hosts(raw: str) -> Tuple[str, ...]:
    """Split a comma-separated host list, dropping blank entries."""
    hosts = tuple(h.strip() for h in raw.split(',') if h.strip())
    if not hosts:
        raise ValueError(f"No usable host in {raw!r}")
    return hosts


@dataclass(frozen=True)
class RethinkDBConfig:
    """Immutable connection and schema settings for one backend instance"""
    hosts: Tuple[str, ...] = (DEFAULT_HOST,)
    port: int = DEFAULT_PORT
    durability: str = DEFAULT_DURABILITY
    table: str = DEFAULT_TABLE
    database: str = DEFAULT_DATABASE
    read_consistency: Optional[str] = None
    timeout: int = DEFAULT_TIMEOUT

    @classmethod
    def from_properties(cls, properties: Optional[Mapping[str, Any]] = None,
                        use_env: bool = True) -> "RethinkDBConfig":
        """
        Build a config from a property mapping.

        Args:
            properties: Harness properties, prefixed or bare keys
            use_env: Consult RETHINKDB_* environment variables (and .env)

        Raises:
            ValueError: on an invalid port, durability or read consistency
        """
        properties = properties or {}
        if use_env:
            load_dotenv()

        def lookup(name):
            return _lookup(properties, name, use_env)

        hosts = parse_hosts(lookup('host') or DEFAULT_HOST)

        port_raw = lookup('port') or str(DEFAULT_PORT)
        try:
            port = int(port_raw)
        except ValueError:
            raise ValueError(f"Invalid port: {port_raw!r}") from None

        durability = (lookup('durability') or DEFAULT_DURABILITY).lower()
        if durability not in DURABILITY_MODES:
            raise ValueError(
                f"Invalid durability {durability!r}, expected one of {', '.join(DURABILITY_MODES)}"
            )

        read_consistency = lookup('read_consistency')
        if read_consistency is not None:
            read_consistency = read_consistency.lower()
            if read_consistency not in READ_CONSISTENCY_MODES:
                raise ValueError(
                    f"Invalid read_consistency {read_consistency!r}, "
                    f"expected one of {', '.join(READ_CONSISTENCY_MODES)}"
                )

        timeout_raw = lookup('timeout') or str(DEFAULT_TIMEOUT)
        try:
            timeout = int(timeout_raw)
        except ValueError:
            raise ValueError(f"Invalid timeout: {timeout_raw!r}") from None

        return cls(
            hosts=hosts,
            port=port,
            durability=durability,
            table=lookup('table') or DEFAULT_TABLE,
            database=lookup('database') or DEFAULT_DATABASE,
            read_consistency=read_consistency,
            timeout=timeout,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'host': ','.join(self.hosts),
            'port': self.port,
            'durability': self.durability,
            'table': self.table,
            'database': self.database,
            'read_consistency': self.read_consistency,
            'timeout': self.timeout,
        }
