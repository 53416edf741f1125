#!/usr/bin/env python3
"""
Pre-Flight Checklist: verify a RethinkDB cluster before benchmarking.

Connects, bootstraps the database and table, then runs every benchmark
operation against a handful of throwaway records and prints latencies.

Usage:
    python scripts/verification/verify_setup.py --host db1,db2 --records 20
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from backends import BackendFactory, BackendType
from core.backend import Backend, BackendError, Status
from utils.metrics import MetricsRegistry, Timer

DEFAULT_SMOKE_CONFIG = {
    'num_records': 10,
    'field_count': 10,
    'key_prefix': 'verify_',
}


def load_file_config():
    """Return (RETHINKDB_CONFIG, SMOKE_CONFIG) from config.py when it exists."""
    try:
        from config import RETHINKDB_CONFIG, SMOKE_CONFIG
    except ImportError:
        print("💡 No config.py found, using RETHINKDB_* environment / defaults "
              "(cp config.template.py config.py to customize)")
        return {}, dict(DEFAULT_SMOKE_CONFIG)
    return dict(RETHINKDB_CONFIG), {**DEFAULT_SMOKE_CONFIG, **SMOKE_CONFIG}


def build_properties(args: argparse.Namespace, base: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay command-line flags on the file config."""
    properties = dict(base)
    overrides = {
        'rethinkdb.host': args.host,
        'rethinkdb.port': args.port,
        'rethinkdb.table': args.table,
        'rethinkdb.durability': args.durability,
        'rethinkdb.read_consistency': args.read_consistency,
    }
    for key, value in overrides.items():
        if value is not None:
            properties[key] = value
    return properties


def check(condition, message_pass, message_fail):
    """Helper to print check results"""
    if condition:
        print(f"✅ {message_pass}")
        return True
    else:
        print(f"❌ {message_fail}")
        return False


def run_smoke(backend: Backend, table: str, num_records: int, field_count: int,
              key_prefix: str, metrics: MetricsRegistry) -> List[str]:
    """
    Exercise insert/read/update/scan/delete on throwaway records.

    Returns:
        Descriptions of every step that did not return the expected status
    """
    failures = []
    keys = [f"{key_prefix}{i:06d}" for i in range(num_records)]
    values = {f"field{i}": f"value{i}" for i in range(field_count)}

    def expect(op, result, expected=Status.OK, key=''):
        metrics.record(op, result)
        if result.status is not expected:
            failures.append(f"{op} {key}: {result.status.value} {result.error or ''}".strip())
            return False
        return True

    for key in keys:
        expect('insert', backend.insert(table, key, values), key=key)

    for key in keys:
        result = backend.read(table, key)
        if expect('read', result, key=key) and result.data != values:
            failures.append(f"read {key}: unexpected fields {sorted(result.data)}")

    updated = {'field0': 'updated'}
    for key in keys:
        expect('update', backend.update(table, key, updated), key=key)
        result = backend.read(table, key, {'field0', 'field1'} if field_count > 1 else {'field0'})
        if expect('read', result, key=key) and result.data.get('field0') != 'updated':
            failures.append(f"read {key}: update not visible")

    result = backend.scan(table, keys[0], num_records, {'field0'})
    if expect('scan', result, key=keys[0]):
        if len(result.data) > num_records:
            failures.append(f"scan: returned {len(result.data)} rows, limit was {num_records}")

    for key in keys:
        expect('delete', backend.delete(table, key), key=key)
        expect('read', backend.read(table, key), expected=Status.NOT_FOUND, key=key)

    return failures


def verify_setup(args: argparse.Namespace) -> bool:
    """Run all pre-flight checks"""
    print("=" * 70)
    print("PRE-FLIGHT CHECKLIST FOR RETHINKDB BENCHMARK")
    print("=" * 70)

    file_config, smoke = load_file_config()
    properties = build_properties(args, file_config)
    num_records = args.records or smoke['num_records']

    if args.print_config:
        print("\n🔧 Effective properties:")
        for key, value in sorted(properties.items()):
            print(f"   {key}: {value}")

    backend = BackendFactory.create(BackendType.RETHINKDB, properties)

    print("\n1️⃣  Connecting and bootstrapping schema...")
    try:
        with Timer() as timer:
            backend.init()
    except BackendError as e:
        check(False, "", f"init failed: {e}")
        return False
    info = backend.get_backend_info()
    settings = info['settings']
    check(True, f"Connected to {info['host']}:{settings['port']}, "
                f"{settings['database']}.{settings['table']} ready ({timer.get_elapsed_ms():.1f} ms)", "")

    print(f"\n2️⃣  Running CRUD smoke sequence on {num_records} records...")
    metrics = MetricsRegistry()
    table = settings['table']
    try:
        failures = run_smoke(backend, table, num_records, smoke['field_count'],
                             smoke['key_prefix'], metrics)
    finally:
        print("\n3️⃣  Closing connection...")
        backend.cleanup()

    for failure in failures:
        print(f"   ❌ {failure}")
    all_checks_passed = check(not failures, "All operations returned the expected status",
                              f"{len(failures)} operation(s) failed")

    metrics.print_summary()
    if args.save_metrics:
        metrics.save_to_file(args.save_metrics)

    return all_checks_passed


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Verify RethinkDB setup before benchmarking")
    parser.add_argument('--host', help="Comma-separated RethinkDB hosts")
    parser.add_argument('--port', type=int, help="Client driver port (default: 28015)")
    parser.add_argument('--table', help="Target table (default: usertable)")
    parser.add_argument('--durability', choices=['hard', 'soft'], help="Write durability")
    parser.add_argument('--read-consistency', choices=['single', 'majority', 'outdated'],
                        help="Per-read consistency override")
    parser.add_argument('--records', type=int, help="Number of smoke records")
    parser.add_argument('--print-config', action='store_true', help="Show the effective properties")
    parser.add_argument('--save-metrics', help="Write latency summary JSON to this path")
    parser.add_argument('--verbose', action='store_true', help="Debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logging.getLogger("rethinkdb").setLevel(logging.WARNING)

    if verify_setup(args):
        print("✅ Ready to benchmark")
        return 0
    print("❌ Fix the issues above before benchmarking")
    return 1


if __name__ == "__main__":
    sys.exit(main())
