"""
Performance metrics collection for benchmark operations.
"""
import time
import json
from typing import Dict, Optional

import numpy as np


class PerformanceMetrics:
    """Collect and summarize latencies for one operation type."""

    def __init__(self, name: str):
        """
        Initialize metrics collector.

        Args:
            name: Operation name (read, scan, ...)
        """
        self.name = name
        self.latencies = []
        self.status_counts = {}
        self.errors = []

    def record(self, latency_ms: float, status: str, error: Optional[str] = None):
        """Record one operation outcome."""
        self.latencies.append(latency_ms)
        self.status_counts[status] = self.status_counts.get(status, 0) + 1
        if error:
            self.errors.append(error)

    def get_summary(self) -> Dict:
        """
        Get summary statistics.

        Returns:
            Dictionary with operation count, status counts and latency percentiles
        """
        if not self.latencies:
            return {
                'name': self.name,
                'num_operations': 0,
                'status_counts': dict(self.status_counts),
                'error': 'No latency data collected',
            }

        latencies_array = np.array(self.latencies)

        return {
            'name': self.name,
            'num_operations': len(self.latencies),
            'status_counts': dict(self.status_counts),
            'num_errors': len(self.errors),
            'latency_ms': {
                'min': float(np.min(latencies_array)),
                'max': float(np.max(latencies_array)),
                'mean': float(np.mean(latencies_array)),
                'p50': float(np.percentile(latencies_array, 50)),
                'p95': float(np.percentile(latencies_array, 95)),
                'p99': float(np.percentile(latencies_array, 99)),
            }
        }

    def print_summary(self):
        """Print formatted summary"""
        summary = self.get_summary()

        print(f"\n[{summary['name'].upper()}]")
        if 'error' in summary:
            print(f"  ❌ {summary['error']}")
            return

        statuses = ', '.join(f"{k}={v}" for k, v in sorted(summary['status_counts'].items()))
        print(f"  Operations: {summary['num_operations']}  ({statuses})")
        latency = summary['latency_ms']
        print(f"  Min:  {latency['min']:8.2f} ms")
        print(f"  Mean: {latency['mean']:8.2f} ms")
        print(f"  P50:  {latency['p50']:8.2f} ms")
        print(f"  P95:  {latency['p95']:8.2f} ms")
        print(f"  P99:  {latency['p99']:8.2f} ms")
        print(f"  Max:  {latency['max']:8.2f} ms")


class MetricsRegistry:
    """One PerformanceMetrics per operation name, created on first use."""

    def __init__(self):
        self.metrics: Dict[str, PerformanceMetrics] = {}

    def get(self, name: str) -> PerformanceMetrics:
        if name not in self.metrics:
            self.metrics[name] = PerformanceMetrics(name)
        return self.metrics[name]

    def record(self, name: str, result):
        """Record an OperationResult under the given operation name."""
        self.get(name).record(result.latency_ms, result.status.value, result.error)

    def summaries(self) -> Dict[str, Dict]:
        return {name: m.get_summary() for name, m in self.metrics.items()}

    def print_summary(self):
        print("\n" + "=" * 70)
        print("OPERATION LATENCIES")
        print("=" * 70)
        for metrics in self.metrics.values():
            metrics.print_summary()
        print("=" * 70 + "\n")

    def save_to_file(self, filepath: str):
        """
        Save summaries and raw latencies to a JSON file.

        Args:
            filepath: Path to save the metrics
        """
        payload = {}
        for name, metrics in self.metrics.items():
            summary = metrics.get_summary()
            summary['raw_latencies'] = metrics.latencies
            summary['errors'] = metrics.errors
            payload[name] = summary

        with open(filepath, 'w') as f:
            json.dump(payload, f, indent=2)

        print(f"💾 Metrics saved to: {filepath}")


class Timer:
    """Context manager for timing operations."""

    def __init__(self):
        self.start_time = None
        self.end_time = None
        self.elapsed_ms = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.end_time = time.perf_counter()
        self.elapsed_ms = (self.end_time - self.start_time) * 1000  # Convert to ms

    def get_elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        return self.elapsed_ms
