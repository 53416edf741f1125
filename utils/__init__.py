"""Benchmark timing and latency summaries."""
