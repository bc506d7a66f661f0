"""
Monitoring Infrastructure
"""

from .metrics import MetricsAggregator, sample_process_memory

__all__ = ["MetricsAggregator", "sample_process_memory"]
