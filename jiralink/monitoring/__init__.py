"""
Monitoring and metrics tracking for JiraLink.
"""

from .metrics import PerformanceMetrics, get_metrics

__all__ = [
    'PerformanceMetrics',
    'get_metrics',
]
