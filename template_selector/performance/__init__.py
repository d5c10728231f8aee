"""
Performance

Concurrent batch selection with an externally enforced latency budget.

Usage:
    from template_selector.performance import SelectionWorkerPool

    with SelectionWorkerPool(registry, max_workers=8) as pool:
        report = pool.run_batch(contexts)
"""

from .worker_pool import (
    BatchStatus,
    BatchItem,
    BatchReport,
    SelectionWorkerPool,
)

__all__ = [
    'BatchStatus',
    'BatchItem',
    'BatchReport',
    'SelectionWorkerPool',
]
