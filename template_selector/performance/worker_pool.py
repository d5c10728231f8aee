"""
Selection Worker Pool

Runs template selection for a batch of documents on a thread pool.

The engine itself has no timeout: this pool enforces the policy's
selection budget from the outside by discarding results that took longer
than the budget (their traces are kept for audit).
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto
from typing import Optional, List, Dict, Any, Sequence, Callable

from loguru import logger

from ..config import DEFAULT_CONFIG, SelectorConfig
from ..document import DocumentContext
from ..selection.selector import SelectionResult, TemplateSelector
from ..templates.registry import TemplateRegistry
from ..templates.template import TemplateCandidate
from ..trace.trace_builder import SelectionTrace


class BatchStatus(Enum):
    """Status of one document in a batch."""

    COMPLETED = auto()
    LATE = auto()       # Finished over budget, result discarded
    FAILED = auto()


@dataclass(frozen=True)
class BatchItem:
    """
    Outcome of one document in a batch.
    """
    document_id: str
    status: BatchStatus
    result: Optional[SelectionResult] = None
    trace: Optional[SelectionTrace] = None
    error: Optional[str] = None
    duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == BatchStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'document_id': self.document_id,
            'status': self.status.name,
            'selected': self.result.selected if self.result else None,
            'template_slug': self.result.template_slug if self.result else None,
            'trace_id': self.trace.trace_id if self.trace else None,
            'error': self.error,
            'duration_ms': round(self.duration_ms, 3),
        }


@dataclass
class BatchReport:
    """Items of a batch, in input order."""
    items: List[BatchItem]
    started_at: datetime
    finished_at: datetime

    def count(self, status: BatchStatus) -> int:
        return sum(1 for i in self.items if i.status == status)

    @property
    def duration(self) -> float:
        """Wall-clock duration in seconds."""
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': len(self.items),
            'completed': self.count(BatchStatus.COMPLETED),
            'late': self.count(BatchStatus.LATE),
            'failed': self.count(BatchStatus.FAILED),
            'duration': round(self.duration, 3),
            'items': [i.to_dict() for i in self.items],
        }


class SelectionWorkerPool:
    """
    Thread pool for batch template selection.

    Each batch selects against one snapshot of the active templates, taken
    once before any work starts, so every document in the batch sees the
    same template set.

    Usage:
        pool = SelectionWorkerPool(registry, config, max_workers=8)

        report = pool.run_batch(contexts)
        for item in report.items:
            print(item.document_id, item.status.name)

        pool.shutdown()
    """

    def __init__(
        self,
        registry: TemplateRegistry,
        config: Optional[SelectorConfig] = None,
        max_workers: int = 4,
        on_item_complete: Optional[Callable[[BatchItem], None]] = None,
    ):
        """
        Initialize worker pool.

        Args:
            registry: Source of active templates
            config: Selector configuration (its policy supplies the budget)
            max_workers: Number of worker threads
            on_item_complete: Called with each finished BatchItem
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")

        self.registry = registry
        self.config = config or DEFAULT_CONFIG
        self.max_workers = max_workers
        self.on_item_complete = on_item_complete
        self._selector = TemplateSelector(registry, self.config)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix='selector',
        )
        self._lock = threading.Lock()
        self._shutdown = False

        logger.info(f"Selection worker pool initialized with {max_workers} threads")

    def run_batch(self, contexts: Sequence[DocumentContext]) -> BatchReport:
        """
        Select templates for a batch of documents.

        Args:
            contexts: Documents to select for

        Returns:
            BatchReport with one item per input, in input order
        """
        with self._lock:
            if self._shutdown:
                raise RuntimeError("Pool is shut down")

        started_at = datetime.now()
        snapshot = tuple(self.registry.list_active_templates())
        logger.debug(f"Batch of {len(contexts)} documents against {len(snapshot)} templates")

        futures = [
            self._executor.submit(self._select_one, index, context, snapshot)
            for index, context in enumerate(contexts)
        ]
        items = [f.result() for f in futures]

        report = BatchReport(items=items, started_at=started_at, finished_at=datetime.now())
        logger.info(
            f"Batch complete: {report.count(BatchStatus.COMPLETED)} completed, "
            f"{report.count(BatchStatus.LATE)} late, {report.count(BatchStatus.FAILED)} failed"
        )
        return report

    def _select_one(
        self,
        index: int,
        context: DocumentContext,
        snapshot: Sequence[TemplateCandidate],
    ) -> BatchItem:
        document_id = context.document_id or f"doc_{index}"
        budget = self.config.policy.selection_budget_ms

        try:
            result = self._selector.select(context, snapshot)
        except Exception as e:
            logger.exception(f"Selection failed for {document_id}: {e}")
            item = BatchItem(document_id=document_id, status=BatchStatus.FAILED, error=str(e))
        else:
            if result.duration_ms > budget:
                logger.warning(
                    f"Selection for {document_id} took {result.duration_ms:.1f}ms "
                    f"(budget {budget}ms), result discarded"
                )
                item = BatchItem(
                    document_id=document_id,
                    status=BatchStatus.LATE,
                    trace=result.trace,
                    duration_ms=result.duration_ms,
                )
            else:
                item = BatchItem(
                    document_id=document_id,
                    status=BatchStatus.COMPLETED,
                    result=result,
                    trace=result.trace,
                    duration_ms=result.duration_ms,
                )

        if self.on_item_complete:
            try:
                self.on_item_complete(item)
            except Exception as e:
                logger.error(f"Error in completion callback: {e}")

        return item

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the pool."""
        with self._lock:
            self._shutdown = True
        self._executor.shutdown(wait=wait)
        logger.info("Selection worker pool shut down")

    def __enter__(self) -> 'SelectionWorkerPool':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
