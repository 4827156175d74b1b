"""Background persistence of answer changes.

Answer changes are applied to the in-memory check first and written to the
store afterwards, so an operator is never held up by slow or unavailable
storage. Each write returns a ``Future`` resolving to a ``SyncResult``; a
failed write is logged, remembered as pending and never raised.
"""
import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from uuid import UUID

from fleetcheck.checklist.errors import ReadOnlyViolation
from fleetcheck.checklist.ports import CheckStore
from fleetcheck.checklist.types import PreShiftCheck

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one background write."""
    check_id: UUID
    saved: bool
    error: str | None = None


class AnswerSync:
    """Write check snapshots to a ``CheckStore`` off the caller's thread.

    A single worker keeps writes in the order they were issued.
    """

    def __init__(self, checks: CheckStore, executor: Executor | None = None):
        self.checks = checks
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="answer-sync"
        )
        self._lock = threading.Lock()
        self._pending: set[UUID] = set()
        self._inflight: dict[UUID, set[Future]] = {}

    def persist(self, snapshot: PreShiftCheck) -> Future:
        """Queue a write of ``snapshot`` and return its future."""
        future = self._executor.submit(self._write, snapshot)
        with self._lock:
            if not future.done():
                self._inflight.setdefault(snapshot.id, set()).add(future)
        future.add_done_callback(lambda f: self._forget(snapshot.id, f))
        return future

    def _forget(self, check_id: UUID, future: Future) -> None:
        with self._lock:
            inflight = self._inflight.get(check_id)
            if inflight is not None:
                inflight.discard(future)
                if not inflight:
                    del self._inflight[check_id]

    def _write(self, snapshot: PreShiftCheck) -> SyncResult:
        try:
            self.checks.update(snapshot)
        except ReadOnlyViolation as e:
            # The check was finalized with its full state; nothing left to sync.
            self.mark_synced(snapshot.id)
            logger.info(f"Skipped answer write for finalized check {snapshot.id}")
            return SyncResult(snapshot.id, saved=False, error=str(e))
        except Exception as e:
            with self._lock:
                self._pending.add(snapshot.id)
            logger.warning(f"Answer for check {snapshot.id} saved locally, sync pending: {e}")
            return SyncResult(snapshot.id, saved=False, error=str(e))

        self.mark_synced(snapshot.id)
        return SyncResult(snapshot.id, saved=True)

    def mark_synced(self, check_id: UUID) -> None:
        with self._lock:
            self._pending.discard(check_id)

    def is_pending(self, check_id: UUID) -> bool:
        with self._lock:
            return check_id in self._pending

    def pending_ids(self) -> list[UUID]:
        with self._lock:
            return list(self._pending)

    def wait_for(self, check_id: UUID, timeout: float | None = None) -> None:
        """Block until every queued write for the check has run."""
        with self._lock:
            futures = set(self._inflight.get(check_id, ()))
        if futures:
            wait(futures, timeout=timeout)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
