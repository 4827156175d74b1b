"""In-progress check state: start or resume a check and record answers."""
import logging
import random
import threading
from collections.abc import Callable
from concurrent.futures import Future
from datetime import UTC, datetime
from uuid import UUID

from fleetcheck.checklist.errors import (
    CheckNotFound,
    ItemNotFound,
    NoChecklistAvailable,
    ReadOnlyViolation,
)
from fleetcheck.checklist.locks import KeyedLocks
from fleetcheck.checklist.ports import CheckStore, QuestionBank, RotationRulesSource
from fleetcheck.checklist.rotation import select_questions
from fleetcheck.checklist.sync import AnswerSync
from fleetcheck.checklist.types import Answer, CheckStatus, PreShiftCheck

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


class ChecklistSession:
    """Owns the in-memory state of checks being answered.

    Answer changes are applied here first and handed to ``AnswerSync`` for
    persistence, so callers always observe their latest change even while
    the store lags behind. Only one IN_PROGRESS check exists per vehicle:
    starting a check for a vehicle that already has one resumes it.
    """

    def __init__(
        self,
        question_bank: QuestionBank,
        rules: RotationRulesSource,
        checks: CheckStore,
        answer_sync: AnswerSync,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utc_now,
        locks: KeyedLocks | None = None,
    ):
        self.question_bank = question_bank
        self.rules = rules
        self.checks = checks
        self.answer_sync = answer_sync
        self.rng = rng or random.Random()
        self.clock = clock
        self.locks = locks if locks is not None else KeyedLocks()
        # Guards _active and _last_write, which are shared across check locks
        self._guard = threading.Lock()
        self._active: dict[UUID, PreShiftCheck] = {}
        self._last_write: dict[UUID, Future] = {}

    def start_or_resume(self, vehicle_id: UUID, operator_id: str) -> PreShiftCheck:
        """
        Return the vehicle's IN_PROGRESS check, creating one if none exists.

        A resumed check keeps its questions and answers. A new check gets a
        fresh rotation of questions and is written to the store before it is
        returned. Raises ``NoChecklistAvailable`` if the bank is empty.
        """
        with self.locks.hold(("vehicle", vehicle_id)):
            existing = self._cached_in_progress(vehicle_id) or self.checks.find_in_progress(vehicle_id)
            if existing is not None:
                logger.info(f"Resuming check {existing.id} for vehicle {vehicle_id}")
                with self._guard:
                    existing = self._active.setdefault(existing.id, existing)
                    return existing.model_copy(deep=True)

            items = select_questions(
                self.question_bank.list_items(vehicle_id),
                self.rules.for_vehicle(vehicle_id),
                self.rng,
            )
            if not items:
                raise NoChecklistAvailable(vehicle_id)

            now = self.clock()
            check = PreShiftCheck(
                vehicle_id=vehicle_id,
                operator_id=operator_id,
                items=items,
                status=CheckStatus.IN_PROGRESS,
                created_at=now,
                last_saved_at=now,
            )
            self.checks.create(check)
            with self._guard:
                self._active[check.id] = check
            logger.info(
                f"Started check {check.id} for vehicle {vehicle_id} "
                f"with {len(items)} questions"
            )
            return check.model_copy(deep=True)

    def _cached_in_progress(self, vehicle_id: UUID) -> PreShiftCheck | None:
        with self._guard:
            for check in self._active.values():
                if check.vehicle_id == vehicle_id and check.status == CheckStatus.IN_PROGRESS:
                    return check
        return None

    def get(self, check_id: UUID) -> PreShiftCheck:
        """Return the latest known state of a check."""
        check = self._load(check_id)
        with self._guard:
            return check.model_copy(deep=True)

    def _load(self, check_id: UUID) -> PreShiftCheck:
        with self._guard:
            check = self._active.get(check_id)
        if check is not None:
            return check
        check = self.checks.get(check_id)
        if check is None:
            raise CheckNotFound(check_id)
        if check.status == CheckStatus.IN_PROGRESS:
            with self._guard:
                check = self._active.setdefault(check.id, check)
        return check

    def record_answer(self, check_id: UUID, item_id: str, answer: Answer) -> PreShiftCheck:
        """Set the operator's answer for one item of an IN_PROGRESS check."""
        return self._set_answer(check_id, item_id, Answer(answer))

    def clear_answer(self, check_id: UUID, item_id: str) -> PreShiftCheck:
        """Unset the operator's answer for one item of an IN_PROGRESS check."""
        return self._set_answer(check_id, item_id, None)

    def _set_answer(self, check_id: UUID, item_id: str, answer: Answer | None) -> PreShiftCheck:
        with self.locks.hold(check_id):
            check = self._load(check_id)
            if check.is_read_only:
                raise ReadOnlyViolation(check_id, check.status)
            item = check.find_item(item_id)
            if item is None:
                raise ItemNotFound(check_id, item_id)

            with self._guard:
                item.user_answer = answer
                check.last_saved_at = self.clock()
                snapshot = check.model_copy(deep=True)
            future = self.answer_sync.persist(snapshot)
            with self._guard:
                self._last_write[check_id] = future
            return snapshot.model_copy(deep=True)

    def last_write(self, check_id: UUID) -> Future | None:
        """Future of the most recent answer write for the check, if any."""
        with self._guard:
            return self._last_write.get(check_id)

    def sync_pending(self, check_id: UUID) -> bool:
        return self.answer_sync.is_pending(check_id)

    def finalize(self, check: PreShiftCheck) -> None:
        """Record a finalized check; it is no longer kept in memory."""
        self.answer_sync.mark_synced(check.id)
        with self._guard:
            self._active.pop(check.id, None)
            self._last_write.pop(check.id, None)

    def retry_pending_writes(self) -> int:
        """Re-send the latest state of every check whose last write failed."""
        resent = 0
        for check_id in self.answer_sync.pending_ids():
            with self.locks.hold(check_id):
                with self._guard:
                    check = self._active.get(check_id)
                    snapshot = check.model_copy(deep=True) if check is not None else None
                if snapshot is None:
                    self.answer_sync.mark_synced(check_id)
                    continue
                future = self.answer_sync.persist(snapshot)
                with self._guard:
                    self._last_write[check_id] = future
                resent += 1
        if resent:
            logger.info(f"Re-sent {resent} pending answer writes")
        return resent

    def release_idle(self) -> int:
        """
        Drop in-progress checks whose latest state is already stored.

        Checks with a pending or still running write are kept. A released
        check is loaded from the store again on its next use.
        """
        with self._guard:
            candidates = list(self._active)

        released = 0
        for check_id in candidates:
            with self.locks.hold(check_id):
                if self.answer_sync.is_pending(check_id):
                    continue
                with self._guard:
                    last_write = self._last_write.get(check_id)
                    if last_write is not None and not last_write.done():
                        continue
                    if self._active.pop(check_id, None) is not None:
                        released += 1
                    self._last_write.pop(check_id, None)
        if released:
            logger.debug(f"Released {released} idle checks from memory")
        return released
