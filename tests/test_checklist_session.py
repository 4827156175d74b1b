"""Tests for starting, resuming and answering checks."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from uuid import uuid4

import pytest

from fleetcheck.checklist import AnswerSync, ChecklistSession
from fleetcheck.checklist import session as session_module
from fleetcheck.checklist.errors import (
    CheckNotFound,
    ItemNotFound,
    NoChecklistAvailable,
    ReadOnlyViolation,
)
from fleetcheck.checklist.types import Answer, CheckStatus

from conftest import InMemoryCheckStore, InMemoryQuestionBank, StaticRules, SynchronousExecutor


class SlowCheckStore(InMemoryCheckStore):
    """Check store whose lookups take long enough for callers to overlap."""

    def find_in_progress(self, vehicle_id):
        time.sleep(0.01)
        return super().find_in_progress(vehicle_id)


class TestStartOrResume:
    """Tests for ChecklistSession.start_or_resume."""

    def test_start_creates_check(self, checklist, check_store, rules):
        """A new check is IN_PROGRESS, unanswered and stored once."""
        vehicle_id = uuid4()
        check = checklist.start_or_resume(vehicle_id, "op-1")

        assert check.status == CheckStatus.IN_PROGRESS
        assert check.vehicle_id == vehicle_id
        assert check.operator_id == "op-1"
        assert 0 < len(check.items) <= rules.max_questions_per_check
        assert all(item.user_answer is None for item in check.items)
        assert check_store.creates == 1
        assert check_store.get(check.id) is not None

    def test_resume_returns_same_check(self, checklist, check_store):
        """Starting twice returns the same check with a single create."""
        vehicle_id = uuid4()
        first = checklist.start_or_resume(vehicle_id, "op-1")
        second = checklist.start_or_resume(vehicle_id, "op-1")

        assert second.id == first.id
        assert check_store.creates == 1

    def test_resume_keeps_answers_without_rotation(self, checklist, monkeypatch):
        """Resuming never draws new questions and keeps given answers."""
        vehicle_id = uuid4()
        check = checklist.start_or_resume(vehicle_id, "op-1")
        item_id = check.items[0].id
        checklist.record_answer(check.id, item_id, Answer.PASS)

        def fail_rotation(*args, **kwargs):
            raise AssertionError("rotation must not run when resuming")

        monkeypatch.setattr(session_module, "select_questions", fail_rotation)
        resumed = checklist.start_or_resume(vehicle_id, "op-1")

        assert resumed.id == check.id
        assert [item.id for item in resumed.items] == [item.id for item in check.items]
        assert resumed.find_item(item_id).user_answer == Answer.PASS

    def test_resume_from_store(self, question_bank, rules, check_store, rng):
        """A check stored by an earlier process is resumed, not duplicated."""
        vehicle_id = uuid4()
        first = ChecklistSession(
            question_bank, StaticRules(rules), check_store, AnswerSync(check_store), rng=rng
        )
        check = first.start_or_resume(vehicle_id, "op-1")

        second = ChecklistSession(
            question_bank, StaticRules(rules), check_store, AnswerSync(check_store), rng=rng
        )
        resumed = second.start_or_resume(vehicle_id, "op-2")

        assert resumed.id == check.id
        assert check_store.creates == 1
        assert question_bank.calls == 1

    def test_different_vehicles_get_different_checks(self, checklist, check_store):
        first = checklist.start_or_resume(uuid4(), "op-1")
        second = checklist.start_or_resume(uuid4(), "op-1")

        assert first.id != second.id
        assert check_store.creates == 2

    def test_concurrent_starts_create_once(self, question_bank, rules, rng):
        """Simultaneous starts for one vehicle share a single new check."""
        store = SlowCheckStore()
        checklist = ChecklistSession(
            question_bank,
            StaticRules(rules),
            store,
            AnswerSync(store, executor=SynchronousExecutor()),
            rng=rng,
        )
        vehicle_id = uuid4()
        barrier = threading.Barrier(8)

        def start(operator_id):
            barrier.wait(timeout=5)
            return checklist.start_or_resume(vehicle_id, operator_id).id

        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(start, f"op-{i}") for i in range(8)]
            ids = {future.result(timeout=10) for future in futures}

        assert len(ids) == 1
        assert store.creates == 1
        assert question_bank.calls == 1
        assert len(checklist.locks) == 0

    def test_empty_bank(self, rules, check_store, rng):
        """No questions means no checklist and no write."""
        checklist = ChecklistSession(
            InMemoryQuestionBank([]), StaticRules(rules), check_store, AnswerSync(check_store), rng=rng
        )
        with pytest.raises(NoChecklistAvailable):
            checklist.start_or_resume(uuid4(), "op-1")
        assert check_store.creates == 0


class TestAnswers:
    """Tests for recording and clearing answers."""

    def test_record_answer(self, checklist, check_store):
        """The answer is visible immediately and written to the store."""
        check = checklist.start_or_resume(uuid4(), "op-1")
        item_id = check.items[0].id

        updated = checklist.record_answer(check.id, item_id, Answer.FAIL)

        assert updated.find_item(item_id).user_answer == Answer.FAIL
        assert updated.status == CheckStatus.IN_PROGRESS
        assert checklist.get(check.id).find_item(item_id).user_answer == Answer.FAIL
        assert check_store.get(check.id).find_item(item_id).user_answer == Answer.FAIL
        assert checklist.last_write(check.id).result().saved is True

    def test_record_answer_accepts_string(self, checklist):
        check = checklist.start_or_resume(uuid4(), "op-1")
        updated = checklist.record_answer(check.id, check.items[0].id, "PASS")

        assert updated.items[0].user_answer == Answer.PASS

    def test_change_answer(self, checklist):
        """An answer can be changed while the check is in progress."""
        check = checklist.start_or_resume(uuid4(), "op-1")
        item_id = check.items[0].id
        checklist.record_answer(check.id, item_id, Answer.FAIL)
        updated = checklist.record_answer(check.id, item_id, Answer.PASS)

        assert updated.find_item(item_id).user_answer == Answer.PASS

    def test_clear_answer(self, checklist, check_store):
        check = checklist.start_or_resume(uuid4(), "op-1")
        item_id = check.items[0].id
        checklist.record_answer(check.id, item_id, Answer.PASS)

        cleared = checklist.clear_answer(check.id, item_id)

        assert cleared.find_item(item_id).user_answer is None
        assert check_store.get(check.id).find_item(item_id).user_answer is None

    def test_unknown_item(self, checklist):
        check = checklist.start_or_resume(uuid4(), "op-1")
        with pytest.raises(ItemNotFound):
            checklist.record_answer(check.id, "not-selected", Answer.PASS)
        with pytest.raises(ItemNotFound):
            checklist.clear_answer(check.id, "not-selected")

    def test_unknown_check(self, checklist):
        with pytest.raises(CheckNotFound):
            checklist.record_answer(uuid4(), "c1", Answer.PASS)

    def test_finalized_check_is_read_only(self, checklist, check_store):
        """Answer changes on a finalized check fail and leave it unchanged."""
        check = checklist.start_or_resume(uuid4(), "op-1")
        stored = check_store.records[check.id]
        stored.status = CheckStatus.COMPLETED_PASS
        checklist.finalize(stored)

        with pytest.raises(ReadOnlyViolation):
            checklist.record_answer(check.id, check.items[0].id, Answer.PASS)
        with pytest.raises(ReadOnlyViolation):
            checklist.clear_answer(check.id, check.items[0].id)
        assert check_store.records[check.id].items[0].user_answer is None


class TestAnswerPersistence:
    """Tests for background persistence of answers."""

    def test_persistence_failure_keeps_answer(self, checklist, check_store, caplog):
        """A failed write is a warning; the answer stays applied."""
        check = checklist.start_or_resume(uuid4(), "op-1")
        item_id = check.items[0].id
        check_store.fail_updates = True

        updated = checklist.record_answer(check.id, item_id, Answer.PASS)
        result = checklist.last_write(check.id).result()

        assert updated.find_item(item_id).user_answer == Answer.PASS
        assert checklist.get(check.id).find_item(item_id).user_answer == Answer.PASS
        assert result.saved is False
        assert "storage unreachable" in result.error
        assert checklist.sync_pending(check.id) is True
        assert "sync pending" in caplog.text

    def test_retry_pending_writes(self, checklist, check_store):
        """Retrying sends the latest in-memory state once storage is back."""
        check = checklist.start_or_resume(uuid4(), "op-1")
        check_store.fail_updates = True
        checklist.record_answer(check.id, check.items[0].id, Answer.PASS)
        checklist.record_answer(check.id, check.items[1].id, Answer.FAIL)

        check_store.fail_updates = False
        assert checklist.retry_pending_writes() == 1

        stored = check_store.get(check.id)
        assert stored.items[0].user_answer == Answer.PASS
        assert stored.items[1].user_answer == Answer.FAIL
        assert checklist.sync_pending(check.id) is False

    def test_later_success_clears_pending(self, checklist, check_store):
        check = checklist.start_or_resume(uuid4(), "op-1")
        check_store.fail_updates = True
        checklist.record_answer(check.id, check.items[0].id, Answer.PASS)
        check_store.fail_updates = False
        checklist.record_answer(check.id, check.items[1].id, Answer.PASS)

        assert checklist.sync_pending(check.id) is False
        assert check_store.get(check.id).items[0].user_answer == Answer.PASS

    def test_writes_keep_issue_order(self, question_bank, rules, check_store, rng):
        """With a background worker, writes reach the store in issue order."""
        executor = ThreadPoolExecutor(max_workers=1)
        checklist = ChecklistSession(
            question_bank,
            StaticRules(rules),
            check_store,
            AnswerSync(check_store, executor=executor),
            rng=rng,
        )
        check = checklist.start_or_resume(uuid4(), "op-1")
        item_id = check.items[0].id

        for answer in (Answer.PASS, Answer.FAIL, Answer.PASS, Answer.FAIL):
            checklist.record_answer(check.id, item_id, answer)
        checklist.answer_sync.wait_for(check.id)
        executor.shutdown(wait=True)

        written = [c.find_item(item_id).user_answer for c in check_store.written]
        assert written == [Answer.PASS, Answer.FAIL, Answer.PASS, Answer.FAIL]
        assert check_store.get(check.id).find_item(item_id).user_answer == Answer.FAIL


class TestReleaseIdle:
    """Tests for dropping stored checks from memory."""

    def test_release_stored_check(self, checklist, check_store):
        """A check whose answers are stored is released and reloaded on use."""
        vehicle_id = uuid4()
        check = checklist.start_or_resume(vehicle_id, "op-1")
        item_id = check.items[0].id
        checklist.record_answer(check.id, item_id, Answer.PASS)

        assert checklist.release_idle() == 1
        assert checklist.release_idle() == 0

        assert checklist.get(check.id).find_item(item_id).user_answer == Answer.PASS
        updated = checklist.record_answer(check.id, check.items[1].id, Answer.FAIL)
        assert updated.find_item(item_id).user_answer == Answer.PASS
        assert checklist.start_or_resume(vehicle_id, "op-1").id == check.id
        assert check_store.creates == 1

    def test_pending_check_is_kept(self, checklist, check_store):
        """A check whose last write failed stays in memory with its answer."""
        check = checklist.start_or_resume(uuid4(), "op-1")
        item_id = check.items[0].id
        check_store.fail_updates = True
        checklist.record_answer(check.id, item_id, Answer.FAIL)

        assert checklist.release_idle() == 0
        assert checklist.get(check.id).find_item(item_id).user_answer == Answer.FAIL
        assert check_store.records[check.id].find_item(item_id).user_answer is None

        check_store.fail_updates = False
        checklist.retry_pending_writes()
        assert checklist.release_idle() == 1

    def test_running_write_is_kept(self, question_bank, rules, rng):
        """A check with a write still in flight is not released."""
        store = InMemoryCheckStore()
        release = threading.Event()
        executor = ThreadPoolExecutor(max_workers=1)
        checklist = ChecklistSession(
            question_bank,
            StaticRules(rules),
            store,
            AnswerSync(store, executor=executor),
            rng=rng,
        )
        check = checklist.start_or_resume(uuid4(), "op-1")
        executor.submit(release.wait, 5)
        checklist.record_answer(check.id, check.items[0].id, Answer.PASS)

        assert checklist.release_idle() == 0

        release.set()
        checklist.answer_sync.wait_for(check.id, timeout=5)
        executor.shutdown(wait=True)
        assert checklist.release_idle() == 1

    def test_release_during_concurrent_starts(self, checklist, check_store):
        """Sweeps running next to starts for other vehicles never disturb them."""
        vehicle_ids = [uuid4() for _ in range(20)]
        done = threading.Event()

        def sweep():
            while not done.is_set():
                checklist.release_idle()

        sweeper = threading.Thread(target=sweep)
        sweeper.start()
        try:
            with ThreadPoolExecutor(max_workers=4) as pool:
                checks = list(pool.map(lambda v: checklist.start_or_resume(v, "op-1"), vehicle_ids))
        finally:
            done.set()
            sweeper.join(timeout=5)

        assert check_store.creates == len(vehicle_ids)
        for vehicle_id, check in zip(vehicle_ids, checks):
            assert checklist.start_or_resume(vehicle_id, "op-1").id == check.id
        assert check_store.creates == len(vehicle_ids)
