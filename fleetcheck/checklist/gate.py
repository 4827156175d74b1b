"""Finalize checks and decide whether an operating session may start."""
import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from fleetcheck.checklist.errors import (
    AlreadyFinalized,
    IncompleteChecklist,
    SessionStartError,
)
from fleetcheck.checklist.ports import CheckStore, OperatingSession, SessionStore
from fleetcheck.checklist.session import ChecklistSession
from fleetcheck.checklist.types import CheckStatus, SubmitOutcome
from fleetcheck.checklist.validation import validate

logger = logging.getLogger(__name__)


class SessionGate:
    """Turn a fully answered check into a final PASS/FAIL record.

    Finalizing and starting the operating session are separate failure
    domains: if the session cannot be started, the check stays finalized
    and the operator retries the session start on its own via
    ``start_session``.
    """

    def __init__(self, checklist: ChecklistSession, checks: CheckStore, sessions: SessionStore):
        self.checklist = checklist
        self.checks = checks
        self.sessions = sessions

    def submit(self, check_id: UUID) -> SubmitOutcome:
        """
        Submit a check.

        Raises ``CheckNotFound`` for an unknown id, ``AlreadyFinalized`` if the
        check was already submitted and ``IncompleteChecklist`` if an item is
        still unanswered; none of these change stored state. Otherwise the
        check is stored with its final status and, when it passed, an
        operating session is started for its vehicle and operator.
        """
        with self.checklist.locks.hold(check_id):
            check = self.checklist.get(check_id)
            if check.status != CheckStatus.IN_PROGRESS:
                logger.warning(f"Duplicate submit for check {check_id} ({check.status.value})")
                raise AlreadyFinalized(check_id, check.status)

            result = validate(check.items)
            if not result.is_complete:
                unanswered = [item.id for item in check.items if not item.is_answered]
                raise IncompleteChecklist(check_id, unanswered)

            # Queued answer writes must land before the record turns read-only.
            self.checklist.answer_sync.wait_for(check_id)

            now = self.checklist.clock()
            check.status = result.status
            check.last_saved_at = now
            check.completed_at = now
            self.checks.update(check)
            self.checklist.finalize(check)
            logger.info(f"Check {check_id} finalized as {check.status.value}")

        outcome = SubmitOutcome(check=check, validation=result)
        if result.can_start_session:
            try:
                session = self._start(check.vehicle_id, check.operator_id, check.id)
            except SessionStartError as e:
                outcome.session_error = str(e)
            else:
                outcome.session_started = True
                outcome.session_id = session.id
        return outcome

    def start_session(self, check_id: UUID) -> OperatingSession:
        """Start the operating session for an already passed check."""
        check = self.checklist.get(check_id)
        if check.status != CheckStatus.COMPLETED_PASS:
            raise SessionStartError(
                f"Check {check_id} is {check.status.value}; only a passed check can start a session"
            )
        return self._start(check.vehicle_id, check.operator_id, check.id)

    def _start(self, vehicle_id: UUID, operator_id: str, check_id: UUID) -> OperatingSession:
        try:
            session = self.sessions.start(vehicle_id, operator_id, check_id)
        except SessionStartError as e:
            logger.warning(f"Session start refused for check {check_id}: {e}")
            raise
        except SQLAlchemyError as e:
            logger.error(f"Session start failed for check {check_id}: {e}")
            raise SessionStartError(f"Operating session could not be started: {e}") from e
        logger.info(f"Operating session {session.id} started for check {check_id}")
        return session
