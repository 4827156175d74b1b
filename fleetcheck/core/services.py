"""Wiring of the checklist engine to its database-backed collaborators.

The engine keeps in-progress checks in memory, so one set of services is
shared by every request. ``get_services`` is the FastAPI dependency; tests
override it with services built on their own engine.
"""
import random
from concurrent.futures import Executor
from dataclasses import dataclass

from sqlalchemy import Engine

from fleetcheck.checklist import AnswerSync, ChecklistSession, SessionGate
from fleetcheck.core.config import settings
from fleetcheck.data.checks import SqlCheckStore
from fleetcheck.data.question_bank import SqlQuestionBank, SqlRotationRules
from fleetcheck.data.sessions import SqlSessionStore


@dataclass
class Services:
    checks: SqlCheckStore
    sessions: SqlSessionStore
    checklist: ChecklistSession
    gate: SessionGate


def build_services(
    engine: Engine,
    rng: random.Random | None = None,
    executor: Executor | None = None,
) -> Services:
    """Build the engine and its stores on top of ``engine``."""
    checks = SqlCheckStore(engine)
    sessions = SqlSessionStore(engine)
    checklist = ChecklistSession(
        question_bank=SqlQuestionBank(engine),
        rules=SqlRotationRules(engine),
        checks=checks,
        answer_sync=AnswerSync(checks, executor=executor),
        rng=rng or random.Random(settings.rotation_seed),
    )
    gate = SessionGate(checklist, checks, sessions)
    return Services(checks=checks, sessions=sessions, checklist=checklist, gate=gate)


# Shared services, created on first use
_services: Services | None = None


def get_services() -> Services:
    """Dependency returning the application's shared services."""
    global _services

    if _services is None:
        from fleetcheck.core.database import engine

        _services = build_services(engine)
    return _services


def shutdown_services() -> None:
    """Wait for queued answer writes and drop the shared services."""
    global _services

    if _services is not None:
        _services.checklist.answer_sync.shutdown()
        _services = None
