"""Shared test fixtures."""

import random
from concurrent.futures import Executor, Future
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from fleetcheck.checklist import AnswerSync, ChecklistSession, SessionGate
from fleetcheck.checklist.errors import CheckNotFound, ReadOnlyViolation, SessionStartError
from fleetcheck.checklist.types import (
    Answer,
    ChecklistItem,
    CheckStatus,
    PreShiftCheck,
    RotationRules,
)
from fleetcheck.core.database import get_session
from fleetcheck.core.services import build_services, get_services
from fleetcheck.main import app
from fleetcheck.models import Question, RotationPolicy, Vehicle


class SynchronousExecutor(Executor):
    """Run submitted work immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as e:
            future.set_exception(e)
        return future


class InMemoryQuestionBank:
    def __init__(self, items: list[ChecklistItem]):
        self.items = items
        self.calls = 0

    def list_items(self, vehicle_id: UUID) -> list[ChecklistItem]:
        self.calls += 1
        return list(self.items)


class StaticRules:
    def __init__(self, rules: RotationRules):
        self.rules = rules

    def for_vehicle(self, vehicle_id: UUID) -> RotationRules:
        return self.rules


class InMemoryCheckStore:
    """CheckStore keeping deep copies, counting writes, failing on demand."""

    def __init__(self):
        self.records: dict[UUID, PreShiftCheck] = {}
        self.creates = 0
        self.updates = 0
        self.fail_updates = False
        self.written: list[PreShiftCheck] = []

    def find_in_progress(self, vehicle_id: UUID) -> PreShiftCheck | None:
        for check in list(self.records.values()):
            if check.vehicle_id == vehicle_id and check.status == CheckStatus.IN_PROGRESS:
                return check.model_copy(deep=True)
        return None

    def get(self, check_id: UUID) -> PreShiftCheck | None:
        check = self.records.get(check_id)
        return check.model_copy(deep=True) if check else None

    def create(self, check: PreShiftCheck) -> None:
        self.creates += 1
        self.records[check.id] = check.model_copy(deep=True)

    def update(self, check: PreShiftCheck) -> None:
        if self.fail_updates:
            raise ConnectionError("storage unreachable")
        stored = self.records.get(check.id)
        if stored is None:
            raise CheckNotFound(check.id)
        if stored.status.is_final:
            raise ReadOnlyViolation(check.id, stored.status)
        self.updates += 1
        self.records[check.id] = check.model_copy(deep=True)
        self.written.append(check.model_copy(deep=True))


class FakeOperatingSession:
    def __init__(self, vehicle_id: UUID, operator_id: str, check_id: UUID):
        self.id = uuid4()
        self.vehicle_id = vehicle_id
        self.operator_id = operator_id
        self.check_id = check_id


class FakeSessionStore:
    def __init__(self):
        self.started: list[FakeOperatingSession] = []
        self.refuse_with: str | None = None

    def start(self, vehicle_id: UUID, operator_id: str, check_id: UUID) -> FakeOperatingSession:
        if self.refuse_with:
            raise SessionStartError(self.refuse_with)
        session = FakeOperatingSession(vehicle_id, operator_id, check_id)
        self.started.append(session)
        return session


def make_item(
    item_id: str,
    category: str = "general",
    is_critical: bool = False,
    expected_answer: Answer = Answer.PASS,
    user_answer: Answer | None = None,
) -> ChecklistItem:
    return ChecklistItem(
        id=item_id,
        category=category,
        is_critical=is_critical,
        expected_answer=expected_answer,
        question=f"Question {item_id}",
        user_answer=user_answer,
    )


@pytest.fixture(name="rng")
def rng_fixture() -> random.Random:
    """Seeded random source so rotations are reproducible."""
    return random.Random(1234)


@pytest.fixture(name="bank_items")
def bank_items_fixture() -> list[ChecklistItem]:
    """Ten questions: three critical, categories A/B/C, seven standard."""
    return [
        make_item("c1", category="A", is_critical=True),
        make_item("c2", category="B", is_critical=True),
        make_item("c3", category="C", is_critical=True),
        make_item("s1", category="A"),
        make_item("s2", category="A"),
        make_item("s3", category="B"),
        make_item("s4", category="B"),
        make_item("s5", category="C"),
        make_item("s6", category="C"),
        make_item("s7", category="C"),
    ]


@pytest.fixture(name="rules")
def rules_fixture() -> RotationRules:
    return RotationRules(
        critical_question_minimum=2,
        required_categories=["A", "B"],
        max_questions_per_check=6,
        standard_question_maximum=3,
    )


@pytest.fixture(name="check_store")
def check_store_fixture() -> InMemoryCheckStore:
    return InMemoryCheckStore()


@pytest.fixture(name="session_store")
def session_store_fixture() -> FakeSessionStore:
    return FakeSessionStore()


@pytest.fixture(name="question_bank")
def question_bank_fixture(bank_items) -> InMemoryQuestionBank:
    return InMemoryQuestionBank(bank_items)


@pytest.fixture(name="checklist")
def checklist_fixture(question_bank, rules, check_store, rng) -> ChecklistSession:
    """ChecklistSession over in-memory collaborators with inline writes."""
    return ChecklistSession(
        question_bank=question_bank,
        rules=StaticRules(rules),
        checks=check_store,
        answer_sync=AnswerSync(check_store, executor=SynchronousExecutor()),
        rng=rng,
    )


@pytest.fixture(name="gate")
def gate_fixture(checklist, check_store, session_store) -> SessionGate:
    return SessionGate(checklist, check_store, session_store)


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Create a new database session for each test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="services")
def services_fixture(engine, rng):
    """Database-backed services with answer writes run inline."""
    return build_services(engine, rng=rng, executor=SynchronousExecutor())


@pytest.fixture(name="client")
def client_fixture(session: Session, services):
    """Create a test client with the test database and services."""

    def get_session_override():
        return session

    def get_services_override():
        return services

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_services] = get_services_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="vehicle")
def vehicle_fixture(session: Session) -> Vehicle:
    """Create a forklift for testing."""
    vehicle = Vehicle(code="FL-001", vehicle_type="forklift")
    session.add(vehicle)
    session.commit()
    session.refresh(vehicle)
    return vehicle


@pytest.fixture(name="stored_bank")
def stored_bank_fixture(session: Session, bank_items, vehicle) -> list[Question]:
    """Store the ten-question bank and a matching forklift policy."""
    questions = []
    for item in bank_items:
        question = Question(
            vehicle_type="forklift",
            category=item.category,
            question=item.question,
            is_critical=item.is_critical,
            expected_answer=item.expected_answer.value,
        )
        session.add(question)
        questions.append(question)
    session.add(
        RotationPolicy(
            vehicle_type="forklift",
            max_questions_per_check=6,
            critical_question_minimum=2,
            standard_question_maximum=3,
            required_categories="A,B",
        )
    )
    session.commit()
    for question in questions:
        session.refresh(question)
    return questions
