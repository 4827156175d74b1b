"""Question bank and rotation policy administration routes."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlmodel import Session, select

from fleetcheck.checklist.types import Answer
from fleetcheck.core.database import get_session
from fleetcheck.models import Question, RotationPolicy
from fleetcheck.models.question import ALL_VEHICLE_TYPES, split_categories

router = APIRouter(tags=["questions"])


class QuestionCreate(BaseModel):
    category: str
    question: str
    vehicle_type: str = ALL_VEHICLE_TYPES
    subcategory: str = ""
    component: str = ""
    description: str = ""
    is_critical: bool = False
    expected_answer: Answer = Answer.PASS
    rotation_group: int = 0


class PolicyUpdate(BaseModel):
    max_questions_per_check: int = Field(ge=0)
    critical_question_minimum: int = Field(default=0, ge=0)
    standard_question_maximum: int = Field(ge=0)
    required_categories: list[str] = Field(default_factory=list)


def policy_response(policy: RotationPolicy) -> dict:
    rules = policy.to_rules()
    return {
        "vehicle_type": policy.vehicle_type,
        **rules.model_dump(),
        "budget_overrun": rules.budget_overrun,
    }


@router.post("/questions", status_code=201)
async def create_question(body: QuestionCreate, session: Session = Depends(get_session)):
    """Add a question to the bank."""
    question = Question(
        vehicle_type=body.vehicle_type,
        category=body.category.strip(),
        subcategory=body.subcategory,
        component=body.component,
        question=body.question.strip(),
        description=body.description,
        is_critical=body.is_critical,
        expected_answer=body.expected_answer.value,
        rotation_group=body.rotation_group,
    )
    session.add(question)
    session.commit()
    session.refresh(question)
    return question


@router.get("/questions")
async def list_questions(
    vehicle_type: str | None = None,
    include_inactive: bool = False,
    session: Session = Depends(get_session),
):
    """
    List bank questions.

    With ``vehicle_type`` only the questions that apply to that type are
    returned, including those for all types.
    """
    statement = select(Question)
    if vehicle_type:
        statement = statement.where(
            Question.vehicle_type.in_([vehicle_type, ALL_VEHICLE_TYPES])
        )
    if not include_inactive:
        statement = statement.where(Question.is_active == True)  # noqa: E712
    return session.exec(statement.order_by(Question.category)).all()


@router.post("/questions/{question_id}/deactivate")
async def deactivate_question(question_id: UUID, session: Session = Depends(get_session)):
    """
    Remove a question from future rotations.

    Checks that already contain the question keep their copy of it.
    """
    question = session.get(Question, question_id)
    if not question:
        raise HTTPException(status_code=404, detail="Question not found")

    question.is_active = False
    session.add(question)
    session.commit()
    session.refresh(question)
    return question


@router.get("/rotation-policies/{vehicle_type}")
async def get_policy(vehicle_type: str, session: Session = Depends(get_session)):
    policy = session.exec(
        select(RotationPolicy).where(RotationPolicy.vehicle_type == vehicle_type)
    ).first()
    if not policy:
        raise HTTPException(status_code=404, detail="No rotation policy for this vehicle type")
    return policy_response(policy)


@router.put("/rotation-policies/{vehicle_type}")
async def put_policy(
    vehicle_type: str,
    body: PolicyUpdate,
    session: Session = Depends(get_session),
):
    """
    Create or replace the rotation policy of a vehicle type.

    A policy whose critical minimum plus required categories exceed the
    per-check maximum is accepted as is; ``budget_overrun`` in the response
    reports by how much, so the administrator can correct it.
    """
    policy = session.exec(
        select(RotationPolicy).where(RotationPolicy.vehicle_type == vehicle_type)
    ).first()
    if policy is None:
        policy = RotationPolicy(
            vehicle_type=vehicle_type,
            max_questions_per_check=body.max_questions_per_check,
            standard_question_maximum=body.standard_question_maximum,
        )

    policy.max_questions_per_check = body.max_questions_per_check
    policy.critical_question_minimum = body.critical_question_minimum
    policy.standard_question_maximum = body.standard_question_maximum
    policy.required_categories = ",".join(split_categories(",".join(body.required_categories)))
    session.add(policy)
    session.commit()
    session.refresh(policy)
    return policy_response(policy)
