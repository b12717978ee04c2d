from typing import Dict, List, Literal, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from pointsplannr.config.logging_config import configure_logging
from pointsplannr.config.settings import settings
from pointsplannr.core.points import Breakdown, PointsResult, SubjectAssignment, calculate_points, with_overrides
from pointsplannr.core.scales import Level
from pointsplannr.core.transitions import convert_level, is_at_boundary, step
from pointsplannr.services.appwrite_service import AppwriteService
from pointsplannr.services.protocols import GradeStore, GradeStoreError
from pointsplannr.state.calculator_state import CalculatorState, GradeUpdateFailed


configure_logging()

app = FastAPI(title="PointsPlannr API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allowed_origins),
    allow_origin_regex=settings.cors_allow_origin_regex or None,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class AssignmentPayload(BaseModel):
    subject_id: str
    subject_name: str
    level: Level
    grade: Optional[str] = None


class CalculatePayload(BaseModel):
    assignments: List[AssignmentPayload]
    best_n: int = Field(default=settings.points_best_n, ge=0)


class StepPayload(BaseModel):
    grade: str
    direction: Literal["up", "down"]
    subject_name: Optional[str] = None


class ConvertPayload(BaseModel):
    grade: str
    target_level: Literal["Higher", "Ordinary"]


class ExperimentPayload(BaseModel):
    overrides: Dict[str, Literal["Higher", "Ordinary"]] = Field(default_factory=dict)


class GradeChangePayload(BaseModel):
    direction: Literal["up", "down"]


def get_grade_store() -> GradeStore:
    try:
        return AppwriteService.from_settings()
    except GradeStoreError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc


def _required_uid(x_user_id: Optional[str]) -> str:
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing x-user-id header")
    return x_user_id


def _breakdown_payload(row: Breakdown) -> Dict:
    return {
        "subject_id": row.subject_id,
        "subject_name": row.subject_name,
        "level": Level(row.level).value,
        "grade": row.grade,
        "base_points": row.base_points,
        "maths_bonus": row.maths_bonus,
        "total_points": row.total_points,
        "is_lcvp": row.is_lcvp,
    }


def _result_payload(result: PointsResult) -> Dict:
    return {
        "breakdown": [_breakdown_payload(row) for row in result.breakdown],
        "all_subjects_total": result.all_subjects_total,
        "best6_subjects": [row.subject_id for row in result.best6_subjects],
        "best6_total": result.best6_total,
        "best_n": result.best_n,
        "show_best6": result.show_best6,
        "headline_total": result.headline_total,
    }


def _list_assignments(store: GradeStore, uid: str) -> List[SubjectAssignment]:
    try:
        return store.list_assignments(uid)
    except GradeStoreError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/points/calculate")
def calculate(payload: CalculatePayload) -> Dict:
    assignments = [SubjectAssignment(**row.model_dump()) for row in payload.assignments]
    return _result_payload(calculate_points(assignments, payload.best_n))


@app.post("/grades/step")
def step_grade(payload: StepPayload) -> Dict:
    grade = step(payload.grade, payload.direction, payload.subject_name)
    return {
        "grade": grade,
        "at_boundary": is_at_boundary(grade, payload.direction, payload.subject_name),
    }


@app.post("/grades/convert")
def convert_grade(payload: ConvertPayload) -> Dict[str, str]:
    return {"grade": convert_level(payload.grade, payload.target_level)}


@app.get("/points")
def get_points(
    x_user_id: Optional[str] = Header(default=None),
    store: GradeStore = Depends(get_grade_store),
) -> Dict:
    uid = _required_uid(x_user_id)
    assignments = _list_assignments(store, uid)
    return _result_payload(calculate_points(assignments, settings.points_best_n))


@app.post("/points/experiment")
def experiment(
    payload: ExperimentPayload,
    x_user_id: Optional[str] = Header(default=None),
    store: GradeStore = Depends(get_grade_store),
) -> Dict:
    uid = _required_uid(x_user_id)
    assignments = with_overrides(_list_assignments(store, uid), payload.overrides)
    return _result_payload(calculate_points(assignments, settings.points_best_n))


@app.patch("/subjects/{subject_id}/grade")
def change_grade(
    subject_id: str,
    payload: GradeChangePayload,
    x_user_id: Optional[str] = Header(default=None),
    store: GradeStore = Depends(get_grade_store),
) -> Dict:
    uid = _required_uid(x_user_id)
    assignments = _list_assignments(store, uid)
    if not any(a.subject_id == subject_id for a in assignments):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown subject {subject_id}")

    calculator = CalculatorState(uid=uid, writer=store, assignments=assignments)
    try:
        result = calculator.change_grade(subject_id, payload.direction)
    except GradeUpdateFailed as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.detail) from exc
    return _result_payload(result)
