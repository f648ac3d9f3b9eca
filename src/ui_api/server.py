"""FastAPI server exposing scoring and greedy assignment over HTTP."""

from __future__ import annotations

from typing import Literal

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from src.datasets.config import AssignmentConfig, DEFAULT_WORKER_COUNT
from src.datasets.records import Dataset, Row
from src.errors import AllocationFailureError, MatchingError
from src.matching.arrangement import ArrangementRecorder
from src.matching.assigner import CapacityAssigner
from src.matching.score_matrix import ScoreMatrix, ScoreMatrixBuilder
from src.matching.scorer import AttributeScorer

app = FastAPI(title="Attribute Matching API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RowIn(BaseModel):
    name: str
    attributes: list[str] = Field(default_factory=list)
    capacity: int | None = None


class MatchRequest(BaseModel):
    rows_a: list[RowIn]
    rows_b: list[RowIn]
    duplicate_policy: Literal["pairs", "set"] = "pairs"
    worker_count: int = Field(default=DEFAULT_WORKER_COUNT, ge=1, le=64)


class AssignRequest(MatchRequest):
    default_capacity: int | None = None
    allow_zero_score: bool = True
    cumulative_score: bool = False


def _dataset(rows: list[RowIn], label: str) -> Dataset:
    return Dataset(
        rows=tuple(Row(r.name, tuple(r.attributes), r.capacity) for r in rows),
        label=label,
    )


def _build(req: MatchRequest) -> tuple[Dataset, Dataset, ScoreMatrix]:
    dataset_a = _dataset(req.rows_a, "A")
    dataset_b = _dataset(req.rows_b, "B")
    builder = ScoreMatrixBuilder(AttributeScorer(req.duplicate_policy), req.worker_count)
    return dataset_a, dataset_b, builder.build(dataset_a, dataset_b)


def _http_error(exc: MatchingError) -> HTTPException:
    status = 507 if isinstance(exc, AllocationFailureError) else 400
    return HTTPException(status_code=status, detail=str(exc))


@app.get("/api/health")
async def health() -> dict:
    """Basic readiness endpoint."""

    return {"status": "ok"}


@app.post("/api/match/scores")
def match_scores(req: MatchRequest) -> dict:
    """Unconstrained mode: full score matrix plus the non-zero pairs."""
    try:
        _, _, matrix = _build(req)
    except MatchingError as exc:
        raise _http_error(exc) from exc

    return {
        "names_a": list(matrix.names_a),
        "names_b": list(matrix.names_b),
        "scores": matrix.to_lists(),
        "pairs": [
            {"a": matrix.names_a[i], "b": matrix.names_b[j], "score": s}
            for i, j, s in matrix.nonzero_pairs()
        ],
        "build_time_ms": matrix.build_time_ms,
    }


@app.post("/api/match/assign")
def match_assign(req: AssignRequest) -> dict:
    """Capacity mode: greedy assignment and its arrangement log."""
    recorder = ArrangementRecorder(cumulative=req.cumulative_score)
    config = AssignmentConfig(
        default_capacity=req.default_capacity,
        allow_zero_score=req.allow_zero_score,
        cumulative_score=req.cumulative_score,
    )
    try:
        dataset_a, dataset_b, matrix = _build(req)
        result = CapacityAssigner(config, recorder).assign(dataset_a, dataset_b, matrix)
    except MatchingError as exc:
        raise _http_error(exc) from exc

    return {
        "assignments": [
            {
                "a": result.names_a[i],
                "b": None if t is None else result.names_b[t],
                "score": 0 if t is None else result.scores[i],
            }
            for i, t in enumerate(result.targets)
        ],
        "unassigned": [result.names_a[i] for i in result.unassigned],
        "total_score": result.total_score,
        "status": result.status.name,
        "arrangements": recorder.lines(),
    }
