"""Delivery planner routes.

GET  /planner/due         — projected due rows within a horizon
POST /planner/deliveries  — create deliveries for selected due rows
"""
from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from magic_yarn.api.deps import get_db, get_today, require_permission
from magic_yarn.api.serializers import serialize_delivery
from magic_yarn.db import models
from magic_yarn.listing.sorting import apply_sort, next_sort_params, parse_sort, text_key
from magic_yarn.planner.creation import (
    ALREADY_EXISTS_MESSAGE,
    NothingToCreateError,
    create_deliveries_from_rows,
    select_rows,
)
from magic_yarn.planner.projector import DEFAULT_HORIZON_MONTHS, HORIZON_OPTIONS, DueRow
from magic_yarn.planner.service import compute_projection

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/planner", tags=["planner"])

PLANNER_SORT_KEYS = ("recipient", "chapter_leader", "frequency", "last_delivery", "due_month", "target_date")

_SORT_FUNCS = {
    "recipient": lambda row: text_key(row.recipient_name),
    "chapter_leader": lambda row: text_key(row.chapter_leader),
    "frequency": lambda row: row.frequency_months,
    "last_delivery": lambda row: row.last_delivery_date.isoformat() if row.last_delivery_date else "",
    "due_month": lambda row: row.due_month_key,
    "target_date": lambda row: row.create_target_date,
}


class CreateFromPlanBody(BaseModel):
    keys: list[str]
    horizon: int = DEFAULT_HORIZON_MONTHS


def _check_horizon(horizon: int) -> None:
    if horizon not in HORIZON_OPTIONS:
        raise HTTPException(status_code=422, detail=f"horizon must be one of {list(HORIZON_OPTIONS)}")


def _recipient_options(rows: list[DueRow]) -> list[str]:
    return sorted({row.recipient_name for row in rows}, key=lambda name: (name.casefold(), name))


@router.get("/due", summary="Projected deliveries due within a horizon")
def list_due(
    horizon: int = DEFAULT_HORIZON_MONTHS,
    recipient: str | None = None,
    sort: str | None = None,
    dir: str | None = None,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    _user: models.UserProfile = Depends(require_permission("deliveries.read")),
):
    _check_horizon(horizon)
    projection = compute_projection(db, horizon, today)

    rows = projection.rows
    if recipient:
        rows = [row for row in rows if row.recipient_name == recipient]
    spec = parse_sort(sort, dir, PLANNER_SORT_KEYS)
    rows = apply_sort(rows, spec, _SORT_FUNCS)

    return {
        "today": today.isoformat(),
        "horizon": horizon,
        "horizon_options": list(HORIZON_OPTIONS),
        "error": projection.error,
        "rows": [row.to_dict() for row in rows],
        "recipient_options": _recipient_options(projection.rows),
        "selectable_count": sum(1 for row in rows if row.selectable),
        "sort": spec.key,
        "dir": spec.direction if spec.key else None,
        "sort_links": {key: next_sort_params(spec, key) for key in PLANNER_SORT_KEYS},
    }


@router.post("/deliveries", status_code=201, summary="Create deliveries for selected due rows")
def create_from_plan(
    body: CreateFromPlanBody,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    _user: models.UserProfile = Depends(require_permission("deliveries.write")),
):
    _check_horizon(body.horizon)
    projection = compute_projection(db, body.horizon, today)
    if projection.error:
        raise HTTPException(status_code=503, detail=projection.error)

    try:
        result = create_deliveries_from_rows(db, select_rows(projection.rows, body.keys))
    except NothingToCreateError as exc:
        status_code = 409 if str(exc) == ALREADY_EXISTS_MESSAGE else 400
        raise HTTPException(status_code=status_code, detail=str(exc))

    return {
        "message": result.message,
        "created": result.created_count,
        "skipped_existing": result.skipped_existing,
        "deliveries": [serialize_delivery(d) for d in result.created],
    }
