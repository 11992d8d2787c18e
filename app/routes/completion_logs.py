from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.config import COMPLETION_LOG_MAX_PAGE_LIMIT, COMPLETION_LOG_PAGE_LIMIT
from ..db import get_db
from ..models import User
from ..schemas import (
    CompletionLogCreatedOut,
    CompletionLogIn,
    CompletionLogListOut,
    CompletionLogOut,
    CompletionSummaryOut,
    DerivedProgressOut,
    DerivedScoresOut,
    ProgressHistoryPointOut,
    RecalculateIn,
    RecalculateOut,
)
from ..services.completion_engine import CompletionProgressEngine
from .deps import get_current_user

router = APIRouter()


def get_engine(db: Session = Depends(get_db)) -> CompletionProgressEngine:
    return CompletionProgressEngine.for_session(db)


@router.get("/{game_id}/completion-logs", response_model=CompletionLogListOut)
def list_completion_logs(
    game_id: str,
    limit: int = Query(COMPLETION_LOG_PAGE_LIMIT, ge=1, le=COMPLETION_LOG_MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
    type: Optional[str] = Query(None),
    dlc_id: Optional[str] = Query(None),
    platform_id: Optional[str] = Query(None),
    engine: CompletionProgressEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user),
):
    logs = engine.log_store.list_for_game(
        current_user.id,
        game_id,
        completion_type=type,
        dlc_id=dlc_id,
        platform_id=platform_id,
        limit=limit,
        offset=offset,
    )
    total = engine.log_store.count_for_game(current_user.id, game_id)

    active_platform_id = platform_id or (logs[0].platform_id if logs else None)
    summary = CompletionSummaryOut()
    history = []
    if active_platform_id:
        summary = CompletionSummaryOut.model_validate(
            engine.summary(current_user.id, game_id, active_platform_id)
        )
        history = [
            ProgressHistoryPointOut.model_validate(point)
            for point in engine.achievement_history(current_user.id, game_id, active_platform_id)
        ]

    return CompletionLogListOut(
        logs=[CompletionLogOut.model_validate(log) for log in logs],
        total=total,
        current_percentage=summary.main,
        summary=summary,
        achievement_history=history,
    )


@router.post("/{game_id}/completion-logs", response_model=CompletionLogCreatedOut, status_code=201)
def create_completion_log(
    game_id: str,
    payload: CompletionLogIn,
    db: Session = Depends(get_db),
    engine: CompletionProgressEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user),
):
    result = engine.record_entry(
        current_user.id,
        game_id,
        payload.platform_id,
        payload.completion_type,
        payload.percentage,
        dlc_id=payload.dlc_id,
        notes=payload.notes,
    )
    db.commit()
    db.refresh(result.entry)
    return CompletionLogCreatedOut(
        log=CompletionLogOut.model_validate(result.entry),
        status_changed=result.transition.status_changed,
        new_status=result.transition.new_status,
        derived=DerivedScoresOut(full=result.derived.full, completionist=result.derived.completionist),
    )


@router.post("/{game_id}/completion-logs/recalculate", response_model=RecalculateOut)
def recalculate_completion(
    game_id: str,
    payload: RecalculateIn,
    db: Session = Depends(get_db),
    engine: CompletionProgressEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user),
):
    result = engine.recalculate(current_user.id, game_id, payload.platform_id)
    db.commit()
    return RecalculateOut(
        derived=DerivedProgressOut.model_validate(result.derived),
        status_changed=result.transition.status_changed,
        new_status=result.transition.new_status,
    )


@router.delete("/{game_id}/completion-logs/{log_id}", response_model=RecalculateOut)
def delete_completion_log(
    game_id: str,
    log_id: int,
    db: Session = Depends(get_db),
    engine: CompletionProgressEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user),
):
    result = engine.delete_entry(current_user.id, game_id, log_id)
    db.commit()
    return RecalculateOut(
        derived=DerivedProgressOut.model_validate(result.derived),
        status_changed=result.transition.status_changed,
        new_status=result.transition.new_status,
    )
