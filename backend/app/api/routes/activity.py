from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.models.activity_log import ActivityLog
from app.schemas.activity import ActivityLogOut

router = APIRouter()


@router.get("/activity/logs", response_model=list[ActivityLogOut])
def list_activity_logs(
    action: str | None = Query(default=None, max_length=100),
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
) -> list[ActivityLogOut]:
    query = select(ActivityLog)
    if action:
        query = query.where(ActivityLog.action == action)
    query = query.order_by(ActivityLog.created_at.desc()).limit(limit)
    return list(db.execute(query).scalars())
