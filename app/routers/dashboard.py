from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.responses import ok
from app.deps import require_master_admin
from app.models.user import User
from app.services.statistics import dashboard_stats, monthly_stats

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats")
def get_dashboard_stats(
    user: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    return ok(dashboard_stats(db), message="Dashboard statistics retrieved successfully")


@router.get("/monthly-stats")
def get_monthly_stats(
    year: Optional[int] = Query(None, ge=1970, le=3000),
    user: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    return ok(monthly_stats(db, year or date.today().year), message="Monthly statistics retrieved successfully")
