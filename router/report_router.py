# router/report_router.py - daily, weekly and monthly timesheet reports
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from datetime import date
from typing import Annotated

from db.database import get_db
from Schema.report_schema import ReportFormat
from service.access_control import Actor
from service.report_service import (
    ReportPeriod,
    build_report,
    daily_period,
    monthly_period,
    render_report,
    weekly_period,
)
from utils.exceptions import AppError, UnhandledError
from utils.responses import success_response
from utils.token import get_current_actor

db_dependency = Annotated[Session, Depends(get_db)]
actor_dependency = Annotated[Actor, Depends(get_current_actor)]

router = APIRouter(prefix="/reports")


def _report_response(db: Session, actor: Actor, period: ReportPeriod, fmt: ReportFormat):
    try:
        report = build_report(db, actor, period)
        if fmt == ReportFormat.JSON:
            return success_response(report)

        # The file is rendered completely before any byte is sent
        rendered = render_report(report, period, fmt)
        return Response(
            content=rendered.content,
            media_type=rendered.media_type,
            headers={"Content-Disposition": f'attachment; filename="{rendered.filename}"'},
        )
    except AppError:
        raise
    except Exception as e:
        raise UnhandledError(f"Server error while generating {period.kind.value} report") from e


@router.get("/daily")
async def daily_report(
    db: db_dependency,
    actor: actor_dependency,
    report_date: date = Query(..., alias="date"),
    fmt: ReportFormat = Query(ReportFormat.JSON, alias="format"),
):
    """
    All visible entries for one day
    """
    return _report_response(db, actor, daily_period(report_date), fmt)


@router.get("/weekly")
async def weekly_report(
    db: db_dependency,
    actor: actor_dependency,
    start_date: date = Query(..., alias="startDate"),
    fmt: ReportFormat = Query(ReportFormat.JSON, alias="format"),
):
    """
    The Monday-to-Sunday week containing startDate, grouped by day
    """
    return _report_response(db, actor, weekly_period(start_date), fmt)


@router.get("/monthly")
async def monthly_report(
    db: db_dependency,
    actor: actor_dependency,
    month: str = Query(..., description="Month in YYYY-MM format"),
    fmt: ReportFormat = Query(ReportFormat.JSON, alias="format"),
):
    """
    One calendar month, grouped by project and by user
    """
    return _report_response(db, actor, monthly_period(month), fmt)
