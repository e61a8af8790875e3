#mpms/api/report.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mpms.core.permissions import Action, Actor
from mpms.crud import report as crud_report
from mpms.dependencies import get_db, require
from mpms.schemas.report import DashboardReport, MyReport, ProjectReport
from mpms.schemas.response import ApiResponse, envelope

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/dashboard", response_model=ApiResponse[DashboardReport])
def dashboard(
    actor: Actor = Depends(require(Action.REPORT_DASHBOARD)),
    db: Session = Depends(get_db),
):
    """
    Сводка по всей системе (admin/manager).
    """
    return envelope("Dashboard stats retrieved successfully", crud_report.get_dashboard(db))


@router.get("/my-report", response_model=ApiResponse[MyReport])
def my_report(
    actor: Actor = Depends(require(Action.REPORT_MINE)),
    db: Session = Depends(get_db),
):
    return envelope("Report retrieved successfully", crud_report.get_my_report(db, actor))


@router.get("/project/{project_id}", response_model=ApiResponse[ProjectReport])
def project_report(
    project_id: int,
    actor: Actor = Depends(require(Action.REPORT_PROJECT)),
    db: Session = Depends(get_db),
):
    return envelope("Project report retrieved successfully", crud_report.get_project_report(db, project_id))
