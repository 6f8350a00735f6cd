from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Literal, Optional
from devforum.db.session import get_db
from devforum.db.models.user import User
from devforum.crud import report as crud
from devforum.core.security import get_current_admin
from devforum.schemas.report import AdminReportOut, ReportStatusUpdate


router = APIRouter()


#get all reports, newest first
@router.get("/reports", response_model=List[AdminReportOut])
def get_reports(
    status: Optional[Literal["pending", "resolved"]] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    return crud.get_reports(db, status)


#resolve or reopen a report
@router.patch("/reports/{report_id}", response_model=AdminReportOut)
def update_report_status(
    report_id: int,
    body: ReportStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    return crud.update_status(db, report_id, body.status)
