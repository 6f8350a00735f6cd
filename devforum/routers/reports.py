from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from devforum.db.session import get_db
from devforum.db.models.user import User
from devforum.crud import report as crud
from devforum.core.security import get_current_user
from devforum.schemas.report import ReportCreate, ReportOut

router = APIRouter()


@router.post("/", response_model=ReportOut, status_code=status.HTTP_201_CREATED)
def report_post(
    body: ReportCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return crud.create_report(db, body.post_id, current_user.id, body.reason)
