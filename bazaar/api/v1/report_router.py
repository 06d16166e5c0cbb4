from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bazaar.api.deps import get_db, get_optional_user
from bazaar.db.models.user_model import User
from bazaar.schemas.market_schema import ContentReportCreate, ReportOut
from bazaar.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])
service = ReportService()

@router.post("", response_model=ReportOut, status_code=201)
def report_content(
    data: ContentReportCreate,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    return service.report_content(
        db, data.type, data.content_id, data.reported_user, data.reason, current_user
    )
