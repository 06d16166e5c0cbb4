from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bazaar.api.deps import get_db, get_current_admin
from bazaar.db.models.user_model import User
from bazaar.schemas.market_schema import ReportOut, SweepOut
from bazaar.schemas.user_schema import BannedUserOut, BanRequest, UserOut
from bazaar.services.market_service import MarketService
from bazaar.services.moderation_service import ModerationService
from bazaar.services.report_service import ReportService

router = APIRouter(prefix="/admin", tags=["Admin"])
moderation_service = ModerationService()
report_service = ReportService()
market_service = MarketService()

@router.get("/reports", response_model=List[ReportOut])
def get_reports(
    type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    return report_service.list_reports(db, current_user, type)

@router.post("/reports/{report_id}/dismiss", status_code=204)
def dismiss_report(
    report_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    report_service.dismiss_report(db, report_id, current_user)

@router.post("/reports/{report_id}/act", status_code=204)
def act_on_report(
    report_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    report_service.act_on_report(db, report_id, current_user)

@router.get("/banned", response_model=List[BannedUserOut])
def get_banned_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    return moderation_service.list_banned(db, current_user)

@router.post("/users/{username}/ban", response_model=UserOut)
def ban_user(
    username: str,
    data: BanRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    return moderation_service.ban(db, username, data.days, current_user)

@router.post("/users/{username}/unban", response_model=UserOut)
def unban_user(
    username: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    return moderation_service.unban(db, username, current_user)

@router.post("/sweep", response_model=SweepOut)
def sweep_sales(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    return {"deleted": market_service.sweep_expired_sales(db)}
