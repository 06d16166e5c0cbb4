from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bazaar.api.deps import get_db, get_current_user
from bazaar.core.errors import Forbidden
from bazaar.db.models.user_model import User
from bazaar.schemas.market_schema import ProductOut, ReportCreate, ReportOut
from bazaar.schemas.user_schema import PublicUserOut
from bazaar.services.auth_service import AuthService
from bazaar.services.market_service import MarketService
from bazaar.services.report_service import ReportService

router = APIRouter(prefix="/users", tags=["Users"])
auth_service = AuthService()
market_service = MarketService()
report_service = ReportService()

@router.get("/{username}", response_model=PublicUserOut)
def get_user(username: str, db: Session = Depends(get_db)):
    return auth_service.get_user(db, username)

@router.get("/{username}/products", response_model=List[ProductOut])
def get_user_products(username: str, db: Session = Depends(get_db)):
    auth_service.get_user(db, username)
    return market_service.list_user_products(db, username)

@router.get("/{username}/purchases", response_model=List[ProductOut])
def get_user_purchases(
    username: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    # purchase history is private to its owner and to admins
    if current_user.username != username and not current_user.is_admin:
        raise Forbidden()
    return market_service.list_user_purchases(db, username)

@router.post("/{username}/report", response_model=ReportOut, status_code=201)
def report_user(
    username: str,
    data: ReportCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return report_service.report_user(db, username, data.reason, current_user)
