from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bazaar.api.deps import get_db, get_current_user
from bazaar.db.models.user_model import User
from bazaar.schemas.market_schema import (
    ProductCreate,
    ProductOut,
    ProductUpdate,
    PurchaseOut,
    ReportCreate,
    ReportOut,
)
from bazaar.services.market_service import MarketService
from bazaar.services.report_service import ReportService

router = APIRouter(prefix="/products", tags=["Marketplace"])
service = MarketService()
report_service = ReportService()

@router.get("", response_model=List[ProductOut])
def list_products(
    search: Optional[str] = Query(None),
    field: str = Query("title"),
    db: Session = Depends(get_db)
):
    # entering the listing hides completed sales past their retention window
    service.sweep_expired_sales(db)
    return service.list_products(db, search, field)

@router.post("", response_model=ProductOut, status_code=201)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return service.create_listing(db, data, current_user)

@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, db: Session = Depends(get_db)):
    return service.get_product(db, product_id)

@router.patch("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: str,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return service.update_listing(db, product_id, data, current_user)

@router.delete("/{product_id}", response_model=ProductOut)
def delete_product(
    product_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return service.soft_delete_listing(db, product_id, current_user)

@router.post("/{product_id}/purchase", response_model=PurchaseOut)
def purchase_product(
    product_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return service.purchase(db, product_id, current_user)

@router.post("/{product_id}/report", response_model=ReportOut, status_code=201)
def report_product(
    product_id: str,
    data: ReportCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return report_service.report_product(db, product_id, data.reason, current_user)
