from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session
from bazaar.db.models.market_model import Product

SEARCH_FIELDS = ("title", "description", "all")


class ProductRepository:

    def create(self, db: Session, product: Product):
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    def save(self, db: Session, product: Product):
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    def get_by_id(self, db: Session, product_id: str) -> Optional[Product]:
        return db.query(Product).filter(Product.id == product_id).first()

    def list_active(self, db: Session, search: Optional[str] = None, field: str = "title") -> List[Product]:
        query = db.query(Product).filter(Product.is_deleted.is_(False))
        if search:
            pattern = f"%{search.lower()}%"
            title_match = Product.title.ilike(pattern)
            desc_match = Product.description.ilike(pattern)
            if field == "description":
                query = query.filter(desc_match)
            elif field == "all":
                query = query.filter(or_(title_match, desc_match))
            else:
                query = query.filter(title_match)
        return query.order_by(Product.created_at.desc()).all()

    def list_by_author(self, db: Session, username: str) -> List[Product]:
        return (
            db.query(Product)
            .filter(Product.author == username)
            .order_by(Product.created_at.desc())
            .all()
        )

    def list_by_buyer(self, db: Session, username: str) -> List[Product]:
        return (
            db.query(Product)
            .filter(Product.purchased_by == username)
            .order_by(Product.purchased_at.desc())
            .all()
        )

    # Conditional writes. Callers commit.

    def mark_purchased(self, db: Session, product_id: str, buyer: str, now: datetime) -> bool:
        changed = (
            db.query(Product)
            .filter(Product.id == product_id, Product.purchased_by.is_(None))
            .update({Product.purchased_by: buyer, Product.purchased_at: now}, synchronize_session=False)
        )
        return changed == 1

    def soft_delete(self, db: Session, product_id: str) -> bool:
        changed = (
            db.query(Product)
            .filter(Product.id == product_id, Product.is_deleted.is_(False))
            .update({Product.is_deleted: True}, synchronize_session=False)
        )
        return changed == 1

    def mark_expired_sales_deleted(self, db: Session, cutoff: datetime) -> int:
        return (
            db.query(Product)
            .filter(
                Product.purchased_at.isnot(None),
                Product.purchased_at < cutoff,
                Product.is_deleted.is_(False),
            )
            .update({Product.is_deleted: True}, synchronize_session=False)
        )
