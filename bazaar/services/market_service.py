import logging
import re
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import HttpUrl, TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from bazaar.core.clock import utcnow
from bazaar.core.config import settings
from bazaar.core.errors import (
    AlreadySold,
    Forbidden,
    InsufficientBalance,
    NotFound,
    ValidationFailed,
)
from bazaar.db.models.market_model import Product
from bazaar.db.models.user_model import User
from bazaar.repositories.product_repository import SEARCH_FIELDS, ProductRepository
from bazaar.repositories.user_repository import UserRepository
from bazaar.schemas.market_schema import ProductCreate, ProductUpdate
from bazaar.services.guards import can_manage, require_identity

logger = logging.getLogger(__name__)

product_repo = ProductRepository()
user_repo = UserRepository()

TITLE_MAX = 100
DESCRIPTION_MAX = 2000
PRICE_MAX = 10_000_000
IMAGE_URL_PATTERN = re.compile(r"\.(jpeg|jpg|gif|png|webp)$", re.IGNORECASE)

_http_url = TypeAdapter(HttpUrl)


def validate_title(title: Optional[str]) -> str:
    if not title or not title.strip():
        raise ValidationFailed("title", "Title is required")
    if len(title) > TITLE_MAX:
        raise ValidationFailed("title", f"Title cannot exceed {TITLE_MAX} characters")
    return title

def validate_description(description: Optional[str]) -> str:
    if not description or not description.strip():
        raise ValidationFailed("description", "Description is required")
    if len(description) > DESCRIPTION_MAX:
        raise ValidationFailed("description", f"Description cannot exceed {DESCRIPTION_MAX} characters")
    return description

def validate_price(price: Any) -> int:
    if price is None or isinstance(price, bool):
        raise ValidationFailed("price", "Price is required")
    if isinstance(price, str):
        if not price.strip():
            raise ValidationFailed("price", "Price is required")
        try:
            price = float(price.strip())
        except ValueError:
            raise ValidationFailed("price", "Price must be a number")
    if not isinstance(price, (int, float)):
        raise ValidationFailed("price", "Price must be a number")
    if isinstance(price, float):
        if price != price or not price.is_integer():
            raise ValidationFailed("price", "Price must be a whole number")
        price = int(price)
    if price < 0:
        raise ValidationFailed("price", "Price cannot be negative")
    if price > PRICE_MAX:
        raise ValidationFailed("price", f"Price cannot exceed {PRICE_MAX:,}")
    return price

def validate_image_url(url: Optional[str]) -> str:
    if not url or not url.strip():
        raise ValidationFailed("image_url", "Image URL is required")
    try:
        _http_url.validate_python(url)
    except ValidationError:
        raise ValidationFailed("image_url", "Image URL is not a valid URL")
    if not IMAGE_URL_PATTERN.search(url):
        raise ValidationFailed("image_url", "Image URL must point to a jpeg, jpg, gif, png or webp file")
    return url

VALIDATORS = {
    "title": validate_title,
    "description": validate_description,
    "price": validate_price,
    "image_url": validate_image_url,
}


class MarketService:

    def get_product(self, db: Session, product_id: str) -> Product:
        # Deleted products stay reachable by id
        product = product_repo.get_by_id(db, product_id)
        if not product:
            raise NotFound("Product")
        return product

    def list_products(self, db: Session, search: Optional[str] = None, field: str = "title") -> List[Product]:
        if field not in SEARCH_FIELDS:
            raise ValidationFailed("field", f"Search field must be one of {', '.join(SEARCH_FIELDS)}")
        return product_repo.list_active(db, search.strip() if search else None, field)

    def list_user_products(self, db: Session, username: str) -> List[Product]:
        return product_repo.list_by_author(db, username)

    def list_user_purchases(self, db: Session, username: str) -> List[Product]:
        return product_repo.list_by_buyer(db, username)

    def create_listing(self, db: Session, data: ProductCreate, author: Optional[User],
                       now: Optional[datetime] = None) -> Product:
        require_identity(author)
        product = Product(
            title=validate_title(data.title),
            description=validate_description(data.description),
            price=validate_price(data.price),
            image_url=validate_image_url(data.image_url),
            author=author.username,
            created_at=now or utcnow(),
            is_deleted=False,
        )
        product = product_repo.create(db, product)
        logger.info("Listing %s created by %s", product.id, author.username)
        return product

    def update_listing(self, db: Session, product_id: str, patch: ProductUpdate, actor: Optional[User]) -> Product:
        require_identity(actor)
        product = self.get_product(db, product_id)
        if not can_manage(actor, product.author):
            raise Forbidden("You do not have permission to edit this product")

        changes: Dict[str, Any] = {}
        for field, value in patch.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            changes[field] = VALIDATORS[field](value)

        for field, value in changes.items():
            setattr(product, field, value)
        return product_repo.save(db, product)

    def soft_delete_listing(self, db: Session, product_id: str, actor: Optional[User]) -> Product:
        require_identity(actor)
        product = self.get_product(db, product_id)
        if not can_manage(actor, product.author):
            raise Forbidden("You do not have permission to delete this product")

        if product_repo.soft_delete(db, product_id):
            db.commit()
            logger.info("Listing %s deleted by %s", product_id, actor.username)
        db.refresh(product)
        return product

    def purchase(self, db: Session, product_id: str, buyer: Optional[User],
                 now: Optional[datetime] = None) -> Dict[str, Any]:
        """Move ``price`` from buyer to seller and stamp the product.

        The three writes are guarded updates inside one transaction: the
        stamp only lands on an unsold row and the debit only on a balance
        that covers the price, so a lost race rolls everything back.
        """
        require_identity(buyer)
        now = now or utcnow()

        product = self.get_product(db, product_id)
        if product.purchased_by:
            raise AlreadySold()
        if product.is_deleted:
            raise NotFound("Product")
        if product.author == buyer.username:
            raise Forbidden("You cannot buy your own product")

        buyer_row = user_repo.get_by_username(db, buyer.username)
        if not buyer_row:
            raise NotFound("Buyer")
        price = product.price
        seller = product.author
        if not user_repo.get_by_username(db, seller):
            raise NotFound("Seller")
        if buyer_row.balance < price:
            raise InsufficientBalance()

        try:
            if not product_repo.mark_purchased(db, product_id, buyer.username, now):
                raise AlreadySold()
            if not user_repo.debit(db, buyer.username, price):
                raise InsufficientBalance()
            if not user_repo.credit(db, seller, price):
                raise NotFound("Seller")
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(product)
        db.refresh(buyer_row)
        logger.info("%s bought %s from %s for %d", buyer.username, product_id, seller, price)
        return {"product": product, "buyer_balance": buyer_row.balance}

    def sweep_expired_sales(self, db: Session, now: Optional[datetime] = None) -> int:
        """Hide sales older than the retention window. Safe to repeat."""
        now = now or utcnow()
        cutoff = now - timedelta(hours=settings.SALE_RETENTION_HOURS)
        deleted = product_repo.mark_expired_sales_deleted(db, cutoff)
        db.commit()
        if deleted:
            logger.info("Sweep hid %d completed sale(s)", deleted)
        return deleted
