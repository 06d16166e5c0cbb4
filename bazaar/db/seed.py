import json
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from bazaar.core.clock import utcnow
from bazaar.core.security import hash_password
from bazaar.db.models.market_model import ChatMessage, Product, Report
from bazaar.db.models.user_model import User

logger = logging.getLogger(__name__)


def _timestamp(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def seed_fixtures(db: Session, path: str) -> bool:
    """Load the static JSON fixtures into an empty store.

    Fixture passwords are plain text and get hashed on the way in. Returns
    False when the store already has users.
    """
    if db.query(User).first() is not None:
        return False

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    for u in data.get("users", []):
        db.add(User(
            username=u["username"],
            password_hash=hash_password(u["password"]),
            bio=u.get("bio") or None,
            is_admin=bool(u.get("isAdmin", False)),
            can_login=bool(u.get("canLogin", True)),
            ban_expiry=_timestamp(u.get("banExpiry")),
            balance=int(u.get("balance", 0)),
        ))

    for p in data.get("products", []):
        product = Product(
            title=p["title"],
            description=p["description"],
            price=int(p["price"]),
            image_url=p["imageUrl"],
            author=p["author"],
            created_at=_timestamp(p.get("createdAt")) or utcnow(),
            purchased_by=p.get("purchasedBy"),
            purchased_at=_timestamp(p.get("purchasedAt")),
            is_deleted=bool(p.get("isDeleted", False)),
        )
        if p.get("id"):
            product.id = p["id"]
        db.add(product)

    for m in data.get("messages", []):
        db.add(ChatMessage(
            content=m["content"],
            author=m["author"],
            created_at=_timestamp(m.get("createdAt")) or utcnow(),
            is_private=bool(m.get("isPrivate", False)),
            recipient=m.get("recipient"),
        ))

    for r in data.get("reports", []):
        db.add(Report(
            type=r["type"],
            content_id=r.get("contentId"),
            reported_user=r["reportedUser"],
            reason=r["reason"],
            reported_by=r["reportedBy"],
            created_at=_timestamp(r.get("createdAt")) or utcnow(),
        ))

    db.commit()
    logger.info("Seeded store from %s", path)
    return True
