from datetime import timedelta

import pytest

from bazaar.core.errors import (
    AlreadySold,
    Forbidden,
    InsufficientBalance,
    NotAuthenticated,
    NotFound,
    ValidationFailed,
)
from bazaar.db.models.market_model import Product
from bazaar.schemas.market_schema import ProductCreate, ProductUpdate
from bazaar.services import market_service as market_module
from bazaar.services.auth_service import AuthService
from bazaar.services.market_service import MarketService, validate_image_url, validate_price
from conftest import T

market = MarketService()
auth = AuthService()


def balance(db, username):
    return auth.get_user(db, username).balance


def listing(**overrides):
    data = {
        "title": "Film camera",
        "description": "35mm rangefinder",
        "price": 100_000,
        "image_url": "https://img.example.com/camera.JPG",
    }
    data.update(overrides)
    return ProductCreate(**data)


# --- purchase ---

def test_alice_buys_from_bob(db, make_user, make_product):
    alice = make_user("alice", balance=5_000_000)
    make_user("bob", balance=0)
    product = make_product("bob", price=100_000)

    result = market.purchase(db, product.id, alice, now=T)

    assert result["buyer_balance"] == 4_900_000
    assert balance(db, "alice") == 4_900_000
    assert balance(db, "bob") == 100_000
    assert result["product"].purchased_by == "alice"
    assert result["product"].purchased_at == T


def test_second_purchase_fails_and_moves_no_money(db, make_user, make_product):
    alice = make_user("alice")
    erin = make_user("erin")
    make_user("bob", balance=0)
    product = make_product("bob", price=100_000)
    market.purchase(db, product.id, alice, now=T)

    with pytest.raises(AlreadySold):
        market.purchase(db, product.id, erin, now=T + timedelta(minutes=1))

    assert balance(db, "erin") == 5_000_000
    assert balance(db, "bob") == 100_000
    stamped = market.get_product(db, product.id)
    assert stamped.purchased_by == "alice"
    assert stamped.purchased_at == T


def test_insufficient_balance_mutates_nothing(db, make_user, make_product):
    poor = make_user("poor_buyer", balance=99_999)
    make_user("bob", balance=0)
    product = make_product("bob", price=100_000)

    with pytest.raises(InsufficientBalance):
        market.purchase(db, product.id, poor)

    assert balance(db, "poor_buyer") == 99_999
    assert balance(db, "bob") == 0
    assert market.get_product(db, product.id).purchased_by is None


def test_purchase_unknown_product(db, make_user):
    alice = make_user("alice")
    with pytest.raises(NotFound):
        market.purchase(db, "missing", alice)


def test_purchase_fails_when_seller_is_gone(db, make_user, make_product):
    alice = make_user("alice")
    product = make_product("departed", price=10)

    with pytest.raises(NotFound):
        market.purchase(db, product.id, alice)

    assert balance(db, "alice") == 5_000_000
    assert market.get_product(db, product.id).purchased_by is None


def test_missing_seller_is_reported_before_balance(db, make_user, make_product):
    poor = make_user("poor", balance=1)
    product = make_product("departed", price=500)

    with pytest.raises(NotFound):
        market.purchase(db, product.id, poor)

    assert balance(db, "poor") == 1


def test_cannot_buy_own_or_deleted_listing(db, make_user, make_product):
    bob = make_user("bob")
    alice = make_user("alice")
    own = make_product("bob")
    gone = make_product("bob", is_deleted=True)

    with pytest.raises(Forbidden):
        market.purchase(db, own.id, bob)
    with pytest.raises(NotFound):
        market.purchase(db, gone.id, alice)


def test_purchase_rolls_back_when_stamp_loses_race(db, make_user, make_product, monkeypatch):
    alice = make_user("alice")
    make_user("bob", balance=0)
    product = make_product("bob", price=500)
    product_id = product.id
    # another buyer lands between our read and our write
    db.query(Product).filter(Product.id == product_id).update(
        {Product.purchased_by: "erin", Product.purchased_at: T}, synchronize_session=False
    )
    db.commit()
    stale = Product(id=product_id, author="bob", price=500, purchased_by=None, is_deleted=False)
    monkeypatch.setattr(market_module.product_repo, "get_by_id", lambda session, pid: stale)

    with pytest.raises(AlreadySold):
        market.purchase(db, product_id, alice)

    assert balance(db, "alice") == 5_000_000
    assert balance(db, "bob") == 0
    assert db.query(Product).filter(Product.id == product_id).one().purchased_by == "erin"


# --- sweep ---

def test_sweep_hides_only_old_sales_and_is_idempotent(db, make_user, make_product):
    make_user("bob")
    old = make_product("bob", purchased_by="alice", purchased_at=T - timedelta(hours=25))
    fresh = make_product("bob", purchased_by="alice", purchased_at=T - timedelta(hours=23))
    unsold = make_product("bob", created_at=T - timedelta(days=30))

    assert market.sweep_expired_sales(db, now=T) == 1
    assert market.sweep_expired_sales(db, now=T) == 0

    assert market.get_product(db, old.id).is_deleted is True
    assert market.get_product(db, fresh.id).is_deleted is False
    assert market.get_product(db, unsold.id).is_deleted is False


def test_swept_sale_still_visible_in_history(db, make_user, make_product):
    make_user("bob")
    sold = make_product("bob", purchased_by="alice", purchased_at=T - timedelta(days=2))
    market.sweep_expired_sales(db, now=T)

    assert sold.id not in [p.id for p in market.list_products(db)]
    assert [p.id for p in market.list_user_purchases(db, "alice")] == [sold.id]
    assert [p.id for p in market.list_user_products(db, "bob")] == [sold.id]
    assert market.get_product(db, sold.id).is_deleted is True


# --- listings ---

def test_create_listing(db, make_user):
    bob = make_user("bob")
    product = market.create_listing(db, listing(price="2500"), bob, now=T)

    assert product.author == "bob"
    assert product.price == 2500
    assert product.is_deleted is False
    assert product.created_at == T
    assert product.purchased_by is None and product.purchased_at is None


def test_create_listing_requires_identity(db):
    with pytest.raises(NotAuthenticated):
        market.create_listing(db, listing(), None)


@pytest.mark.parametrize("field,value", [
    ("title", "   "),
    ("title", "x" * 101),
    ("description", ""),
    ("description", "x" * 2001),
    ("price", -1),
    ("price", 10_000_001),
    ("price", "12.5"),
    ("price", "abc"),
    ("image_url", "not a url"),
    ("image_url", "https://img.example.com/file.pdf"),
    ("image_url", "ftp://img.example.com/a.png"),
])
def test_create_listing_validation(db, make_user, field, value):
    bob = make_user("bob")
    with pytest.raises(ValidationFailed) as exc:
        market.create_listing(db, listing(**{field: value}), bob)
    assert exc.value.field == field


def test_price_and_url_validators_accept_edges():
    assert validate_price(0) == 0
    assert validate_price(10_000_000) == 10_000_000
    assert validate_price("40.0") == 40
    assert validate_image_url("http://x.example.org/a/b.WebP")


def test_update_listing_by_author_and_admin(db, make_user, make_product):
    bob = make_user("bob")
    admin = make_user("admin", is_admin=True)
    product = make_product("bob", price=100)

    updated = market.update_listing(db, product.id, ProductUpdate(price=150), bob)
    assert updated.price == 150
    assert updated.title == "Film camera"

    updated = market.update_listing(db, product.id, ProductUpdate(title="Renamed"), admin)
    assert updated.title == "Renamed"


def test_update_listing_rejects_others_and_bad_values(db, make_user, make_product):
    bob = make_user("bob")
    mallory = make_user("mallory")
    product = make_product("bob")

    with pytest.raises(Forbidden):
        market.update_listing(db, product.id, ProductUpdate(price=1), mallory)
    with pytest.raises(ValidationFailed):
        market.update_listing(db, product.id, ProductUpdate(price=-5), bob)
    with pytest.raises(NotFound):
        market.update_listing(db, "missing", ProductUpdate(price=1), bob)
    assert market.get_product(db, product.id).price == 100_000


def test_soft_delete_is_monotonic(db, make_user, make_product):
    bob = make_user("bob")
    mallory = make_user("mallory")
    product = make_product("bob")

    with pytest.raises(Forbidden):
        market.soft_delete_listing(db, product.id, mallory)

    assert market.soft_delete_listing(db, product.id, bob).is_deleted is True
    assert market.soft_delete_listing(db, product.id, bob).is_deleted is True
    assert market.get_product(db, product.id).is_deleted is True


def test_list_products_filters_and_orders(db, make_user, make_product):
    make_user("bob")
    lamp = make_product("bob", title="Desk lamp", description="brass", created_at=T)
    camera = make_product("bob", title="Camera", description="has a lamp mount", created_at=T + timedelta(hours=1))
    make_product("bob", title="Old lamp", is_deleted=True)

    assert [p.id for p in market.list_products(db)] == [camera.id, lamp.id]
    assert [p.id for p in market.list_products(db, "LAMP")] == [lamp.id]
    assert [p.id for p in market.list_products(db, "lamp", "description")] == [camera.id]
    assert [p.id for p in market.list_products(db, "lamp", "all")] == [camera.id, lamp.id]
    with pytest.raises(ValidationFailed):
        market.list_products(db, "lamp", "author")
