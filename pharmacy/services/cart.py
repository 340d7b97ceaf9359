import logging
from typing import List
from sqlalchemy.orm import Session
from pharmacy.core.errors import InsufficientStockError, InputError, NotFoundError
from pharmacy.db.models import Cart, CartItem
from pharmacy.db.session import unit_of_work
from pharmacy.repositories import carts as cart_repo
from pharmacy.repositories import products as product_repo
from pharmacy.services.orders import LineItem, money

logger = logging.getLogger(__name__)

def get_cart(db: Session, user_id: int) -> Cart:
    with unit_of_work(db):
        cart = cart_repo.get_or_create_cart(db, user_id)
        cart_repo.update_total(db, cart)
    return cart

def add_item(db: Session, cart: Cart, product_id: int, quantity: int) -> CartItem:
    if quantity < 1:
        raise InputError("Quantity must be at least 1")
    with unit_of_work(db):
        product = product_repo.get(db, product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        existing = cart_repo.get_item(cart, product_id)
        wanted = quantity + (existing.quantity if existing else 0)
        if product.stock < wanted:
            raise InsufficientStockError(product_id, wanted, product.stock)
        if existing:
            item = cart_repo.update_item(db, existing, wanted)
        else:
            item = cart_repo.add_item(db, cart, product_id, quantity, money(product.price))
        cart_repo.update_total(db, cart)
    logger.info("Product %s added to cart %s (qty %s)", product_id, cart.id, item.quantity)
    return item

def update_item(db: Session, cart: Cart, product_id: int, quantity: int) -> CartItem:
    if quantity < 1:
        raise InputError("Quantity must be at least 1")
    with unit_of_work(db):
        item = cart_repo.get_item(cart, product_id)
        if item is None:
            raise NotFoundError("Cart item not found")
        product = product_repo.get(db, product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        if product.stock < quantity:
            raise InsufficientStockError(product_id, quantity, product.stock)
        cart_repo.update_item(db, item, quantity)
        cart_repo.update_total(db, cart)
    logger.info("Cart %s item for product %s set to qty %s", cart.id, product_id, quantity)
    return item

def remove_item(db: Session, cart: Cart, product_id: int) -> None:
    with unit_of_work(db):
        item = cart_repo.get_item(cart, product_id)
        if item is None:
            raise NotFoundError("Cart item not found")
        cart_repo.remove_item(db, cart, item)
        cart_repo.update_total(db, cart)
    logger.info("Product %s removed from cart %s", product_id, cart.id)

def clear_cart(db: Session, cart: Cart) -> None:
    with unit_of_work(db):
        cart_repo.clear_cart(db, cart)
        cart_repo.update_total(db, cart)
    logger.info("Cart %s cleared", cart.id)

def snapshot_lines(cart: Cart) -> List[LineItem]:
    """The cart's lines as order input; the cart itself is left untouched."""
    return [LineItem(product_id=i.product_id, quantity=i.quantity) for i in cart.items]
