from decimal import Decimal
from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload
from pharmacy.db.models import Cart, CartItem

def get_or_create_cart(db: Session, user_id: int) -> Cart:
    stmt = select(Cart).where(Cart.user_id == user_id).options(selectinload(Cart.items).selectinload(CartItem.product))
    cart = db.execute(stmt).scalars().first()
    if cart is None:
        cart = Cart(user_id=user_id, total_amount=Decimal('0.00'))
        db.add(cart)
        db.flush()
    return cart

def get_item(cart: Cart, product_id: int) -> Optional[CartItem]:
    return next((i for i in cart.items if i.product_id == product_id), None)

def add_item(db: Session, cart: Cart, product_id: int, quantity: int, unit_price: Decimal) -> CartItem:
    item = CartItem(product_id=product_id, quantity=quantity, unit_price=unit_price, subtotal=unit_price * quantity)
    cart.items.append(item)
    db.flush()
    return item

def update_item(db: Session, item: CartItem, quantity: int) -> CartItem:
    item.quantity = quantity
    item.subtotal = item.unit_price * quantity
    db.flush()
    return item

def remove_item(db: Session, cart: Cart, item: CartItem) -> None:
    cart.items.remove(item)
    db.flush()

def clear_cart(db: Session, cart: Cart) -> None:
    cart.items.clear()
    db.flush()

def update_total(db: Session, cart: Cart) -> Cart:
    cart.total_amount = sum((i.subtotal for i in cart.items), Decimal('0.00'))
    db.flush()
    return cart
