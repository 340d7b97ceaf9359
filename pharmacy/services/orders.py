"""Order placement and cancellation.

``place_order`` turns line items into a persisted order: it locks the
referenced product rows, prices every line from the current product price,
works out shipping, tax and discount, writes the order and its lines and
decrements stock, all inside one unit of work. ``cancel_order`` is the
compensating path and puts each line's quantity back on its product.

Stock is only ever changed through conditional ``UPDATE`` statements
(``stock >= quantity``), so even a reader that skipped the row lock could
not push a product below zero.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional
from sqlalchemy.orm import Session
from pharmacy.core.config import settings
from pharmacy.core.errors import InputError, InsufficientStockError, InvalidStateError, NotFoundError
from pharmacy.db.models import Order, OrderStatus, PaymentStatus, ShippingMethod
from pharmacy.db.session import unit_of_work
from pharmacy.repositories import orders as order_repo
from pharmacy.repositories import products as product_repo
from pharmacy.repositories.pagination import Page

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


@dataclass
class LineItem:
    product_id: int
    quantity: int


@dataclass
class ShippingDetails:
    shipping_address: str
    phone_number: str
    payment_method: str
    payment_status: str = PaymentStatus.PENDING.value
    shipping_method: str = ShippingMethod.STANDARD.value
    notes: Optional[str] = None
    discount_code: Optional[str] = None


@dataclass
class OrderTotals:
    subtotal: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    discount_amount: Decimal

    @property
    def total_amount(self) -> Decimal:
        return self.subtotal + self.shipping_cost + self.tax_amount - self.discount_amount


def money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def shipping_cost_for(method: Optional[str]) -> Decimal:
    key = method.value if isinstance(method, ShippingMethod) else method
    return money(settings.SHIPPING_RATES.get(key or '', settings.DEFAULT_SHIPPING_RATE))


def tax_for(subtotal: Decimal) -> Decimal:
    return money(subtotal * settings.TAX_RATE)


def discount_for(subtotal: Decimal, discount_code: Optional[str]) -> Decimal:
    # Flat rate for any non-empty code; codes are not looked up anywhere.
    if not discount_code:
        return money(0)
    return money(subtotal * settings.DISCOUNT_RATE)


def compute_totals(subtotal: Decimal, shipping_method: Optional[str], discount_code: Optional[str]) -> OrderTotals:
    subtotal = money(subtotal)
    return OrderTotals(
        subtotal=subtotal,
        shipping_cost=shipping_cost_for(shipping_method),
        tax_amount=tax_for(subtotal),
        discount_amount=discount_for(subtotal, discount_code),
    )


def _merge_lines(line_items: Iterable[LineItem]) -> Dict[int, int]:
    merged: Dict[int, int] = {}
    for it in line_items:
        pid, qty = int(it.product_id), it.quantity
        if isinstance(qty, bool) or not isinstance(qty, int):
            raise InputError(f"Quantity for product {pid} must be a whole number")
        if qty <= 0:
            raise InputError(f"Quantity for product {pid} must be at least 1")
        merged[pid] = merged.get(pid, 0) + qty
    if not merged:
        raise InputError("At least one item is required")
    return merged


def place_order(db: Session, customer_id: int, shipping: ShippingDetails, line_items: List[LineItem]) -> Order:
    """Create a pending order for ``line_items`` and take the stock, all or nothing."""
    merged = _merge_lines(line_items)

    with unit_of_work(db):
        products = product_repo.lock_for_update(db, merged.keys())

        staged = []
        items_subtotal = Decimal('0')
        # product-id order, the same order every writer touches product rows in
        for pid, qty in sorted(merged.items()):
            product = products.get(pid)
            if product is None:
                raise NotFoundError(f"Product {pid} not found")
            if product.stock < qty:
                raise InsufficientStockError(pid, qty, product.stock)
            unit_price = money(product.price)
            line_subtotal = money(unit_price * qty)
            items_subtotal += line_subtotal
            staged.append({'product_id': pid, 'quantity': qty, 'unit_price': unit_price, 'subtotal': line_subtotal})

        totals = compute_totals(items_subtotal, shipping.shipping_method, shipping.discount_code)
        order = order_repo.create(db, {
            'user_id': customer_id,
            'status': OrderStatus.PENDING,
            'payment_method': shipping.payment_method,
            'payment_status': shipping.payment_status,
            'shipping_method': shipping.shipping_method,
            'subtotal': totals.subtotal,
            'shipping_cost': totals.shipping_cost,
            'tax_amount': totals.tax_amount,
            'discount_amount': totals.discount_amount,
            'total_amount': totals.total_amount,
            'shipping_address': shipping.shipping_address,
            'phone_number': shipping.phone_number,
            'notes': shipping.notes,
            'discount_code': shipping.discount_code or None,
        })
        for line in staged:
            order_repo.create_order_item(db, order, line)

        for line in staged:
            if not product_repo.decrement_stock(db, line['product_id'], line['quantity']):
                current = products[line['product_id']]
                db.refresh(current)
                raise InsufficientStockError(line['product_id'], line['quantity'], current.stock)

    logger.info("Order %s placed by user %s: %d line(s), total %s",
                order.id, customer_id, len(staged), totals.total_amount)
    return get_order(db, order.id)


def cancel_order(db: Session, order: Order) -> Order:
    """Cancel a pending order and put every line's quantity back in stock."""
    with unit_of_work(db):
        locked = order_repo.lock(db, order.id)
        if locked is None:
            raise NotFoundError(f"Order {order.id} not found")
        if locked.status != OrderStatus.PENDING:
            raise InvalidStateError(f"Order {order.id} cannot be cancelled from status '{locked.status.value}'")
        product_repo.lock_for_update(db, [i.product_id for i in locked.items])
        for item in sorted(locked.items, key=lambda i: i.product_id):
            product_repo.increment_stock(db, item.product_id, item.quantity)
        locked.status = OrderStatus.CANCELLED

    logger.info("Order %s cancelled, stock restored for %d line(s)", order.id, len(locked.items))
    return get_order(db, order.id)


def update_order_status(db: Session, order: Order, new_status: str) -> Order:
    """Write ``new_status`` as-is; no transition rules and no stock changes."""
    try:
        status = OrderStatus(new_status)
    except ValueError:
        raise InputError(f"Unknown order status '{new_status}'")
    with unit_of_work(db):
        order.status = status
        db.add(order)
    logger.info("Order %s status set to %s", order.id, status.value)
    return order


def get_order(db: Session, order_id: int) -> Order:
    order = order_repo.find_by_id(db, order_id)
    if order is None:
        raise NotFoundError(f"Order {order_id} not found")
    return order


def list_orders(db: Session, user_id: int, status: Optional[str] = None, sort: str = 'created_at',
                direction: str = 'desc', page: int = 1, per_page: int = 15) -> Page:
    return order_repo.find_by_user_id(db, user_id, status=status, sort=sort, direction=direction,
                                      page=page, per_page=per_page)
