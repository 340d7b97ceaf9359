import logging
from typing import Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from pharmacy.api.deps import get_current_user, get_db
from pharmacy.api.v1.schemas import OrderCreate, OrderRead, OrderStatusUpdate, Paginated
from pharmacy.core.policy import can
from pharmacy.core.sanitize import sanitize_input
from pharmacy.db.models import Order, OrderStatus, User
from pharmacy.kafka.producer import emit_order_event
from pharmacy.services import cart as cart_service
from pharmacy.services import orders as order_service
from pharmacy.services.orders import LineItem, ShippingDetails

logger = logging.getLogger(__name__)

router = APIRouter()

def _authorize(user: User, action: str, order) -> None:
    if not can(user, action, order):
        raise HTTPException(status_code=403, detail='Forbidden')

@router.get('/', response_model=Paginated[OrderRead])
def list_orders(db: Session = Depends(get_db), user: User = Depends(get_current_user),
                status: Optional[OrderStatus] = None,
                sort: Literal['created_at', 'total_amount', 'status'] = 'created_at',
                order: Literal['asc', 'desc'] = 'desc',
                page: int = Query(default=1, ge=1),
                per_page: int = Query(default=15, ge=1, le=100)):
    _authorize(user, 'view_any', Order)
    result = order_service.list_orders(db, user.id, status=status.value if status else None,
                                       sort=sort, direction=order, page=page, per_page=per_page)
    return Paginated[OrderRead].from_page(result, OrderRead)

@router.post('/', response_model=OrderRead, status_code=201)
def create_order(payload: OrderCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    _authorize(user, 'create', Order)
    data = sanitize_input(payload.model_dump(exclude={'items'}, mode='json'))
    shipping = ShippingDetails(**data)

    cart = None
    if payload.items is None:
        cart = cart_service.get_cart(db, user.id)
        lines = cart_service.snapshot_lines(cart)
    else:
        lines = [LineItem(product_id=i.product_id, quantity=i.quantity) for i in payload.items]

    order = order_service.place_order(db, user.id, shipping, lines)
    if cart is not None:
        cart_service.clear_cart(db, cart)
    emit_order_event('order.created', order)
    return order

@router.get('/{order_id}', response_model=OrderRead)
def get_order(order_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    order = order_service.get_order(db, order_id)
    _authorize(user, 'view', order)
    return order

@router.put('/{order_id}', response_model=OrderRead)
def update_order_status(order_id: int, payload: OrderStatusUpdate, db: Session = Depends(get_db),
                        user: User = Depends(get_current_user)):
    order = order_service.get_order(db, order_id)
    _authorize(user, 'update', order)
    previous = order.status
    order = order_service.update_order_status(db, order, payload.status.value)
    if previous != order.status:
        emit_order_event('order.status_changed', order)
    return order

@router.post('/{order_id}/cancel', response_model=OrderRead)
def cancel_order(order_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    order = order_service.get_order(db, order_id)
    _authorize(user, 'cancel', order)
    order = order_service.cancel_order(db, order)
    emit_order_event('order.cancelled', order)
    logger.info("Order %s cancelled by user %s", order.id, user.id)
    return order
