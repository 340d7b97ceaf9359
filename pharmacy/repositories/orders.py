from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload
from pharmacy.db.models import Order, OrderItem
from pharmacy.repositories.pagination import Page, paginate

SORTABLE = {'created_at': Order.created_at, 'total_amount': Order.total_amount, 'status': Order.status}

def _with_items():
    return selectinload(Order.items).selectinload(OrderItem.product)

def create(db: Session, data: dict) -> Order:
    order = Order(**data)
    db.add(order)
    db.flush()  # assigns order.id
    return order

def create_order_item(db: Session, order: Order, data: dict) -> OrderItem:
    item = OrderItem(**data)
    order.items.append(item)
    db.flush()
    return item

def find_by_id(db: Session, order_id: int) -> Optional[Order]:
    stmt = select(Order).where(Order.id == order_id).options(_with_items())
    return db.execute(stmt).scalars().first()

def lock(db: Session, order_id: int) -> Optional[Order]:
    stmt = select(Order).where(Order.id == order_id).with_for_update().execution_options(populate_existing=True)
    return db.execute(stmt).scalars().first()

def find_by_user_id(db: Session, user_id: int, status: Optional[str] = None, sort: str = 'created_at',
                    direction: str = 'desc', page: int = 1, per_page: int = 15) -> Page:
    stmt = select(Order).where(Order.user_id == user_id).options(_with_items())
    if status:
        stmt = stmt.where(Order.status == status)
    column = SORTABLE.get(sort, Order.created_at)
    stmt = stmt.order_by(column.desc() if direction == 'desc' else column.asc(), Order.id.desc())
    return paginate(db, stmt, page, per_page)
