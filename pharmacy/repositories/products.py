from typing import Dict, Iterable, Optional
from sqlalchemy import Select, or_, select, update
from sqlalchemy.orm import Session, selectinload
from pharmacy.db.models import Product
from pharmacy.repositories.pagination import Page, paginate
from pharmacy.security.utils import now_utc

SORTABLE = {'price': Product.price, 'name': Product.name, 'created_at': Product.created_at}

def active() -> Select:
    return select(Product).where(Product.deleted_at.is_(None))

def get(db: Session, product_id: int) -> Optional[Product]:
    stmt = active().where(Product.id == product_id).options(selectinload(Product.images), selectinload(Product.category))
    return db.execute(stmt).scalars().first()

def list_products(db: Session, category_id: Optional[int] = None, search: Optional[str] = None,
                  sort: Optional[str] = None, order: str = 'asc', page: int = 1, per_page: int = 15) -> Page:
    stmt = active().options(selectinload(Product.images), selectinload(Product.category))
    if category_id:
        stmt = stmt.where(Product.category_id == category_id)
    if search:
        like = f"%{search.lower()}%"
        stmt = stmt.where(or_(Product.name.ilike(like), Product.description.ilike(like)))
    column = SORTABLE.get(sort or '', Product.id)
    stmt = stmt.order_by(column.desc() if order == 'desc' else column.asc(), Product.id)
    return paginate(db, stmt, page, per_page)

def create(db: Session, data: dict) -> Product:
    obj = Product(**data)
    db.add(obj)
    db.flush()
    return obj

def update_fields(db: Session, product: Product, data: dict) -> Product:
    for k, v in data.items():
        setattr(product, k, v)
    db.add(product)
    db.flush()
    return product

def soft_delete(db: Session, product: Product) -> None:
    product.deleted_at = now_utc()
    db.add(product)
    db.flush()

def lock_for_update(db: Session, product_ids: Iterable[int]) -> Dict[int, Product]:
    """SELECT ... FOR UPDATE the given active products, in id order so concurrent checkouts lock in the same order."""
    ids = sorted(set(product_ids))
    if not ids:
        return {}
    stmt = active().where(Product.id.in_(ids)).order_by(Product.id).with_for_update()
    return {p.id: p for p in db.execute(stmt).scalars().all()}

def decrement_stock(db: Session, product_id: int, quantity: int) -> bool:
    """Atomic ``stock = stock - quantity`` guarded by ``stock >= quantity``; False when no row qualified."""
    stmt = (
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount == 1

def increment_stock(db: Session, product_id: int, quantity: int) -> None:
    stmt = (
        update(Product)
        .where(Product.id == product_id)
        .values(stock=Product.stock + quantity)
        .execution_options(synchronize_session=False)
    )
    db.execute(stmt)
