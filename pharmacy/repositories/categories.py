from typing import List, Optional
from sqlalchemy import exists, select
from sqlalchemy.orm import Session, selectinload
from pharmacy.db.models import Category, Product

def list_all(db: Session) -> List[Category]:
    return list(db.execute(select(Category).order_by(Category.name)).scalars().all())

def find_by_id(db: Session, category_id: int) -> Optional[Category]:
    stmt = select(Category).where(Category.id == category_id).options(selectinload(Category.products))
    return db.execute(stmt).scalars().first()

def find_by_name(db: Session, name: str) -> Optional[Category]:
    return db.execute(select(Category).where(Category.name == name)).scalars().first()

def create(db: Session, data: dict) -> Category:
    obj = Category(**data)
    db.add(obj)
    db.flush()
    return obj

def update_fields(db: Session, category: Category, data: dict) -> Category:
    for k, v in data.items():
        setattr(category, k, v)
    db.flush()
    return category

def delete(db: Session, category: Category) -> None:
    db.delete(category)
    db.flush()

def has_products(db: Session, category: Category) -> bool:
    return bool(db.scalar(select(exists().where(Product.category_id == category.id))))
