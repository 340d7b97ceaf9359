from dataclasses import dataclass
from math import ceil
from typing import Generic, List, TypeVar
from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

T = TypeVar("T")

@dataclass
class Page(Generic[T]):
    items: List[T]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, ceil(self.total / self.per_page))

def paginate(db: Session, stmt: Select, page: int, per_page: int) -> Page:
    total = db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
    items = db.execute(stmt.offset((page - 1) * per_page).limit(per_page)).scalars().unique().all()
    return Page(items=list(items), total=total, page=page, per_page=per_page)
