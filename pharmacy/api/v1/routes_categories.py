from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from pharmacy.api.deps import get_db, require_permission
from pharmacy.api.v1.schemas import CategoryCreate, CategoryDetail, CategoryRead, CategoryUpdate
from pharmacy.core.sanitize import sanitize_input
from pharmacy.db.models import Category
from pharmacy.services import catalog

router = APIRouter()

@router.get('/', response_model=List[CategoryRead])
def list_categories(db: Session = Depends(get_db)):
    return catalog.list_categories(db)

@router.get('/{category_id}', response_model=CategoryDetail)
def get_category(category_id: int, db: Session = Depends(get_db)):
    return catalog.get_category(db, category_id)

@router.post('/', response_model=CategoryRead, status_code=201, dependencies=[Depends(require_permission('create', Category))])
def create_category(payload: CategoryCreate, db: Session = Depends(get_db)):
    return catalog.create_category(db, sanitize_input(payload.model_dump()))

@router.put('/{category_id}', response_model=CategoryRead, dependencies=[Depends(require_permission('update', Category))])
def update_category(category_id: int, payload: CategoryUpdate, db: Session = Depends(get_db)):
    obj = catalog.get_category(db, category_id)
    return catalog.update_category(db, obj, sanitize_input(payload.model_dump(exclude_unset=True)))

@router.delete('/{category_id}', status_code=204, dependencies=[Depends(require_permission('delete', Category))])
def delete_category(category_id: int, db: Session = Depends(get_db)):
    obj = catalog.get_category(db, category_id)
    catalog.delete_category(db, obj)
