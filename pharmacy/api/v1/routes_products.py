from fastapi import APIRouter, Depends, File, Query, UploadFile
from typing import Literal, Optional
from sqlalchemy.orm import Session
from pharmacy.api.deps import get_db, require_permission
from pharmacy.api.v1.schemas import Paginated, ProductCreate, ProductRead, ProductUpdate
from pharmacy.core.sanitize import sanitize_input
from pharmacy.db.models import Product
from pharmacy.services import catalog

router = APIRouter()

@router.get('/', response_model=Paginated[ProductRead])
def list_products(db: Session = Depends(get_db),
                  category_id: Optional[int] = None,
                  search: Optional[str] = Query(default=None, max_length=255),
                  sort: Optional[Literal['price', 'name', 'created_at']] = None,
                  order: Literal['asc', 'desc'] = 'asc',
                  page: int = Query(default=1, ge=1),
                  per_page: int = Query(default=15, ge=1, le=100)):
    result = catalog.list_products(db, category_id=category_id, search=search, sort=sort,
                                   order=order, page=page, per_page=per_page)
    return Paginated[ProductRead].from_page(result, ProductRead)

@router.get('/{product_id}', response_model=ProductRead)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return catalog.get_product(db, product_id)

@router.post('/', response_model=ProductRead, status_code=201, dependencies=[Depends(require_permission('create', Product))])
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    return catalog.create_product(db, sanitize_input(payload.model_dump()))

@router.put('/{product_id}', response_model=ProductRead, dependencies=[Depends(require_permission('update', Product))])
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    obj = catalog.get_product(db, product_id)
    return catalog.update_product(db, obj, sanitize_input(payload.model_dump(exclude_unset=True)))

@router.delete('/{product_id}', status_code=204, dependencies=[Depends(require_permission('delete', Product))])
def delete_product(product_id: int, db: Session = Depends(get_db)):
    obj = catalog.get_product(db, product_id)
    catalog.delete_product(db, obj)

@router.post('/{product_id}/images', response_model=ProductRead, dependencies=[Depends(require_permission('update', Product))])
async def upload_product_image(product_id: int, file: UploadFile = File(...), db: Session = Depends(get_db)):
    obj = catalog.get_product(db, product_id)
    content = await file.read()
    filename = file.filename or ''
    ext = '.' + filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
    return catalog.add_product_image(db, obj, content, file.content_type or 'application/octet-stream', ext=ext)
