import logging
import re
import unicodedata
from typing import List, Optional
from sqlalchemy.orm import Session
from pharmacy.core.errors import ConflictError, NotFoundError
from pharmacy.db.models import Category, Product, ProductImage
from pharmacy.db.session import unit_of_work
from pharmacy.repositories import categories as category_repo
from pharmacy.repositories import products as product_repo
from pharmacy.repositories.pagination import Page
from pharmacy.services.storage import upload_bytes

logger = logging.getLogger(__name__)

def slugify(name: str) -> str:
    text = unicodedata.normalize('NFKD', name).encode('ascii', 'ignore').decode('ascii')
    return re.sub(r'[^a-z0-9]+', '-', text.lower()).strip('-')

# --- products ---

def list_products(db: Session, **filters) -> Page:
    return product_repo.list_products(db, **filters)

def get_product(db: Session, product_id: int) -> Product:
    obj = product_repo.get(db, product_id)
    if obj is None:
        raise NotFoundError(f"Product {product_id} not found")
    return obj

def _check_category(db: Session, category_id: Optional[int]) -> None:
    if category_id is not None and category_repo.find_by_id(db, category_id) is None:
        raise NotFoundError(f"Category {category_id} not found")

def create_product(db: Session, data: dict) -> Product:
    _check_category(db, data.get('category_id'))
    with unit_of_work(db):
        obj = product_repo.create(db, {**data, 'slug': slugify(data['name'])})
    logger.info("Product %s created", obj.id)
    return get_product(db, obj.id)

def update_product(db: Session, product: Product, data: dict) -> Product:
    if 'category_id' in data:
        _check_category(db, data['category_id'])
    if 'name' in data and data['name'] != product.name:
        data = {**data, 'slug': slugify(data['name'])}
    with unit_of_work(db):
        product_repo.update_fields(db, product, data)
    logger.info("Product %s updated", product.id)
    return get_product(db, product.id)

def delete_product(db: Session, product: Product) -> None:
    with unit_of_work(db):
        product_repo.soft_delete(db, product)
    logger.info("Product %s deleted", product.id)

def add_product_image(db: Session, product: Product, content: bytes, content_type: str, ext: str = '') -> Product:
    key, url = upload_bytes(content, content_type, ext=ext)
    with unit_of_work(db):
        position = len(product.images)
        product.images.append(ProductImage(object_key=key, url=url, position=position))
        if not product.image_url:
            product.image_url = url
    logger.info("Image %s attached to product %s", key, product.id)
    return get_product(db, product.id)

# --- categories ---

def list_categories(db: Session) -> List[Category]:
    return category_repo.list_all(db)

def get_category(db: Session, category_id: int) -> Category:
    obj = category_repo.find_by_id(db, category_id)
    if obj is None:
        raise NotFoundError(f"Category {category_id} not found")
    return obj

def create_category(db: Session, data: dict) -> Category:
    if category_repo.find_by_name(db, data['name']):
        raise ConflictError("Category already exists")
    with unit_of_work(db):
        obj = category_repo.create(db, data)
    logger.info("Category %s created", obj.id)
    return get_category(db, obj.id)

def update_category(db: Session, category: Category, data: dict) -> Category:
    if 'name' in data and data['name'] != category.name:
        clash = category_repo.find_by_name(db, data['name'])
        if clash is not None and clash.id != category.id:
            raise ConflictError("Category already exists")
    with unit_of_work(db):
        category_repo.update_fields(db, category, data)
    logger.info("Category %s updated", category.id)
    return get_category(db, category.id)

def delete_category(db: Session, category: Category) -> None:
    if category_repo.has_products(db, category):
        raise ConflictError("Category still has products")
    category_id = category.id
    with unit_of_work(db):
        category_repo.delete(db, category)
    logger.info("Category %s deleted", category_id)
