from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from pharmacy.api.deps import get_current_user, get_db
from pharmacy.api.v1.schemas import CartItemAdd, CartItemUpdate, CartRead
from pharmacy.core.policy import can
from pharmacy.db.models import CartItem, User
from pharmacy.services import cart as cart_service

router = APIRouter()

def _own_cart(db: Session, user: User, action: str):
    cart = cart_service.get_cart(db, user.id)
    if not can(user, action, cart):
        raise HTTPException(status_code=403, detail='Forbidden')
    return cart

@router.get('/', response_model=CartRead)
def get_cart(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return _own_cart(db, user, 'view')

@router.delete('/', response_model=CartRead)
def clear_cart(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    cart = _own_cart(db, user, 'delete')
    cart_service.clear_cart(db, cart)
    return cart

@router.post('/items', response_model=CartRead, status_code=201)
def add_item(payload: CartItemAdd, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    if not can(user, 'create', CartItem):
        raise HTTPException(status_code=403, detail='Only customers can add items to a cart')
    cart = cart_service.get_cart(db, user.id)
    cart_service.add_item(db, cart, payload.product_id, payload.quantity)
    return cart

@router.put('/items/{product_id}', response_model=CartRead)
def update_item(product_id: int, payload: CartItemUpdate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    cart = _own_cart(db, user, 'update')
    cart_service.update_item(db, cart, product_id, payload.quantity)
    return cart

@router.delete('/items/{product_id}', response_model=CartRead)
def remove_item(product_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    cart = _own_cart(db, user, 'delete')
    cart_service.remove_item(db, cart, product_id)
    return cart
