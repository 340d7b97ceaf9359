"""Authorization rules as a single capability check.

``can(actor, action, resource)`` accepts either a model instance (ownership
rules apply) or a model class for actions that have no instance yet, such
as ``can(user, "create", Order)``. Unknown (resource, action) pairs are
denied.
"""
from typing import Callable, Dict, Optional, Tuple
from pharmacy.db.models import Cart, CartItem, Category, Order, Product, User, UserRole

Rule = Callable[[User, Optional[object]], bool]

def _anyone(user: User, obj) -> bool:
    return True

def _admin(user: User, obj) -> bool:
    return user.is_admin

def _customer(user: User, obj) -> bool:
    return user.is_customer

def _staff(user: User, obj) -> bool:
    return user.role in (UserRole.ADMIN, UserRole.PHARMACIST)

def _order_owner(user: User, order: Order) -> bool:
    return user.id == order.user_id

def _admin_or_order_owner(user: User, order: Order) -> bool:
    return user.is_admin or _order_owner(user, order)

def _cart_owner(user: User, cart: Cart) -> bool:
    return user.id == cart.user_id

def _cart_item_owner(user: User, item: CartItem) -> bool:
    return user.id == item.cart.user_id

# The cancel rule only checks who may cancel; the pending-status
# precondition belongs to the order service.
_RULES: Dict[Tuple[type, str], Rule] = {
    (Order, 'view_any'): _anyone,
    (Order, 'view'): _admin_or_order_owner,
    (Order, 'create'): _customer,
    (Order, 'update'): _admin,
    (Order, 'cancel'): lambda u, o: u.is_admin or (u.is_customer and _order_owner(u, o)),
    (Order, 'delete'): _admin,

    (Cart, 'view_any'): _anyone,
    (Cart, 'view'): lambda u, c: u.is_admin or _cart_owner(u, c),
    (Cart, 'update'): _cart_owner,
    (Cart, 'delete'): _cart_owner,

    (CartItem, 'view_any'): _anyone,
    (CartItem, 'view'): lambda u, i: u.is_admin or _cart_item_owner(u, i),
    (CartItem, 'create'): _customer,
    (CartItem, 'update'): _cart_item_owner,
    (CartItem, 'delete'): _cart_item_owner,

    (Product, 'create'): _staff,
    (Product, 'update'): _staff,
    (Product, 'delete'): _staff,

    (Category, 'create'): _staff,
    (Category, 'update'): _staff,
    (Category, 'delete'): _staff,
}

def can(actor: User, action: str, resource: object) -> bool:
    kind = resource if isinstance(resource, type) else type(resource)
    rule = _RULES.get((kind, action))
    if rule is None:
        return False
    return rule(actor, None if isinstance(resource, type) else resource)
