from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Generic, List, Optional, TypeVar
from pharmacy.db.models import OrderStatus, PaymentMethod, PaymentStatus, ShippingMethod, UserRole
from pharmacy.core.sanitize import strip_tags

T = TypeVar('T')

def _clean(v):
    # strip before length checks so tag-only or blank input fails min_length
    return strip_tags(v) if isinstance(v, str) else v

class PageMeta(BaseModel):
    current_page: int
    last_page: int
    per_page: int
    total: int

class Paginated(BaseModel, Generic[T]):
    items: List[T]
    meta: PageMeta

    @classmethod
    def from_page(cls, page, item_model):
        return cls(
            items=[item_model.model_validate(i) for i in page.items],
            meta=PageMeta(current_page=page.page, last_page=page.last_page, per_page=page.per_page, total=page.total),
        )

# --- auth ---

class RegisterPayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8)
    password_confirmation: str
    user_type: UserRole = UserRole.CUSTOMER

    @field_validator('name', mode='before')
    @classmethod
    def clean_name(cls, v):
        return _clean(v)

    @model_validator(mode='after')
    def passwords_match(self):
        if self.password != self.password_confirmation:
            raise ValueError('Password confirmation does not match')
        return self

class LoginPayload(BaseModel):
    email: EmailStr
    password: str

class UserRead(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: UserRole
    class Config: from_attributes = True

class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = 'bearer'

class LoginResponse(TokenPair):
    user: UserRead

class RefreshRequest(BaseModel):
    refresh_token: str

# --- catalog ---

class CategoryBase(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = None
class CategoryCreate(CategoryBase):
    @field_validator('name', mode='before')
    @classmethod
    def clean_name(cls, v):
        return _clean(v)
class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None

    @field_validator('name', mode='before')
    @classmethod
    def clean_name(cls, v):
        if v is None:
            raise ValueError('name may not be null')
        return _clean(v)
class CategoryRead(CategoryBase):
    id: int
    class Config: from_attributes = True

class ProductImageRead(BaseModel):
    id: int
    url: str
    object_key: str
    position: int
    class Config: from_attributes = True

class ProductBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = ''
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(ge=0)
    category_id: Optional[int] = None
    image_url: Optional[str] = None
class ProductCreate(ProductBase):
    @field_validator('name', mode='before')
    @classmethod
    def clean_name(cls, v):
        return _clean(v)
class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    stock: Optional[int] = Field(default=None, ge=0)
    category_id: Optional[int] = None
    image_url: Optional[str] = None

    # omitted means unchanged; an explicit null is rejected
    @field_validator('name', 'description', 'price', 'stock', mode='before')
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f'{info.field_name} may not be null')
        return _clean(v) if info.field_name == 'name' else v
class ProductRead(ProductBase):
    id: int
    slug: str
    images: List[ProductImageRead] = []
    created_at: datetime
    updated_at: datetime
    class Config: from_attributes = True

class CategoryDetail(CategoryRead):
    products: List[ProductRead] = []

# --- cart ---

class CartItemAdd(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)

class CartItemUpdate(BaseModel):
    quantity: int = Field(ge=1)

class CartItemRead(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    class Config: from_attributes = True

class CartRead(BaseModel):
    id: int
    items: List[CartItemRead] = []
    total_amount: Decimal
    class Config: from_attributes = True

# --- orders ---

class OrderLineIn(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)

class OrderCreate(BaseModel):
    shipping_address: str = Field(min_length=1, max_length=255)
    phone_number: str = Field(min_length=1, max_length=20)
    notes: Optional[str] = Field(default=None, max_length=1000)
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.PENDING
    shipping_method: ShippingMethod = ShippingMethod.STANDARD
    discount_code: Optional[str] = Field(default=None, max_length=64)
    # when omitted the caller's cart is used
    items: Optional[List[OrderLineIn]] = None

    @field_validator('shipping_address', 'phone_number', 'notes', 'discount_code', mode='before')
    @classmethod
    def clean_text(cls, v):
        return _clean(v)

class OrderStatusUpdate(BaseModel):
    status: OrderStatus

class OrderItemRead(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    class Config: from_attributes = True

class OrderRead(BaseModel):
    id: int
    user_id: int
    status: OrderStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    shipping_method: ShippingMethod
    subtotal: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    shipping_address: str
    phone_number: str
    notes: Optional[str] = None
    discount_code: Optional[str] = None
    items: List[OrderItemRead] = []
    created_at: datetime
    updated_at: datetime
    class Config: from_attributes = True
