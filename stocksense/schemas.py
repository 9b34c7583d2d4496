from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from stocksense.models import ProductStatus

MAX_QUANTITY = 2**31 - 1
NAME_MAX_LENGTH = 255
SKU_MAX_LENGTH = 64
CATEGORY_MAX_LENGTH = 120
LOCATION_MAX_LENGTH = 120


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    full_name: str
    is_active: bool
    created_at: datetime


class LoginRequest(BaseModel):
    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=6, max_length=128)


class SignupRequest(LoginRequest):
    full_name: str = Field(min_length=1, max_length=120)


class LoginResponse(BaseModel):
    api_key: str
    user: UserRead


class ProductBase(BaseModel):
    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    sku: str = Field(min_length=1, max_length=SKU_MAX_LENGTH)
    category: str = Field(min_length=1, max_length=CATEGORY_MAX_LENGTH)
    description: str | None = None
    location: str | None = Field(default=None, max_length=LOCATION_MAX_LENGTH)
    quantity: int = Field(ge=0, le=MAX_QUANTITY)
    min_quantity: int = Field(ge=0, le=MAX_QUANTITY)
    unit_cost: float = Field(gt=0.0)
    selling_price: float = Field(gt=0.0)


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    sku: str | None = Field(default=None, min_length=1, max_length=SKU_MAX_LENGTH)
    category: str | None = Field(default=None, min_length=1, max_length=CATEGORY_MAX_LENGTH)
    description: str | None = None
    location: str | None = Field(default=None, max_length=LOCATION_MAX_LENGTH)
    quantity: int | None = Field(default=None, ge=0, le=MAX_QUANTITY)
    min_quantity: int | None = Field(default=None, ge=0, le=MAX_QUANTITY)
    unit_cost: float | None = Field(default=None, gt=0.0)
    selling_price: float | None = Field(default=None, gt=0.0)


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    sku: str
    category: str
    description: str | None
    location: str | None
    quantity: int
    min_quantity: int
    unit_cost: float
    selling_price: float
    status: ProductStatus
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    items: list[ProductRead]
    total: int
    page: int
    page_size: int


class FilteredProductsResponse(BaseModel):
    query: str
    items: list[ProductRead]


class InventoryStats(BaseModel):
    total_items: int = 0
    low_stock: int = 0
    out_of_stock: int = 0
    recently_added: int = 0
