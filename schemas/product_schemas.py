from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from schemas.category_schemas import CategorySummary
from schemas.image_schemas import ProductImageResponse

ProductStatus = Literal["active", "draft"]


class ProductForm(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    status: ProductStatus
    regular_price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    compare_at_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    cost_per_item: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    stock_quantity: int = Field(ge=0)
    sku: Optional[str] = Field(default=None, max_length=255)
    categories: List[int] = Field(default_factory=list, validate_default=True)

    @field_validator('title')
    @classmethod
    def strip_title(cls, value):
        value = value.strip()
        if not value:
            raise ValueError('The title field is required')
        return value

    @field_validator('description', 'sku')
    @classmethod
    def blank_is_none(cls, value):
        if value is None:
            return None
        value = value.strip()
        return value or None

    @field_validator('compare_at_price', 'cost_per_item', mode='before')
    @classmethod
    def blank_price_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator('categories')
    @classmethod
    def unique_categories(cls, value):
        if not value:
            raise ValueError('The categories field is required.')
        # keep submission order, drop repeats
        return list(dict.fromkeys(value))


class ProductListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    status: ProductStatus
    regular_price: Decimal
    compare_at_price: Optional[Decimal] = None
    stock_quantity: int
    sku: Optional[str] = None
    in_stock: bool
    discount_percentage: Optional[Decimal] = None
    categories: List[CategorySummary] = []
    primary_image: Optional[ProductImageResponse] = None
    created_at: Optional[datetime] = None


class ProductResponse(ProductListItem):
    description: Optional[str] = None
    cost_per_item: Optional[Decimal] = None
    profit: Optional[Decimal] = None
    margin_percentage: Optional[Decimal] = None
    is_active: bool
    images: List[ProductImageResponse] = []
    updated_at: Optional[datetime] = None


class ProductPage(BaseModel):
    items: List[ProductListItem]
    total: int
    page: int
    per_page: int
    last_page: int
