from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from core.database import Base
from sqlalchemy import (Column, Integer, String, Text, Numeric, Enum)
from sqlalchemy.orm import relationship
from .categories import category_product
from .mixins import TimestampMixin

PRODUCT_STATUSES = ("active", "draft")

_CENT = Decimal("0.01")


def _money(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


class Product(Base, TimestampMixin):
    __tablename__ = "products"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #relationships
    categories = relationship("Category", secondary=category_product, back_populates="products",
                              order_by="Category.display_order")
    images = relationship("ProductImage", back_populates="product", order_by="ProductImage.display_order",
                          cascade="all, delete-orphan", passive_deletes=True)
    primary_image = relationship(
        "ProductImage",
        primaryjoin="and_(Product.id == ProductImage.product_id, ProductImage.is_primary == True)",
        uselist=False,
        viewonly=True,
    )

    title = Column(String(255), nullable=False)
    description = Column(Text)
    status = Column(Enum(*PRODUCT_STATUSES, name="product_status"), nullable=False, default="draft")
    # Pricing
    regular_price = Column(Numeric(10, 2), nullable=False)
    compare_at_price = Column(Numeric(10, 2))
    cost_per_item = Column(Numeric(10, 2))
    # Inventory
    stock_quantity = Column(Integer, nullable=False, default=0)
    sku = Column(String(255), unique=True)  # ISBN for books

    # Profit, margin and discount are derived, never stored

    @property
    def profit(self) -> Optional[Decimal]:
        if self.cost_per_item is None:
            return None
        return _money(self.regular_price) - _money(self.cost_per_item)

    @property
    def margin_percentage(self) -> Optional[Decimal]:
        profit = self.profit
        if profit is None or not self.regular_price:
            return None
        return (profit / _money(self.regular_price) * 100).quantize(_CENT, rounding=ROUND_HALF_UP)

    @property
    def discount_percentage(self) -> Optional[Decimal]:
        if self.compare_at_price is None or _money(self.compare_at_price) <= _money(self.regular_price):
            return None
        compare_at = _money(self.compare_at_price)
        discount = compare_at - _money(self.regular_price)
        return (discount / compare_at * 100).quantize(_CENT, rounding=ROUND_HALF_UP)

    @property
    def in_stock(self) -> bool:
        return (self.stock_quantity or 0) > 0

    @property
    def is_active(self) -> bool:
        return self.status == "active"
