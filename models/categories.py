from core.database import Base
from sqlalchemy import (Column, Integer, String, Text, Boolean, ForeignKey, Table)
from sqlalchemy.orm import relationship
from .mixins import TimestampMixin


category_product = Table(
    "category_product",
    Base.metadata,
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="RESTRICT"), primary_key=True),
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True, index=True),
)


class Category(Base, TimestampMixin):
    __tablename__ = "categories"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    parent_id = Column(Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=True, index=True)

    #relationships
    parent = relationship("Category", remote_side=[id], back_populates="children")
    # passive_deletes="all": never null out children behind the delete guard's back
    children = relationship("Category", back_populates="parent", passive_deletes="all")
    products = relationship("Product", secondary=category_product, back_populates="categories",
                            passive_deletes=True)

    name = Column(String(255), nullable=False)
    description = Column(Text)
    display_order = Column(Integer, nullable=False, default=0)
    is_promotional = Column(Boolean, nullable=False, default=False)
    image_path = Column(String(255))

    @property
    def is_main_category(self) -> bool:
        return self.parent_id is None
