from core.database import Base
from sqlalchemy import (Column, Integer, String, Boolean, ForeignKey, Index, text)
from sqlalchemy.orm import relationship
from .mixins import TimestampMixin


class ProductImage(Base, TimestampMixin):
    __tablename__ = "product_images"
    __table_args__ = (
        # At most one primary image per product, enforced by the database as well
        Index(
            "uq_product_images_primary",
            "product_id",
            unique=True,
            sqlite_where=text("is_primary = 1"),
            postgresql_where=text("is_primary"),
        ),
    )

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    #relationships
    product = relationship("Product", back_populates="images")

    image_path = Column(String(255), nullable=False)
    display_order = Column(Integer, nullable=False, default=0)
    is_primary = Column(Boolean, nullable=False, default=False)
