import math
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from core.database import transaction
from core.exceptions import NotFoundError
from models.products import Product
from schemas.image_schemas import UploadedImage
from schemas.product_schemas import ProductForm
from services.image_service import ImageService, PRODUCT_IMAGE_DIR
from services.integrity import (
    ensure_price_ordering,
    ensure_unique_sku,
    raise_for_integrity_error,
    resolve_categories,
    sync_categories,
)
from services.storage import FileStorage
from utils.logger import get_logger

logger = get_logger(__name__)


class ProductService:

    @staticmethod
    def list_products(db: Session, page: int = 1, per_page: int = 20) -> dict:
        """
        Newest products first, one page at a time. Categories and the primary
        image are batch-loaded for the whole page.
        """
        total = db.query(Product).count()
        last_page = max(1, math.ceil(total / per_page))

        items = (
            db.query(Product)
            .options(selectinload(Product.categories), selectinload(Product.primary_image))
            .order_by(Product.created_at.desc(), Product.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )

        return {
            "items": items,
            "total": total,
            "page": page,
            "per_page": per_page,
            "last_page": last_page,
        }

    @staticmethod
    def get_product(db: Session, product_id: int) -> Product:
        product = (
            db.query(Product)
            .options(
                selectinload(Product.categories),
                selectinload(Product.images),
                selectinload(Product.primary_image),
            )
            .filter(Product.id == product_id)
            .one_or_none()
        )
        if not product:
            raise NotFoundError()
        return product

    @staticmethod
    def create_product(db: Session, storage: FileStorage, form: ProductForm,
                       uploads: List[UploadedImage] = ()) -> Product:
        """
        Create a product with its categories and images in one transaction.

        The first upload becomes the primary image. If any file cannot be
        stored, nothing is created.
        """
        ensure_price_ordering(form.regular_price, form.compare_at_price)
        ensure_unique_sku(db, form.sku)
        categories = resolve_categories(db, form.categories)

        paths = ImageService.store_files(storage, uploads, PRODUCT_IMAGE_DIR)

        try:
            with transaction(db, "create_product"):
                product = Product(**form.model_dump(exclude={"categories"}))
                product.categories = categories
                ImageService.attach_batch(product, paths)
                db.add(product)
        except Exception as e:
            ImageService.discard_files(storage, paths)
            if isinstance(e, IntegrityError):
                raise_for_integrity_error(db, e, sku=form.sku)
            raise

        logger.info(
            "Product created",
            extra={"product_id": product.id, "sku": product.sku, "image_count": len(paths)}
        )
        return product

    @staticmethod
    def update_product(db: Session, product_id: int, form: ProductForm) -> Product:
        """Update fields and replace the category set in a single transaction."""
        product = db.query(Product).filter(Product.id == product_id).with_for_update().one_or_none()
        if not product:
            raise NotFoundError()

        ensure_price_ordering(form.regular_price, form.compare_at_price)
        ensure_unique_sku(db, form.sku, product_id=product.id)

        try:
            with transaction(db, "update_product"):
                for field, value in form.model_dump(exclude={"categories"}).items():
                    setattr(product, field, value)
                sync_categories(db, product, form.categories)
        except IntegrityError as e:
            raise_for_integrity_error(db, e, sku=form.sku, product_id=product_id)

        logger.info("Product updated", extra={"product_id": product_id, "status": form.status})
        return product

    @staticmethod
    def delete_product(db: Session, storage: FileStorage, product_id: int) -> None:
        """Delete the product and its image rows, then remove the files."""
        product = db.query(Product).filter(Product.id == product_id).with_for_update().one_or_none()
        if not product:
            raise NotFoundError()

        paths = [image.image_path for image in product.images]

        with transaction(db, "delete_product"):
            db.delete(product)

        ImageService.discard_files(storage, paths)
        logger.info("Product deleted", extra={"product_id": product_id, "image_count": len(paths)})
