from typing import Iterable, List

from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.database import transaction
from core.exceptions import FieldValidationError, NotFoundError, StorageError
from models.product_images import ProductImage
from models.products import Product
from schemas.image_schemas import UploadedImage
from services.integrity import promote_to_primary, raise_for_integrity_error
from services.storage import FileStorage
from utils.forms import errors_from_pydantic
from utils.logger import get_logger

logger = get_logger(__name__)

PRODUCT_IMAGE_DIR = "products"
CATEGORY_IMAGE_DIR = "categories"


class ImageService:
    """
    Keeps stored files and their metadata rows in step.

    Files are written before the rows that point at them and removed only
    after the rows are gone, so a crash leaves at worst an orphaned file,
    never a row pointing at nothing.
    """

    @staticmethod
    def get_product_for_update(db: Session, product_id: int) -> Product:
        # Row lock serializes image changes per product (no-op on SQLite)
        product = db.query(Product).filter(Product.id == product_id).with_for_update().one_or_none()
        if not product:
            raise NotFoundError()
        return product

    @staticmethod
    def get_owned_image(db: Session, product_id: int, image_id: int) -> ProductImage:
        """An image that exists but belongs to another product is simply not found."""
        image = db.query(ProductImage).filter(
            ProductImage.id == image_id,
            ProductImage.product_id == product_id
        ).one_or_none()

        if not image:
            logger.info(
                "Product image not found",
                extra={"product_id": product_id, "image_id": image_id}
            )
            raise NotFoundError()
        return image

    @staticmethod
    def revalidate(upload: UploadedImage, field: str) -> UploadedImage:
        # callers may build uploads by hand
        try:
            return UploadedImage.model_validate(upload.model_dump())
        except ValidationError as e:
            raise FieldValidationError(errors_from_pydantic(e.errors(), prefix=field))

    @staticmethod
    def store_files(storage: FileStorage, uploads: Iterable[UploadedImage], directory: str,
                    field: str = "images") -> List[str]:
        """
        Persist every upload or none of them. On the first failure the files
        already written for this batch are removed and ``StorageError`` (or
        ``FieldValidationError`` keyed ``<field>.<index>`` for an upload
        breaking the policy) is raised.
        """
        stored: List[str] = []
        for index, upload in enumerate(uploads):
            try:
                upload = ImageService.revalidate(upload, f"{field}.{index}")
            except FieldValidationError:
                ImageService.discard_files(storage, stored)
                raise
            try:
                path = storage.put(upload.content, directory, upload.filename)
            except StorageError:
                logger.error(
                    "Image upload failed",
                    extra={"index": index, "original_name": upload.filename}
                )
                ImageService.discard_files(storage, stored)
                raise

            logger.info(
                "Image uploaded successfully",
                extra={"path": path, "index": index, "original_name": upload.filename}
            )
            stored.append(path)
        return stored

    @staticmethod
    def store_file(storage: FileStorage, upload: UploadedImage, directory: str, field: str = "image") -> str:
        """Single-file form field: policy errors are keyed by ``field`` itself."""
        upload = ImageService.revalidate(upload, field)
        return ImageService.store_files(storage, [upload], directory)[0]

    @staticmethod
    def discard_files(storage: FileStorage, paths: Iterable[str]) -> None:
        """Best-effort removal; a failure is logged and never raised."""
        for path in paths:
            if not storage.delete(path):
                logger.warning("Stored file could not be removed", extra={"path": path})

    @staticmethod
    def attach_batch(product: Product, paths: List[str]) -> List[ProductImage]:
        """Rows for a new product: order follows the list, the first one is primary."""
        images = [
            ProductImage(image_path=path, display_order=index, is_primary=index == 0)
            for index, path in enumerate(paths)
        ]
        product.images.extend(images)
        return images

    @staticmethod
    def append_images(db: Session, storage: FileStorage, product_id: int,
                      uploads: List[UploadedImage]) -> List[ProductImage]:
        """
        Add images after the current last one. New images are never primary;
        an existing primary stays as it is.
        """
        ImageService.get_product_for_update(db, product_id)
        paths = ImageService.store_files(storage, uploads, PRODUCT_IMAGE_DIR)

        try:
            with transaction(db, "append_images"):
                last_order = db.query(func.max(ProductImage.display_order)).filter(
                    ProductImage.product_id == product_id
                ).scalar()
                if last_order is None:
                    last_order = -1

                images = [
                    ProductImage(
                        product_id=product_id,
                        image_path=path,
                        display_order=last_order + offset + 1,
                        is_primary=False
                    )
                    for offset, path in enumerate(paths)
                ]
                db.add_all(images)
        except IntegrityError as e:
            ImageService.discard_files(storage, paths)
            raise_for_integrity_error(db, e)
        except Exception:
            ImageService.discard_files(storage, paths)
            raise

        logger.info("Images appended", extra={"product_id": product_id, "count": len(images)})
        return images

    @staticmethod
    def remove_image(db: Session, storage: FileStorage, product_id: int, image_id: int) -> None:
        """
        Delete one image. If it was primary, the remaining image with the lowest
        display order takes over; with no images left the product has no primary.
        """
        ImageService.get_product_for_update(db, product_id)
        image = ImageService.get_owned_image(db, product_id, image_id)
        path = image.image_path
        was_primary = image.is_primary

        with transaction(db, "remove_image"):
            db.delete(image)
            db.flush()

            if was_primary:
                successor = (
                    db.query(ProductImage)
                    .filter(ProductImage.product_id == product_id)
                    .order_by(ProductImage.display_order, ProductImage.id)
                    .first()
                )
                if successor:
                    promote_to_primary(db, successor)

        ImageService.discard_files(storage, [path])
        logger.info(
            "Product image deleted",
            extra={"product_id": product_id, "image_id": image_id, "was_primary": was_primary}
        )

    @staticmethod
    def set_primary(db: Session, product_id: int, image_id: int) -> ProductImage:
        ImageService.get_product_for_update(db, product_id)
        image = ImageService.get_owned_image(db, product_id, image_id)

        with transaction(db, "promote_image"):
            promote_to_primary(db, image)

        db.refresh(image)
        return image
