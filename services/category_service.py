from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from core.database import transaction
from core.exceptions import NotFoundError
from models.categories import Category
from schemas.category_schemas import CategoryForm
from schemas.image_schemas import UploadedImage
from services.image_service import ImageService, CATEGORY_IMAGE_DIR
from services.integrity import ensure_category_deletable, ensure_valid_parent, raise_for_integrity_error
from services.storage import FileStorage
from utils.logger import get_logger

logger = get_logger(__name__)


class CategoryService:

    @staticmethod
    def get_category(db: Session, category_id: int) -> Category:
        category = db.query(Category).options(joinedload(Category.parent)).filter(
            Category.id == category_id
        ).one_or_none()
        if not category:
            raise NotFoundError()
        return category

    @staticmethod
    def list_categories(db: Session) -> List[Category]:
        """All categories by display order, then name, each with its parent loaded."""
        return (
            db.query(Category)
            .options(joinedload(Category.parent))
            .order_by(Category.display_order, Category.name)
            .all()
        )

    @staticmethod
    def top_level_categories(db: Session, exclude_id: Optional[int] = None) -> List[Category]:
        """Candidates for a parent select: no parent of their own, never the category being edited."""
        query = db.query(Category).filter(Category.parent_id.is_(None))
        if exclude_id is not None:
            query = query.filter(Category.id != exclude_id)
        return query.order_by(Category.display_order, Category.name).all()

    @staticmethod
    def categories_for_select(db: Session) -> List[Category]:
        return db.query(Category).order_by(Category.display_order, Category.name).all()

    @staticmethod
    def create_category(db: Session, storage: FileStorage, form: CategoryForm,
                        image: Optional[UploadedImage] = None) -> Category:
        ensure_valid_parent(db, form.parent_id)

        image_path = None
        if image is not None:
            image_path = ImageService.store_file(storage, image, CATEGORY_IMAGE_DIR)

        try:
            with transaction(db, "create_category"):
                category = Category(**form.model_dump(), image_path=image_path)
                db.add(category)
        except Exception as e:
            if image_path:
                ImageService.discard_files(storage, [image_path])
            if isinstance(e, IntegrityError):
                raise_for_integrity_error(db, e)
            raise

        logger.info("Category created", extra={"category_id": category.id, "category_name": category.name})
        return category

    @staticmethod
    def update_category(db: Session, storage: FileStorage, category_id: int, form: CategoryForm,
                        image: Optional[UploadedImage] = None) -> Category:
        """
        Update fields and optionally replace the image. The previous file is
        removed only once the row points at the new one.
        """
        category = db.query(Category).filter(Category.id == category_id).with_for_update().one_or_none()
        if not category:
            raise NotFoundError()

        ensure_valid_parent(db, form.parent_id, category_id=category.id)

        new_path = None
        if image is not None:
            new_path = ImageService.store_file(storage, image, CATEGORY_IMAGE_DIR)
        old_path = category.image_path

        try:
            with transaction(db, "update_category"):
                for field, value in form.model_dump().items():
                    setattr(category, field, value)
                if new_path:
                    category.image_path = new_path
        except Exception as e:
            if new_path:
                ImageService.discard_files(storage, [new_path])
            if isinstance(e, IntegrityError):
                raise_for_integrity_error(db, e)
            raise

        if new_path and old_path:
            ImageService.discard_files(storage, [old_path])

        logger.info("Category updated", extra={"category_id": category.id, "image_replaced": bool(new_path)})
        return category

    @staticmethod
    def delete_category(db: Session, storage: FileStorage, category_id: int) -> None:
        category = db.query(Category).filter(Category.id == category_id).with_for_update().one_or_none()
        if not category:
            raise NotFoundError()

        ensure_category_deletable(db, category)
        image_path = category.image_path

        try:
            with transaction(db, "delete_category"):
                db.delete(category)
        except IntegrityError as e:
            # a product or subcategory appeared after the guard ran
            raise_for_integrity_error(db, e)

        if image_path:
            ImageService.discard_files(storage, [image_path])

        logger.info("Category deleted", extra={"category_id": category_id})
