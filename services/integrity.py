"""
Cross-entity rules that a column constraint alone cannot express.

Functions here run inside the caller's transaction and raise one of the
``core.exceptions`` errors; they never commit.
"""

from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import (
    CategoryHasProductsError,
    CategoryHasSubcategoriesError,
    DuplicateSKUError,
    FieldValidationError,
    PriceOrderingError,
    ReferentialConflictError,
)
from models.categories import Category, category_product
from models.product_images import ProductImage
from models.products import Product
from utils.logger import get_logger

logger = get_logger(__name__)


def promote_to_primary(db: Session, image: ProductImage) -> ProductImage:
    """
    Make ``image`` the only primary image of its product.

    Two UPDATEs scoped by product id: clear every other flag first, then set
    the target, so the single-primary index is never violated mid-way.
    Callers lock the product row beforehand.
    """
    db.flush()

    cleared = (
        db.query(ProductImage)
        .filter(ProductImage.product_id == image.product_id, ProductImage.id != image.id)
        .update({ProductImage.is_primary: False}, synchronize_session="evaluate")
    )
    (
        db.query(ProductImage)
        .filter(ProductImage.id == image.id, ProductImage.product_id == image.product_id)
        .update({ProductImage.is_primary: True}, synchronize_session="evaluate")
    )

    logger.info(
        "Primary image changed",
        extra={"product_id": image.product_id, "image_id": image.id, "rows_cleared": cleared}
    )
    return image


def ensure_category_deletable(db: Session, category: Category) -> None:
    product_count = (
        db.query(func.count())
        .select_from(category_product)
        .filter(category_product.c.category_id == category.id)
        .scalar()
    )
    if product_count:
        logger.warning(
            "Category delete blocked - has products",
            extra={"category_id": category.id, "product_count": product_count}
        )
        raise CategoryHasProductsError()

    child_count = db.query(func.count(Category.id)).filter(Category.parent_id == category.id).scalar()
    if child_count:
        logger.warning(
            "Category delete blocked - has subcategories",
            extra={"category_id": category.id, "child_count": child_count}
        )
        raise CategoryHasSubcategoriesError()


def resolve_categories(db: Session, category_ids: Iterable[int]) -> List[Category]:
    wanted = list(dict.fromkeys(category_ids))
    if not wanted:
        raise FieldValidationError.on("categories", "The categories field is required.")

    found = db.query(Category).filter(Category.id.in_(wanted)).all()
    if len(found) != len(wanted):
        missing = sorted(set(wanted) - {c.id for c in found})
        logger.warning("Unknown categories submitted", extra={"category_ids": missing})
        raise FieldValidationError.on("categories", "The selected categories are invalid.")

    return found


def sync_categories(db: Session, product: Product, category_ids: Iterable[int]) -> tuple[set, set]:
    """
    Replace the product's category set with ``category_ids``.

    Only the difference is written: memberships that stay are left untouched,
    so syncing the same set twice is a no-op. Returns ``(added, removed)`` ids.
    """
    target = {c.id: c for c in resolve_categories(db, category_ids)}
    current = {c.id: c for c in product.categories}

    removed = set(current) - set(target)
    added = set(target) - set(current)

    for category_id in removed:
        product.categories.remove(current[category_id])
    for category_id in added:
        product.categories.append(target[category_id])

    if added or removed:
        logger.debug(
            "Category membership synced",
            extra={"product_id": product.id, "added": sorted(added), "removed": sorted(removed)}
        )
    return added, removed


def ensure_price_ordering(regular_price: Decimal, compare_at_price: Optional[Decimal]) -> None:
    if compare_at_price is not None and compare_at_price <= regular_price:
        raise PriceOrderingError()


def ensure_unique_sku(db: Session, sku: Optional[str], product_id: Optional[int] = None) -> None:
    if not sku:
        return

    query = db.query(Product.id).filter(Product.sku == sku)
    if product_id is not None:
        query = query.filter(Product.id != product_id)

    if query.first():
        logger.warning("Duplicate SKU rejected", extra={"sku": sku, "product_id": product_id})
        raise DuplicateSKUError()


def ensure_valid_parent(db: Session, parent_id: Optional[int], category_id: Optional[int] = None) -> Optional[Category]:
    """
    The parent must exist and must not be the category itself or one of its
    descendants. Ancestors are walked one query at a time.
    """
    if parent_id is None:
        return None

    parent = db.get(Category, parent_id)
    if parent is None:
        raise FieldValidationError.on("parent_id", "The selected parent id is invalid.")

    if category_id is not None:
        node = parent
        while node is not None:
            if node.id == category_id:
                raise FieldValidationError.on(
                    "parent_id", "A category cannot be placed under itself or one of its subcategories."
                )
            node = node.parent

    return parent


def raise_for_integrity_error(db: Session, exc: IntegrityError, sku: Optional[str] = None,
                              product_id: Optional[int] = None):
    """
    Translate a constraint violation caught at commit time into the error the
    pre-checks would have raised. Called after the transaction rolled back.
    """
    if sku:
        query = db.query(Product.id).filter(Product.sku == sku)
        if product_id is not None:
            query = query.filter(Product.id != product_id)
        if query.first():
            raise DuplicateSKUError() from exc

    logger.error("Integrity error", extra={"error": str(exc.orig)})
    raise ReferentialConflictError("The record is still referenced by other records.") from exc
