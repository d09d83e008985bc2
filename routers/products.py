from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from starlette import status

from core.config import settings
from core.exceptions import FieldValidationError
from schemas.category_schemas import CategorySummary
from schemas.image_schemas import ProductImageResponse
from schemas.product_schemas import ProductForm, ProductListItem, ProductPage, ProductResponse
from services.category_service import CategoryService
from services.image_service import ImageService
from services.product_service import ProductService
from utils.deps import db_dependency, storage_dependency, get_admin_user
from utils.forms import read_images, validate_form
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/admin/products",
    tags=["products"],
    dependencies=[Depends(get_admin_user)]
)


class ProductFormFields:
    """Collects the multipart product form; validation happens in ``ProductForm``."""

    def __init__(
        self,
        title: str = Form(...),
        description: Optional[str] = Form(None),
        product_status: Optional[str] = Form(None, alias="status"),
        regular_price: str = Form(...),
        compare_at_price: Optional[str] = Form(None),
        cost_per_item: Optional[str] = Form(None),
        stock_quantity: Optional[int] = Form(None),
        sku: Optional[str] = Form(None),
        categories: List[int] = Form([]),
    ):
        self.data = {
            "title": title,
            "description": description,
            "status": product_status,
            "regular_price": regular_price,
            "compare_at_price": compare_at_price,
            "cost_per_item": cost_per_item,
            "stock_quantity": stock_quantity,
            "sku": sku,
            "categories": categories,
        }

    def validate(self) -> ProductForm:
        return validate_form(ProductForm, self.data)


def _category_options(db) -> list:
    return [CategorySummary.model_validate(c) for c in CategoryService.categories_for_select(db)]


@router.get("", response_model=ProductPage, status_code=status.HTTP_200_OK)
async def list_products(db: db_dependency, page: int = Query(1, ge=1)):
    result = ProductService.list_products(db, page=page, per_page=settings.PRODUCTS_PER_PAGE)
    result["items"] = [ProductListItem.model_validate(p) for p in result["items"]]
    return ProductPage(**result)


@router.get("/create", status_code=status.HTTP_200_OK)
async def create_product_form(db: db_dependency):
    return {"categories": _category_options(db)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    db: db_dependency,
    storage: storage_dependency,
    fields: ProductFormFields = Depends(),
    images: Optional[List[UploadFile]] = File(None),
):
    form = fields.validate()
    uploads = await read_images(images)

    product = ProductService.create_product(db, storage, form, uploads)

    return {
        "message": "Product created successfully.",
        "product": ProductResponse.model_validate(ProductService.get_product(db, product.id))
    }


@router.get("/{product_id}", status_code=status.HTTP_200_OK)
async def show_product(product_id: int, db: db_dependency):
    return {"product": ProductResponse.model_validate(ProductService.get_product(db, product_id))}


@router.get("/{product_id}/edit", status_code=status.HTTP_200_OK)
async def edit_product_form(product_id: int, db: db_dependency):
    product = ProductService.get_product(db, product_id)
    return {
        "product": ProductResponse.model_validate(product),
        "categories": _category_options(db),
        "selected_categories": [c.id for c in product.categories]
    }


@router.put("/{product_id}", status_code=status.HTTP_200_OK)
async def update_product(product_id: int, db: db_dependency, fields: ProductFormFields = Depends()):
    form = fields.validate()

    ProductService.update_product(db, product_id, form)

    return {
        "message": "Product updated successfully.",
        "product": ProductResponse.model_validate(ProductService.get_product(db, product_id))
    }


@router.delete("/{product_id}", status_code=status.HTTP_200_OK)
async def delete_product(product_id: int, db: db_dependency, storage: storage_dependency):
    ProductService.delete_product(db, storage, product_id)
    return {"message": "Product deleted successfully."}


@router.post("/{product_id}/images", status_code=status.HTTP_201_CREATED)
async def upload_images(
    product_id: int,
    db: db_dependency,
    storage: storage_dependency,
    images: Optional[List[UploadFile]] = File(None),
):
    uploads = await read_images(images)
    if not uploads:
        raise FieldValidationError.on("images", "The images field is required.")

    added = ImageService.append_images(db, storage, product_id, uploads)

    return {
        "message": "Images uploaded successfully.",
        "images": [ProductImageResponse.model_validate(image) for image in added]
    }


@router.delete("/{product_id}/images/{image_id}", status_code=status.HTTP_200_OK)
async def delete_image(product_id: int, image_id: int, db: db_dependency, storage: storage_dependency):
    ImageService.remove_image(db, storage, product_id, image_id)
    return {"message": "Image deleted successfully."}


@router.post("/{product_id}/images/{image_id}/primary", status_code=status.HTTP_200_OK)
async def set_primary_image(product_id: int, image_id: int, db: db_dependency):
    image = ImageService.set_primary(db, product_id, image_id)
    return {
        "message": "Primary image updated successfully.",
        "image": ProductImageResponse.model_validate(image)
    }
