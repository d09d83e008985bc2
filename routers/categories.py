from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from starlette import status

from schemas.category_schemas import CategoryForm, CategoryResponse, CategorySummary
from services.category_service import CategoryService
from utils.deps import db_dependency, storage_dependency, get_admin_user
from utils.forms import read_image, validate_form
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/admin/categories",
    tags=["categories"],
    dependencies=[Depends(get_admin_user)]
)


def _category_form(name, description, display_order, parent_id, is_promotional) -> CategoryForm:
    return validate_form(CategoryForm, {
        "name": name,
        "description": description,
        "display_order": display_order,
        "parent_id": parent_id,
        "is_promotional": is_promotional,
    })


@router.get("", status_code=status.HTTP_200_OK)
async def list_categories(db: db_dependency):
    categories = CategoryService.list_categories(db)
    return {"categories": [CategoryResponse.model_validate(c) for c in categories]}


@router.get("/create", status_code=status.HTTP_200_OK)
async def create_category_form(db: db_dependency):
    parents = CategoryService.top_level_categories(db)
    return {"parent_categories": [CategorySummary.model_validate(c) for c in parents]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    db: db_dependency,
    storage: storage_dependency,
    name: str = Form(...),
    description: Optional[str] = Form(None),
    display_order: Optional[int] = Form(None),
    parent_id: Optional[str] = Form(None),
    is_promotional: bool = Form(False),
    image: Optional[UploadFile] = File(None),
):
    form = _category_form(name, description, display_order, parent_id, is_promotional)
    upload = await read_image(image)

    category = CategoryService.create_category(db, storage, form, upload)

    return {
        "message": "Category created successfully.",
        "category": CategoryResponse.model_validate(CategoryService.get_category(db, category.id))
    }


@router.get("/{category_id}/edit", status_code=status.HTTP_200_OK)
async def edit_category_form(category_id: int, db: db_dependency):
    category = CategoryService.get_category(db, category_id)
    parents = CategoryService.top_level_categories(db, exclude_id=category.id)
    return {
        "category": CategoryResponse.model_validate(category),
        "parent_categories": [CategorySummary.model_validate(c) for c in parents]
    }


@router.put("/{category_id}", status_code=status.HTTP_200_OK)
async def update_category(
    category_id: int,
    db: db_dependency,
    storage: storage_dependency,
    name: str = Form(...),
    description: Optional[str] = Form(None),
    display_order: Optional[int] = Form(None),
    parent_id: Optional[str] = Form(None),
    is_promotional: bool = Form(False),
    image: Optional[UploadFile] = File(None),
):
    form = _category_form(name, description, display_order, parent_id, is_promotional)
    upload = await read_image(image)

    CategoryService.update_category(db, storage, category_id, form, upload)

    return {
        "message": "Category updated successfully.",
        "category": CategoryResponse.model_validate(CategoryService.get_category(db, category_id))
    }


@router.delete("/{category_id}", status_code=status.HTTP_200_OK)
async def delete_category(category_id: int, db: db_dependency, storage: storage_dependency):
    CategoryService.delete_category(db, storage, category_id)
    return {"message": "Category deleted successfully."}
