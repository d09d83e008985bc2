from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from core.config import settings

# The parent select posts this when "no parent" is chosen
NO_PARENT_SENTINELS = {"none", "null", ""}


class CategoryForm(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    display_order: int = Field(ge=0)
    parent_id: Optional[int] = None
    is_promotional: bool = False

    @field_validator('name')
    @classmethod
    def strip_name(cls, value):
        value = value.strip()
        if not value:
            raise ValueError('The name field is required')
        return value

    @field_validator('description')
    @classmethod
    def empty_description_is_none(cls, value):
        if value is not None and not value.strip():
            return None
        return value

    @field_validator('parent_id', mode='before')
    @classmethod
    def normalize_parent(cls, value):
        if value is None:
            return None
        if isinstance(value, str) and value.strip().lower() in NO_PARENT_SENTINELS:
            return None
        return value


class CategorySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    display_order: int
    parent_id: Optional[int] = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    display_order: int
    parent_id: Optional[int] = None
    is_promotional: bool
    is_main_category: bool
    image_path: Optional[str] = None
    parent: Optional[CategorySummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def image_url(self) -> Optional[str]:
        if not self.image_path:
            return None
        return f"{settings.MEDIA_URL.rstrip('/')}/{self.image_path}"
