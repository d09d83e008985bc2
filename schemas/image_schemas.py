from pydantic import BaseModel, ConfigDict, computed_field, field_validator
from core.config import settings

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}


class UploadedImage(BaseModel):
    """An uploaded image read into memory, checked against the upload policy."""

    filename: str
    content_type: str
    content: bytes

    @field_validator('content_type')
    @classmethod
    def validate_content_type(cls, value):
        if value not in ALLOWED_IMAGE_TYPES:
            raise ValueError('The file must be an image (jpeg, png, gif, webp)')
        return value

    @field_validator('content')
    @classmethod
    def validate_size(cls, value):
        if not value:
            raise ValueError('The file is empty')
        if len(value) > settings.max_upload_bytes:
            raise ValueError(f'The file may not be greater than {settings.MAX_UPLOAD_SIZE_MB} MB')
        return value


class ProductImageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    image_path: str
    display_order: int
    is_primary: bool

    @computed_field
    @property
    def url(self) -> str:
        return f"{settings.MEDIA_URL.rstrip('/')}/{self.image_path}"
