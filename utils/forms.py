"""
Turning submitted forms and uploads into validated schemas, with failures
reported per field.
"""

from typing import Dict, List, Optional, Sequence, Type, TypeVar

from fastapi import UploadFile
from pydantic import BaseModel, ValidationError

from core.exceptions import FieldValidationError
from schemas.image_schemas import UploadedImage
from utils.logger import get_logger, sanitize_log_data

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_LOCATION_PREFIXES = ("body", "query", "path", "form")


def _clean_message(message: str) -> str:
    # pydantic prefixes messages of plain ValueErrors
    return message.removeprefix("Value error, ")


def errors_from_pydantic(errors: Sequence[dict], prefix: Optional[str] = None) -> Dict[str, List[str]]:
    """
    Collapse pydantic/FastAPI error dicts into ``{"field": ["message", ...]}``.
    Nested locations are dotted: ``categories.0``.
    """
    result: Dict[str, List[str]] = {}
    for error in errors:
        parts = [str(part) for part in error.get("loc", ()) if part not in _LOCATION_PREFIXES]
        if prefix:
            parts = [prefix]
        field = ".".join(parts) or "form"
        if error.get("type") == "missing":
            message = f"The {field.replace('_', ' ')} field is required."
        else:
            message = _clean_message(error.get("msg", "Invalid value"))
        result.setdefault(field, []).append(message)
    return result


def validate_form(schema: Type[SchemaT], data: dict) -> SchemaT:
    """
    Validate submitted form values. Fields the form left out (``None``) are
    dropped so the schema reports required ones as missing instead of
    quietly using a default.
    """
    submitted = {field: value for field, value in data.items() if value is not None}
    try:
        return schema.model_validate(submitted)
    except ValidationError as e:
        errors = errors_from_pydantic(e.errors())
        logger.warning(
            "Form validation failed",
            extra={"form": schema.__name__, "errors": errors, "input": sanitize_log_data(data)}
        )
        raise FieldValidationError(errors)


async def _to_uploaded(file: UploadFile) -> UploadedImage:
    try:
        content = await file.read()
    finally:
        await file.close()
    return UploadedImage(
        filename=file.filename,
        content_type=file.content_type or "",
        content=content,
    )


async def read_images(files: Optional[List[UploadFile]], field: str = "images") -> List[UploadedImage]:
    """Read every submitted file, reporting policy violations as ``images.<index>``."""
    uploads: List[UploadedImage] = []
    errors: Dict[str, List[str]] = {}

    for index, file in enumerate(files or []):
        if not file.filename:
            # an untouched file input still posts an empty part
            continue
        try:
            uploads.append(await _to_uploaded(file))
        except ValidationError as e:
            errors.update(errors_from_pydantic(e.errors(), prefix=f"{field}.{index}"))

    if errors:
        logger.warning("Image upload rejected", extra={"errors": errors})
        raise FieldValidationError(errors)

    return uploads


async def read_image(file: Optional[UploadFile], field: str = "image") -> Optional[UploadedImage]:
    if file is None or not file.filename:
        return None
    try:
        return await _to_uploaded(file)
    except ValidationError as e:
        errors = errors_from_pydantic(e.errors(), prefix=field)
        logger.warning("Image upload rejected", extra={"errors": errors})
        raise FieldValidationError(errors)
