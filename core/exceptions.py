"""
Error taxonomy for catalog operations.

Every error is an ``HTTPException`` so services can raise them the same way
they raise plain HTTP errors, while ``kind`` lets the rendering layer choose
between a field-level message and a general banner.
"""

from typing import Dict, List, Optional

from fastapi import HTTPException
from starlette import status


class CatalogError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(status_code=self.status_code, detail=message)

    def to_payload(self) -> dict:
        return {"detail": self.message, "kind": self.kind}


class FieldValidationError(CatalogError):
    """Validation failure attached to one or more form fields."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    kind = "validation"

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        first_message = next(iter(errors.values()))[0] if errors else "The given data was invalid."
        super().__init__(first_message)

    @classmethod
    def on(cls, field: str, message: str) -> "FieldValidationError":
        return cls({field: [message]})

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["errors"] = self.errors
        return payload


class DuplicateSKUError(FieldValidationError):
    kind = "uniqueness"

    def __init__(self):
        super().__init__({"sku": ["The sku has already been taken."]})


class PriceOrderingError(FieldValidationError):
    kind = "ordering"

    def __init__(self):
        super().__init__({"compare_at_price": ["Compare at price must be greater than regular price"]})


class ReferentialConflictError(CatalogError):
    """A deletion blocked because another live record still references the target."""

    status_code = status.HTTP_409_CONFLICT
    kind = "referential"
    reason: Optional[str] = None

    def to_payload(self) -> dict:
        payload = super().to_payload()
        if self.reason:
            payload["reason"] = self.reason
        return payload


class CategoryHasProductsError(ReferentialConflictError):
    reason = "has_products"

    def __init__(self):
        super().__init__("Cannot delete category with products.")


class CategoryHasSubcategoriesError(ReferentialConflictError):
    reason = "has_subcategories"

    def __init__(self):
        super().__init__("Cannot delete category with subcategories.")


class NotFoundError(CatalogError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"

    def __init__(self):
        super().__init__("Not found.")


class StorageError(CatalogError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "storage"
