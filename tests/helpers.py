from decimal import Decimal

from schemas.image_schemas import UploadedImage
from schemas.product_schemas import ProductForm


def make_upload(name: str = "cover.jpg", content_type: str = "image/jpeg",
                content: bytes = b"\xff\xd8\xff\xe0fake-jpeg") -> UploadedImage:
    return UploadedImage(filename=name, content_type=content_type, content=content)


def make_product_form(category_ids, **overrides) -> ProductForm:
    data = {
        "title": "Dune",
        "description": "A desert planet.",
        "status": "active",
        "regular_price": Decimal("1000"),
        "compare_at_price": None,
        "cost_per_item": None,
        "stock_quantity": 5,
        "sku": None,
        "categories": list(category_ids),
    }
    data.update(overrides)
    return ProductForm(**data)


def product_form_data(category_ids, **overrides) -> dict:
    """Multipart form fields as the admin screen posts them."""
    data = {
        "title": "Dune",
        "description": "A desert planet.",
        "status": "active",
        "regular_price": "1000",
        "stock_quantity": "5",
        "categories": [str(i) for i in category_ids],
    }
    data.update(overrides)
    return data


def image_file(name: str = "cover.jpg", content: bytes = b"\xff\xd8\xff\xe0fake-jpeg",
               content_type: str = "image/jpeg", field: str = "images"):
    return (field, (name, content, content_type))
