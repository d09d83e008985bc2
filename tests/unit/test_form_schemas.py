from decimal import Decimal

import pytest
from pydantic import ValidationError

from schemas.category_schemas import CategoryForm
from schemas.product_schemas import ProductForm


def _product(**overrides):
    data = {
        "title": "Dune",
        "status": "draft",
        "regular_price": "10.50",
        "stock_quantity": 1,
        "categories": [1],
    }
    data.update(overrides)
    return ProductForm(**data)


@pytest.mark.parametrize("sentinel", ["none", "None", "", "null"])
def test_parent_sentinel_is_normalized(sentinel):
    form = CategoryForm(name="Fiction", display_order=0, parent_id=sentinel)
    assert form.parent_id is None


def test_parent_id_string_is_coerced():
    form = CategoryForm(name="Sci-Fi", display_order=0, parent_id="7")
    assert form.parent_id == 7


def test_category_rejects_negative_display_order():
    with pytest.raises(ValidationError) as exc_info:
        CategoryForm(name="Fiction", display_order=-1)

    assert exc_info.value.errors()[0]["loc"] == ("display_order",)


def test_category_rejects_blank_name():
    with pytest.raises(ValidationError):
        CategoryForm(name="   ", display_order=0)


def test_product_blank_optional_fields_become_none():
    form = _product(compare_at_price="", cost_per_item="  ", sku="  ", description="")

    assert form.compare_at_price is None
    assert form.cost_per_item is None
    assert form.sku is None
    assert form.description is None


def test_product_parses_money():
    form = _product(regular_price="19.99", compare_at_price="24.50")

    assert form.regular_price == Decimal("19.99")
    assert form.compare_at_price == Decimal("24.50")


def test_product_requires_a_category():
    with pytest.raises(ValidationError) as exc_info:
        _product(categories=[])

    error = exc_info.value.errors()[0]
    assert error["loc"] == ("categories",)
    assert "required" in error["msg"].lower()


def test_product_deduplicates_categories():
    form = _product(categories=[3, 1, 3])
    assert form.categories == [3, 1]


@pytest.mark.parametrize("field", ["regular_price", "compare_at_price", "cost_per_item"])
def test_product_rejects_negative_prices(field):
    with pytest.raises(ValidationError) as exc_info:
        _product(**{field: "-1"})

    assert exc_info.value.errors()[0]["loc"] == (field,)


def test_product_rejects_unknown_status():
    with pytest.raises(ValidationError):
        _product(status="archived")
