from decimal import Decimal

from models.products import Product


def test_profit_and_margin_with_cost():
    product = Product(regular_price=Decimal("1000.00"), cost_per_item=Decimal("600.00"))

    assert product.profit == Decimal("400.00")
    assert product.margin_percentage == Decimal("40.00")


def test_profit_and_margin_without_cost():
    product = Product(regular_price=Decimal("1000.00"), cost_per_item=None)

    assert product.profit is None
    assert product.margin_percentage is None


def test_margin_is_none_for_free_product():
    product = Product(regular_price=Decimal("0.00"), cost_per_item=Decimal("2.00"))

    assert product.profit == Decimal("-2.00")
    assert product.margin_percentage is None


def test_discount_only_when_compare_at_is_higher():
    discounted = Product(regular_price=Decimal("1000.00"), compare_at_price=Decimal("1250.00"))
    equal = Product(regular_price=Decimal("1000.00"), compare_at_price=Decimal("1000.00"))
    none_set = Product(regular_price=Decimal("1000.00"), compare_at_price=None)

    assert discounted.discount_percentage == Decimal("20.00")
    assert equal.discount_percentage is None
    assert none_set.discount_percentage is None


def test_discount_is_rounded_to_cents():
    product = Product(regular_price=Decimal("20.00"), compare_at_price=Decimal("30.00"))

    assert product.discount_percentage == Decimal("33.33")


def test_stock_and_status_flags():
    product = Product(stock_quantity=0, status="draft")
    assert product.in_stock is False
    assert product.is_active is False

    product.stock_quantity = 3
    product.status = "active"
    assert product.in_stock is True
    assert product.is_active is True
