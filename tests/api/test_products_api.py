from decimal import Decimal

from models.product_images import ProductImage
from models.products import Product
from helpers import image_file, product_form_data


async def _create(client, admin_headers, category_ids, files=None, **overrides):
    return await client.post(
        "/admin/products",
        headers=admin_headers,
        data=product_form_data(category_ids, **overrides),
        files=files,
    )


async def test_create_form_lists_all_categories(client, admin_headers, make_category):
    fiction = make_category("Fiction")
    make_category("Sci-Fi", parent=fiction)

    response = await client.get("/admin/products/create", headers=admin_headers)

    assert response.status_code == 200
    assert sorted(c["name"] for c in response.json()["categories"]) == ["Fiction", "Sci-Fi"]


async def test_create_product_with_images(client, admin_headers, make_category, storage):
    fiction = make_category("Fiction")
    files = [image_file("a.jpg"), image_file("b.png", content_type="image/png"), image_file("c.jpg")]

    response = await _create(client, admin_headers, [fiction.id], files=files, sku="DUNE-1")

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Product created successfully."
    product = body["product"]
    assert product["sku"] == "DUNE-1"
    assert [c["id"] for c in product["categories"]] == [fiction.id]
    assert [image["display_order"] for image in product["images"]] == [0, 1, 2]
    assert [image["is_primary"] for image in product["images"]] == [True, False, False]
    assert product["primary_image"]["id"] == product["images"][0]["id"]
    for image in product["images"]:
        assert image["url"].startswith("/storage/products/")
        assert (storage.root / image["image_path"]).exists()


async def test_create_product_without_images(client, admin_headers, make_category):
    fiction = make_category("Fiction")

    response = await _create(client, admin_headers, [fiction.id])

    assert response.status_code == 201
    product = response.json()["product"]
    assert product["images"] == []
    assert product["primary_image"] is None
    assert product["status"] == "active"
    assert product["in_stock"] is True


async def test_create_product_reports_derived_pricing(client, admin_headers, make_category):
    fiction = make_category("Fiction")

    response = await _create(
        client, admin_headers, [fiction.id],
        regular_price="1000", compare_at_price="1250", cost_per_item="600"
    )

    product = response.json()["product"]
    assert Decimal(product["profit"]) == Decimal("400")
    assert Decimal(product["margin_percentage"]) == Decimal("40")
    assert Decimal(product["discount_percentage"]) == Decimal("20")


async def test_compare_at_price_must_exceed_regular_price(client, admin_headers, make_category, session):
    fiction = make_category("Fiction")

    response = await _create(client, admin_headers, [fiction.id], compare_at_price="900")

    assert response.status_code == 422
    body = response.json()
    assert body["kind"] == "ordering"
    assert "compare_at_price" in body["errors"]
    assert session.query(Product).count() == 0


async def test_duplicate_sku_is_rejected(client, admin_headers, make_category, session):
    fiction = make_category("Fiction")
    await _create(client, admin_headers, [fiction.id], sku="DUNE-1")

    response = await _create(client, admin_headers, [fiction.id], sku="DUNE-1", title="Dune Messiah")

    assert response.status_code == 422
    body = response.json()
    assert body["kind"] == "uniqueness"
    assert body["errors"] == {"sku": ["The sku has already been taken."]}
    assert session.query(Product).count() == 1


async def test_missing_categories_is_a_field_error(client, admin_headers):
    response = await _create(client, admin_headers, [])

    assert response.status_code == 422
    assert response.json()["errors"]["categories"] == ["The categories field is required."]


async def test_unknown_category_is_a_field_error(client, admin_headers, make_category):
    fiction = make_category("Fiction")

    response = await _create(client, admin_headers, [fiction.id, 4242])

    assert response.status_code == 422
    assert "categories" in response.json()["errors"]


async def test_invalid_status_and_price(client, admin_headers, make_category):
    fiction = make_category("Fiction")

    response = await _create(client, admin_headers, [fiction.id], status="archived", regular_price="-5")

    assert response.status_code == 422
    errors = response.json()["errors"]
    assert "status" in errors
    assert "regular_price" in errors


async def test_bad_image_rejects_whole_product(client, admin_headers, make_category, session, storage):
    fiction = make_category("Fiction")
    files = [image_file("a.jpg"), image_file("notes.pdf", b"%PDF-1.4", "application/pdf")]

    response = await _create(client, admin_headers, [fiction.id], files=files)

    assert response.status_code == 422
    assert "images.1" in response.json()["errors"]
    assert session.query(Product).count() == 0
    assert session.query(ProductImage).count() == 0


async def test_list_products_paginates_newest_first(client, admin_headers, make_category):
    fiction = make_category("Fiction")
    for title in ["First", "Second", "Third"]:
        await _create(client, admin_headers, [fiction.id], title=title)

    response = await client.get("/admin/products", headers=admin_headers)

    assert response.status_code == 200
    page = response.json()
    assert page["total"] == 3
    assert page["page"] == 1
    assert page["last_page"] == 1
    assert [item["title"] for item in page["items"]] == ["Third", "Second", "First"]
    assert page["items"][0]["categories"][0]["name"] == "Fiction"


async def test_list_products_rejects_page_zero(client, admin_headers):
    response = await client.get("/admin/products?page=0", headers=admin_headers)

    assert response.status_code == 422
    assert "page" in response.json()["errors"]


async def test_show_unknown_product(client, admin_headers):
    response = await client.get("/admin/products/999", headers=admin_headers)

    assert response.status_code == 404
    assert response.json() == {"detail": "Not found.", "kind": "not_found"}


async def test_edit_form_marks_selected_categories(client, admin_headers, make_category):
    fiction = make_category("Fiction")
    poetry = make_category("Poetry")
    created = (await _create(client, admin_headers, [poetry.id])).json()["product"]

    response = await client.get(f"/admin/products/{created['id']}/edit", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["selected_categories"] == [poetry.id]
    assert {c["id"] for c in body["categories"]} == {fiction.id, poetry.id}


async def test_update_product_replaces_categories(client, admin_headers, make_category):
    fiction = make_category("Fiction")
    poetry = make_category("Poetry")
    created = (await _create(client, admin_headers, [fiction.id])).json()["product"]

    response = await client.put(
        f"/admin/products/{created['id']}",
        headers=admin_headers,
        data=product_form_data([poetry.id], title="Dune (Deluxe)", status="draft", stock_quantity="0"),
    )

    assert response.status_code == 200
    product = response.json()["product"]
    assert product["title"] == "Dune (Deluxe)"
    assert product["is_active"] is False
    assert product["in_stock"] is False
    assert [c["id"] for c in product["categories"]] == [poetry.id]


async def test_update_keeps_own_sku(client, admin_headers, make_category):
    fiction = make_category("Fiction")
    created = (await _create(client, admin_headers, [fiction.id], sku="DUNE-1")).json()["product"]

    response = await client.put(
        f"/admin/products/{created['id']}",
        headers=admin_headers,
        data=product_form_data([fiction.id], sku="DUNE-1", stock_quantity="9"),
    )

    assert response.status_code == 200
    assert response.json()["product"]["stock_quantity"] == 9


async def test_delete_product_removes_images(client, admin_headers, make_category, session, storage):
    fiction = make_category("Fiction")
    created = (await _create(client, admin_headers, [fiction.id], files=[image_file("a.jpg")])).json()["product"]
    stored = storage.root / created["images"][0]["image_path"]

    response = await client.delete(f"/admin/products/{created['id']}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Product deleted successfully."
    assert session.query(ProductImage).count() == 0
    assert not stored.exists()


async def test_category_with_products_cannot_be_deleted(client, admin_headers, make_category):
    fiction = make_category("Fiction")
    await _create(client, admin_headers, [fiction.id])

    response = await client.delete(f"/admin/categories/{fiction.id}", headers=admin_headers)

    assert response.status_code == 409
    body = response.json()
    assert body["reason"] == "has_products"
    assert body["detail"] == "Cannot delete category with products."


def _without(data: dict, *fields) -> dict:
    return {key: value for key, value in data.items() if key not in fields}


async def test_create_requires_status_and_stock(client, admin_headers, make_category, session):
    fiction = make_category("Fiction")

    response = await client.post(
        "/admin/products",
        headers=admin_headers,
        data=_without(product_form_data([fiction.id]), "status", "stock_quantity"),
    )

    assert response.status_code == 422
    errors = response.json()["errors"]
    assert errors["status"] == ["The status field is required."]
    assert errors["stock_quantity"] == ["The stock quantity field is required."]
    assert session.query(Product).count() == 0


async def test_update_missing_fields_does_not_reset_product(client, admin_headers, make_category):
    fiction = make_category("Fiction")
    created = (await _create(client, admin_headers, [fiction.id], stock_quantity="7")).json()["product"]

    response = await client.put(
        f"/admin/products/{created['id']}",
        headers=admin_headers,
        data=_without(product_form_data([fiction.id], title="Dune II"), "status", "stock_quantity"),
    )

    assert response.status_code == 422
    assert {"status", "stock_quantity"} <= set(response.json()["errors"])

    product = (await client.get(f"/admin/products/{created['id']}", headers=admin_headers)).json()["product"]
    assert product["title"] == "Dune"
    assert product["status"] == "active"
    assert product["stock_quantity"] == 7
