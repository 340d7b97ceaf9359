"""Tests for the product and category endpoints."""

from decimal import Decimal

import pytest

from conftest import auth_headers, stock_of
from pharmacy.services import catalog


class TestProductListing:
    """Tests for GET /api/v1/products."""

    def test_default_pagination(self, client, make_product):
        for i in range(17):
            make_product(name=f"Product {i}")

        resp = client.get("/api/v1/products/")

        assert resp.status_code == 200
        body = resp.json()
        assert len(body["items"]) == 15
        assert body["meta"]["total"] == 17
        assert body["meta"]["last_page"] == 2

    def test_filter_by_category(self, client, category, make_product):
        make_product(name="Ibuprofen", category_id=category.id)
        make_product(name="Plasters")

        resp = client.get(f"/api/v1/products/?category_id={category.id}")

        names = [p["name"] for p in resp.json()["items"]]
        assert names == ["Ibuprofen"]

    def test_search_matches_name_and_description(self, client, make_product):
        make_product(name="Vitamin C")
        make_product(name="Zinc", description="Pairs well with vitamin D")
        make_product(name="Plasters")

        resp = client.get("/api/v1/products/?search=vitamin")

        names = sorted(p["name"] for p in resp.json()["items"])
        assert names == ["Vitamin C", "Zinc"]

    def test_sort_by_price_desc(self, client, make_product):
        make_product(name="Cheap", price="1.00")
        make_product(name="Pricey", price="30.00")
        make_product(name="Middle", price="10.00")

        resp = client.get("/api/v1/products/?sort=price&order=desc")

        assert [p["name"] for p in resp.json()["items"]] == ["Pricey", "Middle", "Cheap"]

    def test_invalid_sort_rejected(self, client):
        resp = client.get("/api/v1/products/?sort=stock")
        assert resp.status_code == 422

    @pytest.mark.parametrize("per_page", [0, 101])
    def test_per_page_bounds(self, client, per_page):
        resp = client.get(f"/api/v1/products/?per_page={per_page}")
        assert resp.status_code == 422

    def test_soft_deleted_products_hidden(self, client, db, make_product):
        from pharmacy.security.utils import now_utc

        gone = make_product(name="Gone")
        make_product(name="Here")
        gone.deleted_at = now_utc()
        db.commit()

        resp = client.get("/api/v1/products/")

        assert [p["name"] for p in resp.json()["items"]] == ["Here"]
        assert client.get(f"/api/v1/products/{gone.id}").status_code == 404


class TestProductWrites:
    """Tests for product create, update, delete and image upload."""

    def test_pharmacist_creates_product_with_slug(self, client, pharmacist, category):
        resp = client.post(
            "/api/v1/products/",
            json={"name": "Cough Syrup Extra", "price": "7.99", "stock": 12, "category_id": category.id},
            headers=auth_headers(pharmacist),
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["slug"] == "cough-syrup-extra"
        assert Decimal(body["price"]) == Decimal("7.99")

    def test_customer_cannot_create(self, client, customer):
        resp = client.post(
            "/api/v1/products/",
            json={"name": "Nope", "price": "1.00", "stock": 1},
            headers=auth_headers(customer),
        )

        assert resp.status_code == 403

    def test_negative_stock_rejected(self, client, admin):
        resp = client.post(
            "/api/v1/products/",
            json={"name": "Bad", "price": "1.00", "stock": -1},
            headers=auth_headers(admin),
        )

        assert resp.status_code == 422

    def test_unknown_category_rejected(self, client, admin):
        resp = client.post(
            "/api/v1/products/",
            json={"name": "Orphan", "price": "1.00", "stock": 1, "category_id": 77},
            headers=auth_headers(admin),
        )

        assert resp.status_code == 404

    def test_name_is_sanitized(self, client, admin):
        resp = client.post(
            "/api/v1/products/",
            json={"name": "<script>x</script>Aspirin", "price": "2.00", "stock": 1},
            headers=auth_headers(admin),
        )

        assert resp.json()["name"] == "xAspirin"

    def test_rename_updates_slug(self, client, admin, make_product):
        product = make_product(name="Old Name")

        resp = client.put(
            f"/api/v1/products/{product.id}",
            json={"name": "New Name"},
            headers=auth_headers(admin),
        )

        assert resp.status_code == 200
        assert resp.json()["slug"] == "new-name"

    def test_partial_update_keeps_other_fields(self, client, admin, make_product):
        product = make_product(name="Stable", price="9.00", stock=3)

        resp = client.put(f"/api/v1/products/{product.id}", json={"stock": 8}, headers=auth_headers(admin))

        body = resp.json()
        assert body["stock"] == 8
        assert Decimal(body["price"]) == Decimal("9.00")
        assert body["slug"] == "stable"

    @pytest.mark.parametrize("field", ["name", "price", "stock"])
    def test_explicit_null_rejected(self, client, db, admin, make_product, field):
        product = make_product(name="Stable", price="9.00", stock=3)

        resp = client.put(f"/api/v1/products/{product.id}", json={field: None}, headers=auth_headers(admin))

        assert resp.status_code == 422
        assert stock_of(db, product.id) == 3
        body = client.get(f"/api/v1/products/{product.id}").json()
        assert body["name"] == "Stable"
        assert Decimal(body["price"]) == Decimal("9.00")

    def test_delete_is_soft(self, client, db, admin, make_product):
        product = make_product()

        resp = client.delete(f"/api/v1/products/{product.id}", headers=auth_headers(admin))

        assert resp.status_code == 204
        db.refresh(product)
        assert product.deleted_at is not None

    def test_upload_image(self, client, admin, make_product, monkeypatch):
        product = make_product()
        monkeypatch.setattr(
            catalog, "upload_bytes",
            lambda data, content_type, ext="": ("products/abc" + ext, "http://minio/pharmacy-media/products/abc" + ext),
        )

        resp = client.post(
            f"/api/v1/products/{product.id}/images",
            files={"file": ("box.PNG", b"\x89PNG....", "image/png")},
            headers=auth_headers(admin),
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["images"][0]["object_key"] == "products/abc.png"
        assert body["images"][0]["position"] == 0
        assert body["image_url"] == "http://minio/pharmacy-media/products/abc.png"


class TestCategories:
    """Tests for the category endpoints."""

    def test_create_and_list(self, client, admin):
        headers = auth_headers(admin)
        client.post("/api/v1/categories/", json={"name": "Vitamins"}, headers=headers)
        client.post("/api/v1/categories/", json={"name": "Allergy"}, headers=headers)

        resp = client.get("/api/v1/categories/")

        assert [c["name"] for c in resp.json()] == ["Allergy", "Vitamins"]

    def test_duplicate_name_conflicts(self, client, admin, category):
        resp = client.post("/api/v1/categories/", json={"name": category.name}, headers=auth_headers(admin))

        assert resp.status_code == 409
        assert resp.json()["code"] == "conflict"

    def test_detail_lists_active_products(self, client, db, category, make_product):
        from pharmacy.security.utils import now_utc

        make_product(name="Active", category_id=category.id)
        hidden = make_product(name="Hidden", category_id=category.id)
        hidden.deleted_at = now_utc()
        db.commit()

        resp = client.get(f"/api/v1/categories/{category.id}")

        assert resp.status_code == 200
        assert [p["name"] for p in resp.json()["products"]] == ["Active"]

    def test_update_category(self, client, admin, category):
        resp = client.put(
            f"/api/v1/categories/{category.id}",
            json={"description": "Pain and fever"},
            headers=auth_headers(admin),
        )

        assert resp.status_code == 200
        assert resp.json()["description"] == "Pain and fever"
        assert resp.json()["name"] == category.name

    def test_null_name_rejected(self, client, admin, category):
        resp = client.put(
            f"/api/v1/categories/{category.id}",
            json={"name": None},
            headers=auth_headers(admin),
        )

        assert resp.status_code == 422
        assert client.get(f"/api/v1/categories/{category.id}").json()["name"] == category.name

    def test_delete_with_products_refused(self, client, admin, category, make_product):
        make_product(category_id=category.id)

        resp = client.delete(f"/api/v1/categories/{category.id}", headers=auth_headers(admin))

        assert resp.status_code == 409

    def test_delete_empty_category(self, client, admin, category):
        resp = client.delete(f"/api/v1/categories/{category.id}", headers=auth_headers(admin))

        assert resp.status_code == 204
        assert client.get(f"/api/v1/categories/{category.id}").status_code == 404

    def test_customer_cannot_create(self, client, customer):
        resp = client.post("/api/v1/categories/", json={"name": "Nope"}, headers=auth_headers(customer))
        assert resp.status_code == 403
