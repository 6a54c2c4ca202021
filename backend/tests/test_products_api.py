"""Product API tests, including the stock movements implied by product writes."""

import pytest

from conftest import make_product


def _movements(client, headers, product_id):
    resp = client.get(f"/api/stock-movements/{product_id}", headers=headers)
    assert resp.status_code == 200
    return resp.json


class TestCreateProduct:

    def test_create_with_stock_records_initial_movement(self, client, admin_headers, admin_user, category):
        product = make_product(client, admin_headers, category["id"], stock_quantity=25)

        assert product["stock_quantity"] == 25
        assert product["category"]["name"] == "Electronics"

        movements = _movements(client, admin_headers, product["id"])
        assert len(movements) == 1
        assert movements[0]["type"] == "in"
        assert movements[0]["quantity"] == 25
        assert movements[0]["reason"] == "Initial stock"
        assert movements[0]["user_id"] == admin_user["id"]

    def test_create_without_stock_records_nothing(self, client, admin_headers, category):
        product = make_product(client, admin_headers, category["id"], stock_quantity=0)
        assert _movements(client, admin_headers, product["id"]) == []

    def test_defaults(self, client, admin_headers, category):
        resp = client.post("/api/products", json={
            "sku": "MIN-1", "name": "Minimal", "price": "3.10", "category_id": category["id"],
        }, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.json["stock_quantity"] == 0
        assert resp.json["min_stock_level"] == 0
        assert resp.json["price"] == 3.1

    def test_unknown_category(self, client, admin_headers):
        resp = client.post("/api/products", json={
            "sku": "X", "name": "X", "price": 1, "category_id": "12345",
        }, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["errors"] == [{"field": "category_id", "message": "Category not found"}]

    def test_invalid_payload(self, client, admin_headers, category):
        resp = client.post("/api/products", json={
            "sku": "X", "name": "X", "price": -5, "stock_quantity": -1, "category_id": category["id"],
        }, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Invalid input"
        assert {e["field"] for e in resp.json["errors"]} == {"price", "stock_quantity"}

    def test_duplicate_sku(self, client, admin_headers, category):
        make_product(client, admin_headers, category["id"], sku="DUP")
        resp = client.post("/api/products", json={
            "sku": "DUP", "name": "Other", "price": 1, "category_id": category["id"],
        }, headers=admin_headers)
        assert resp.status_code == 409


class TestUpdateProduct:

    @pytest.mark.parametrize("new_quantity,expected", [
        (30, ("in", 20)),
        (4, ("out", 6)),
    ])
    def test_stock_change_records_adjustment(self, client, admin_headers, category, new_quantity, expected):
        product = make_product(client, admin_headers, category["id"], stock_quantity=10)

        resp = client.put(
            f"/api/products/{product['id']}", json={"stock_quantity": new_quantity}, headers=admin_headers
        )
        assert resp.status_code == 200
        assert resp.json["stock_quantity"] == new_quantity

        latest = _movements(client, admin_headers, product["id"])[0]
        assert (latest["type"], latest["quantity"]) == expected
        assert latest["reason"] == "Stock adjustment"

    def test_same_stock_records_nothing(self, client, admin_headers, category):
        product = make_product(client, admin_headers, category["id"], stock_quantity=10)
        client.put(f"/api/products/{product['id']}", json={"stock_quantity": 10}, headers=admin_headers)
        assert len(_movements(client, admin_headers, product["id"])) == 1

    def test_partial_update_keeps_other_fields(self, client, admin_headers, category):
        product = make_product(client, admin_headers, category["id"], name="Old", price=9.99)
        resp = client.put(f"/api/products/{product['id']}", json={"name": "New"}, headers=admin_headers)
        assert resp.json["name"] == "New"
        assert resp.json["price"] == 9.99
        assert resp.json["sku"] == product["sku"]

    def test_move_to_unknown_category(self, client, admin_headers, category):
        product = make_product(client, admin_headers, category["id"])
        resp = client.put(
            f"/api/products/{product['id']}", json={"category_id": "98765"}, headers=admin_headers
        )
        assert resp.status_code == 400

    def test_empty_update(self, client, admin_headers, category):
        product = make_product(client, admin_headers, category["id"])
        resp = client.put(f"/api/products/{product['id']}", json={}, headers=admin_headers)
        assert resp.status_code == 400

    def test_not_found(self, client, admin_headers):
        resp = client.put("/api/products/424242", json={"name": "x"}, headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json == {"error": "Product not found"}


class TestReadAndDelete:

    def test_get_and_delete(self, client, admin_headers, category):
        product = make_product(client, admin_headers, category["id"])

        assert client.get(f"/api/products/{product['id']}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/products/{product['id']}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/products/{product['id']}", headers=admin_headers).status_code == 404
        assert client.delete(f"/api/products/{product['id']}", headers=admin_headers).status_code == 404

    @pytest.mark.parametrize("bad_id", ["abc", "mem_1", "0", "99999999999999999999"])
    def test_malformed_id_is_not_found(self, client, admin_headers, bad_id):
        assert client.get(f"/api/products/{bad_id}", headers=admin_headers).status_code == 404


class TestListProducts:

    @pytest.fixture
    def stocked(self, client, admin_headers, category):
        make_product(client, admin_headers, category["id"], sku="OUT", name="Empty shelf",
                     stock_quantity=0, min_stock_level=0)
        make_product(client, admin_headers, category["id"], sku="LOW", name="Nearly gone",
                     stock_quantity=5, min_stock_level=10)
        make_product(client, admin_headers, category["id"], sku="IN", name="Plenty",
                     stock_quantity=20, min_stock_level=10)

    def test_response_shape(self, client, user_headers, stocked):
        resp = client.get("/api/products", headers=user_headers)
        assert resp.status_code == 200
        assert resp.json["total"] == 3
        assert [p["sku"] for p in resp.json["products"]] == ["IN", "LOW", "OUT"]
        assert resp.json["products"][0]["category"]["name"] == "Electronics"

    @pytest.mark.parametrize("status,sku", [
        ("out_of_stock", "OUT"),
        ("low_stock", "LOW"),
        ("in_stock", "IN"),
    ])
    def test_status_filter(self, client, user_headers, stocked, status, sku):
        resp = client.get(f"/api/products?status={status}", headers=user_headers)
        assert [p["sku"] for p in resp.json["products"]] == [sku]

    def test_pagination(self, client, user_headers, stocked):
        resp = client.get("/api/products?page=2&limit=2", headers=user_headers)
        assert resp.json["total"] == 3
        assert [p["sku"] for p in resp.json["products"]] == ["OUT"]

    def test_bad_pagination_falls_back(self, client, user_headers, stocked):
        resp = client.get("/api/products?page=zero&limit=-4", headers=user_headers)
        assert resp.status_code == 200
        assert len(resp.json["products"]) == 3

    def test_search_and_category(self, client, user_headers, category, stocked):
        resp = client.get(
            f"/api/products?search=nearly&category_id={category['id']}", headers=user_headers
        )
        assert [p["sku"] for p in resp.json["products"]] == ["LOW"]

    def test_unknown_status(self, client, user_headers):
        resp = client.get("/api/products?status=gone", headers=user_headers)
        assert resp.status_code == 400
        assert resp.json["errors"][0]["field"] == "status"
