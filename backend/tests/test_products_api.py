import os

import pytest

import routes.products as product_routes
from config import settings
from conftest import add_movement, create_category, create_product
from ledger.errors import PersistenceError
from ledger.products import INITIAL_STOCK_NOTE, INITIAL_STOCK_WARNING
from ledger.sql_store import SqlAlchemyMovementStore
from models.product import Product
from models.stock import StockMovement


def _list(client, headers, **params):
    response = client.get("/api/products", params=params, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


class TestCreateProduct:

    def test_initial_stock_is_one_synthetic_movement(self, client, owner, category_id, db):
        product = create_product(client, owner, category_id, initialStock=5, minStock=2)

        assert product["currentStock"] == 5
        assert product["minStock"] == 2
        assert "warning" not in product or product["warning"] is None

        movements = db.query(StockMovement).filter(StockMovement.product_id == product["id"]).all()
        assert len(movements) == 1
        assert movements[0].type == "IN"
        assert movements[0].quantity == 5
        assert movements[0].notes == INITIAL_STOCK_NOTE

        stock = client.get(f"/api/stock/products/{product['id']}", headers=owner).json()
        assert stock["currentStock"] == 5

    def test_without_initial_stock(self, client, owner, category_id, db):
        product = create_product(client, owner, category_id)

        assert product["currentStock"] == 0
        assert product["price"] == pytest.approx(9.99)
        assert product["categoryName"] == "Tools"
        assert db.query(StockMovement).count() == 0

    def test_initial_stock_failure_is_reported_not_hidden(self, client, owner, category_id, monkeypatch):
        def broken_insert(self, *args, **kwargs):
            raise PersistenceError("insert movement")

        monkeypatch.setattr(SqlAlchemyMovementStore, "insert", broken_insert)

        response = client.post(
            "/api/products",
            data={"name": "Drill", "sku": "DR-1", "categoryId": category_id, "initialStock": "5"},
            headers=owner,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["warning"] == INITIAL_STOCK_WARNING
        assert body["currentStock"] == 0

        monkeypatch.undo()
        assert [p["sku"] for p in _list(client, owner)] == ["DR-1"]

    def test_duplicate_sku_for_same_owner(self, client, owner, category_id):
        create_product(client, owner, category_id, sku="DUP")
        response = client.post(
            "/api/products",
            data={"name": "Copy", "sku": "DUP", "categoryId": category_id},
            headers=owner,
        )
        assert response.status_code == 409

    def test_same_sku_for_different_owners(self, client, owner, other_owner, category_id):
        create_product(client, owner, category_id, sku="SHARED")
        other_category = create_category(client, other_owner)
        create_product(client, other_owner, other_category, sku="SHARED")

    def test_unknown_category(self, client, owner):
        response = client.post(
            "/api/products",
            data={"name": "Nail", "sku": "N-1", "categoryId": "missing"},
            headers=owner,
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "Category not found"

    def test_other_owners_category(self, client, other_owner, category_id):
        response = client.post(
            "/api/products",
            data={"name": "Nail", "sku": "N-1", "categoryId": category_id},
            headers=other_owner,
        )
        assert response.status_code == 404

    @pytest.mark.parametrize("field,value", [("price", "-1"), ("minStock", "-2"), ("initialStock", "-3")])
    def test_rejects_negative_numbers(self, client, owner, category_id, field, value):
        data = {"name": "Nail", "sku": "N-1", "categoryId": category_id, field: value}
        response = client.post("/api/products", data=data, headers=owner)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == field

    @pytest.mark.parametrize("price", ["inf", "-inf", "nan"])
    def test_rejects_non_finite_price(self, client, owner, category_id, db, price):
        data = {"name": "Nail", "sku": "N-1", "categoryId": category_id, "price": price}
        response = client.post("/api/products", data=data, headers=owner)

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "price"
        assert db.query(Product).count() == 0

    def test_duplicate_sku_race_leaves_no_image_behind(self, client, owner, category_id, monkeypatch):
        create_product(client, owner, category_id, sku="DUP")
        before = set(os.listdir(settings.UPLOAD_DIR))
        # Both requests passed the pre-check; the unique constraint decides
        monkeypatch.setattr(product_routes, "_sku_taken", lambda *args, **kwargs: False)

        response = client.post(
            "/api/products",
            data={"name": "Copy", "sku": "DUP", "categoryId": category_id},
            files={"image": ("copy.png", b"\x89PNG copy", "image/png")},
            headers=owner,
        )

        assert response.status_code == 409
        assert set(os.listdir(settings.UPLOAD_DIR)) == before

    def test_image_upload(self, client, owner, category_id):
        response = client.post(
            "/api/products",
            data={"name": "Nail", "sku": "N-1", "categoryId": category_id},
            files={"image": ("nail.png", b"\x89PNG fake", "image/png")},
            headers=owner,
        )
        assert response.status_code == 201
        image_url = response.json()["imageUrl"]
        assert image_url.startswith("/uploads/") and image_url.endswith("-nail.png")

        served = client.get(image_url)
        assert served.status_code == 200
        assert served.content == b"\x89PNG fake"

    def test_image_type_is_checked(self, client, owner, category_id):
        response = client.post(
            "/api/products",
            data={"name": "Nail", "sku": "N-1", "categoryId": category_id},
            files={"image": ("notes.txt", b"hello", "text/plain")},
            headers=owner,
        )
        assert response.status_code == 400


class TestListProducts:

    def test_owner_scoped_with_current_stock(self, client, owner, other_owner, category_id):
        product = create_product(client, owner, category_id, initialStock=3)
        add_movement(client, owner, product["id"], "OUT", 1)

        items = _list(client, owner)
        assert [(p["sku"], p["currentStock"]) for p in items] == [("SKU-1", 2)]
        assert _list(client, other_owner) == []

    def test_search_by_name_or_sku(self, client, owner, category_id):
        create_product(client, owner, category_id, sku="HM-1", name="Hammer")
        create_product(client, owner, category_id, sku="SW-1", name="Saw")

        assert [p["name"] for p in _list(client, owner, search="ham")] == ["Hammer"]
        assert [p["name"] for p in _list(client, owner, search="sw-")] == ["Saw"]

    def test_filter_by_category(self, client, owner, category_id):
        garden = create_category(client, owner, name="Garden")
        create_product(client, owner, category_id, sku="A")
        create_product(client, owner, garden, sku="B")

        assert [p["sku"] for p in _list(client, owner, categoryId=garden)] == ["B"]

    def test_sorting(self, client, owner, category_id):
        create_product(client, owner, category_id, sku="A", name="Bolt", price=3)
        create_product(client, owner, category_id, sku="B", name="Anchor", price=1)
        create_product(client, owner, category_id, sku="C", name="Clamp", price=2)

        assert [p["name"] for p in _list(client, owner)] == ["Anchor", "Bolt", "Clamp"]
        assert [p["sku"] for p in _list(client, owner, sort="price", order="desc")] == ["A", "C", "B"]

    def test_low_stock_filter(self, client, owner, category_id):
        low = create_product(client, owner, category_id, sku="LOW", minStock=10)
        add_movement(client, owner, low["id"], "IN", 20)
        add_movement(client, owner, low["id"], "OUT", 15)
        create_product(client, owner, category_id, sku="EXACT", minStock=4, initialStock=4)
        create_product(client, owner, category_id, sku="PLENTY", minStock=1, initialStock=50)

        below = _list(client, owner, minStock="below")
        assert [(p["sku"], p["currentStock"]) for p in below] == [("LOW", 5)]

        above = _list(client, owner, minStock="above", sort="sku")
        assert [p["sku"] for p in above] == ["EXACT", "PLENTY"]


class TestGetUpdateDelete:

    def test_get_single(self, client, owner, other_owner, category_id):
        product = create_product(client, owner, category_id, initialStock=7)

        response = client.get(f"/api/products/{product['id']}", headers=owner)
        assert response.status_code == 200
        assert response.json()["currentStock"] == 7

        assert client.get(f"/api/products/{product['id']}", headers=other_owner).status_code == 404

    def test_update(self, client, owner, category_id):
        product = create_product(client, owner, category_id, initialStock=2)
        garden = create_category(client, owner, name="Garden")

        response = client.put(
            f"/api/products/{product['id']}",
            data={"name": "Claw hammer", "sku": "SKU-1B", "categoryId": garden,
                  "price": "12.5", "minStock": "3"},
            headers=owner,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Claw hammer"
        assert body["sku"] == "SKU-1B"
        assert body["categoryName"] == "Garden"
        assert body["minStock"] == 3
        assert body["currentStock"] == 2

    def test_update_other_owner(self, client, owner, other_owner, category_id):
        product = create_product(client, owner, category_id)
        response = client.put(
            f"/api/products/{product['id']}",
            data={"name": "X", "sku": "X", "categoryId": category_id, "price": "1", "minStock": "0"},
            headers=other_owner,
        )
        assert response.status_code == 404

    def test_delete_removes_movements_too(self, client, owner, category_id, db):
        product = create_product(client, owner, category_id, initialStock=5)
        add_movement(client, owner, product["id"], "OUT", 2)

        response = client.delete(f"/api/products/{product['id']}", headers=owner)

        assert response.status_code == 204
        assert db.query(StockMovement).count() == 0
        assert client.get(f"/api/products/{product['id']}", headers=owner).status_code == 404

    def test_delete_other_owner_keeps_everything(self, client, owner, other_owner, category_id, db):
        product = create_product(client, owner, category_id, initialStock=5)

        response = client.delete(f"/api/products/{product['id']}", headers=other_owner)

        assert response.status_code == 404
        assert db.query(StockMovement).count() == 1

    def test_update_rejects_infinite_price(self, client, owner, category_id, db):
        product = create_product(client, owner, category_id)

        response = client.put(
            f"/api/products/{product['id']}",
            data={"name": "Hammer", "sku": "SKU-1", "categoryId": category_id,
                  "price": "inf", "minStock": "0"},
            headers=owner,
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "price"
        assert db.query(Product).one().price == pytest.approx(9.99)

    def test_update_conflict_discards_new_image(self, client, owner, category_id, monkeypatch):
        create_product(client, owner, category_id, sku="TAKEN")
        product = create_product(client, owner, category_id, sku="MINE")
        before = set(os.listdir(settings.UPLOAD_DIR))
        monkeypatch.setattr(product_routes, "_sku_taken", lambda *args, **kwargs: False)

        response = client.put(
            f"/api/products/{product['id']}",
            data={"name": "Hammer", "sku": "TAKEN", "categoryId": category_id,
                  "price": "1", "minStock": "0"},
            files={"image": ("new.png", b"\x89PNG new", "image/png")},
            headers=owner,
        )

        assert response.status_code == 409
        assert set(os.listdir(settings.UPLOAD_DIR)) == before
