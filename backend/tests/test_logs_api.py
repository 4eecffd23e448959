from datetime import date, timedelta

from conftest import add_movement, create_product


class TestActivityLog:

    def test_records_own_actions_newest_first(self, client, owner, other_owner, category_id):
        product = create_product(client, owner, category_id, initialStock=1)
        add_movement(client, owner, product["id"], "IN", 2)

        body = client.get("/api/logs", headers=owner).json()

        actions = [entry["action"] for entry in body["items"]]
        assert actions[:3] == ["STOCK_MOVEMENT_CREATE", "PRODUCT_CREATE", "CATEGORY_CREATE"]
        assert actions[-1] == "REGISTER"

        other = client.get("/api/logs", headers=other_owner).json()
        assert [entry["action"] for entry in other["items"]] == ["REGISTER"]

    def test_filters(self, client, owner, category_id):
        create_product(client, owner, category_id)

        by_resource = client.get("/api/logs", params={"resource": "products"}, headers=owner).json()
        assert [e["action"] for e in by_resource["items"]] == ["PRODUCT_CREATE"]

        tomorrow = (date.today() + timedelta(days=2)).isoformat()
        future = client.get("/api/logs", params={"dateFrom": tomorrow}, headers=owner).json()
        assert future["total"] == 0

    def test_failed_login_is_logged_against_user(self, client, owner):
        client.post("/api/auth/login", json={"email": "owner@example.com", "password": "wrong-one"})

        body = client.get("/api/logs", params={"status": "fail"}, headers=owner).json()

        assert [(e["action"], e["status"]) for e in body["items"]] == [("LOGIN", "FAIL")]
