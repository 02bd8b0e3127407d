"""
Admin back-office tests.

Verifies:
- Product and category CRUD (soft deletes)
- Order list/detail with customer details and status updates
- User enable/role toggles
- Dashboard projections
"""

import pytest

from conftest import auth_headers, create_category, create_product


def place(client, services, user, items):
    headers = auth_headers(services.tokens.issue(user).access_token)
    return client.post("/api/orders", headers=headers, json={"items": items}).get_json()


# =============================================================================
# PRODUCTS & CATEGORIES
# =============================================================================


class TestAdminProducts:
    def test_create_product(self, client, services, admin_headers):
        category = create_category(services, "Respiratory")

        resp = client.post("/api/admin/products", headers=admin_headers, json={
            "name": "Salbutamol Inhaler",
            "price": "12.345",
            "stockQuantity": 40,
            "discount": 5,
            "categoryId": category.id,
            "brand": "AL-MAWRID",
        })

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["price"] == 12.35
        assert body["discount"] == 5.0
        assert body["categoryName"] == "Respiratory"
        assert body["stockQuantity"] == 40

    @pytest.mark.parametrize("payload", [
        {"price": 1},
        {"name": "X", "price": -1},
        {"name": "X", "price": 10_000_000},
        {"name": "X", "price": 1, "discount": 101},
        {"name": "X", "price": 1, "stockQuantity": -3},
        {"name": "X", "price": 1, "stockQuantity": 2.5},
        {"name": " ", "price": 1},
        {"name": "X", "price": 1, "sku": "nope"},
    ])
    def test_invalid_product_payload(self, client, admin_headers, payload):
        resp = client.post("/api/admin/products", headers=admin_headers, json=payload)

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "ValidationFailed"

    def test_unknown_category(self, client, admin_headers):
        resp = client.post("/api/admin/products", headers=admin_headers, json={
            "name": "X", "price": 1, "categoryId": 77,
        })

        assert resp.status_code == 404
        assert resp.get_json()["error"] == "CategoryNotFound"

    def test_update_product(self, client, services, admin_headers):
        product = create_product(services, stock=5)

        resp = client.put(f"/api/admin/products/{product.id}", headers=admin_headers, json={
            "stockQuantity": 50,
            "discount": None,
            "name": "Aspirin 300mg",
        })

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["stockQuantity"] == 50
        assert body["name"] == "Aspirin 300mg"
        assert body["discount"] is None

    def test_update_missing_product(self, client, admin_headers):
        resp = client.put("/api/admin/products/999", headers=admin_headers, json={"name": "X"})
        assert resp.status_code == 404

    def test_delete_is_soft(self, client, services, admin_headers):
        product = create_product(services)

        resp = client.delete(f"/api/admin/products/{product.id}", headers=admin_headers)

        assert resp.status_code == 200
        assert client.get(f"/api/products/{product.id}").status_code == 404
        listed = client.get("/api/admin/products", headers=admin_headers).get_json()
        assert [(p["id"], p["enabled"]) for p in listed] == [(product.id, False)]
        assert client.get(f"/api/admin/products/{product.id}", headers=admin_headers).status_code == 200

    def test_category_crud(self, client, services, admin_headers):
        created = client.post("/api/admin/categories", headers=admin_headers, json={
            "name": "Cardiovascular",
            "description": "Heart and blood pressure medications",
        })
        category_id = created.get_json()["id"]
        product = create_product(services, category_id=category_id)

        updated = client.put(f"/api/admin/categories/{category_id}", headers=admin_headers, json={"name": "Heart"})
        deleted = client.delete(f"/api/admin/categories/{category_id}", headers=admin_headers)

        assert created.status_code == 201
        assert updated.get_json()["name"] == "Heart"
        assert deleted.status_code == 200
        # No cascade: the product survives without a category name
        body = client.get(f"/api/products/{product.id}").get_json()
        assert body["categoryId"] == category_id
        assert body["categoryName"] is None
        admin_list = client.get("/api/admin/categories", headers=admin_headers).get_json()
        assert admin_list[0]["enabled"] is False

    def test_missing_category(self, client, admin_headers):
        assert client.put("/api/admin/categories/5", headers=admin_headers, json={"name": "X"}).status_code == 404
        assert client.delete("/api/admin/categories/5", headers=admin_headers).status_code == 404


# =============================================================================
# ORDERS
# =============================================================================


class TestAdminOrders:
    def test_list_and_detail_include_customer(self, client, services, admin_headers, customer):
        product = create_product(services)
        order = place(client, services, customer, [{"productId": product.id, "quantity": 1}])

        listing = client.get("/api/admin/orders", headers=admin_headers).get_json()
        detail = client.get(f"/api/admin/orders/{order['id']}", headers=admin_headers).get_json()

        assert listing[0]["userEmail"] == "customer@example.com"
        assert detail["userName"] == "Jane Customer"
        assert detail["items"][0]["productId"] == product.id

    def test_status_update(self, client, services, admin_headers, customer):
        product = create_product(services)
        order = place(client, services, customer, [{"productId": product.id, "quantity": 1}])

        resp = client.patch(f"/api/admin/orders/{order['id']}/status", headers=admin_headers, json={"status": "SHIPPED"})

        assert resp.status_code == 200
        assert resp.get_json()["status"] == "SHIPPED"

    def test_invalid_status(self, client, services, admin_headers, customer):
        product = create_product(services)
        order = place(client, services, customer, [{"productId": product.id, "quantity": 1}])

        resp = client.patch(f"/api/admin/orders/{order['id']}/status", headers=admin_headers, json={"status": "LOST"})

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "InvalidStatus"

    def test_status_of_missing_order(self, client, admin_headers):
        resp = client.patch("/api/admin/orders/31337/status", headers=admin_headers, json={"status": "SHIPPED"})

        assert resp.status_code == 404
        assert resp.get_json()["error"] == "OrderNotFound"


# =============================================================================
# USERS
# =============================================================================


class TestAdminUsers:
    def test_list_and_detail(self, client, admin_headers, admin_user, customer):
        listing = client.get("/api/admin/users", headers=admin_headers).get_json()
        detail = client.get(f"/api/admin/users/{customer.id}", headers=admin_headers).get_json()

        assert {u["email"] for u in listing} == {"admin@example.com", "customer@example.com"}
        assert all("passwordHash" not in u for u in listing)
        assert detail["fullName"] == "Jane Customer"

    def test_disable_and_enable(self, client, services, admin_headers, customer):
        off = client.patch(f"/api/admin/users/{customer.id}/enable", headers=admin_headers, json={"enabled": False})

        assert off.status_code == 200
        assert off.get_json()["enabled"] is False
        assert not services.auth.authenticate("customer@example.com", "secret123").ok

        on = client.patch(f"/api/admin/users/{customer.id}/enable", headers=admin_headers, json={"enabled": True})
        assert on.get_json()["enabled"] is True

    def test_enable_requires_boolean(self, client, admin_headers, customer):
        assert client.patch(f"/api/admin/users/{customer.id}/enable", headers=admin_headers, json={}).status_code == 400
        assert client.patch(
            f"/api/admin/users/{customer.id}/enable", headers=admin_headers, json={"enabled": "yes"}
        ).status_code == 400

    def test_role_change(self, client, admin_headers, customer):
        resp = client.patch(f"/api/admin/users/{customer.id}/role", headers=admin_headers, json={"role": "admin"})
        bad = client.patch(f"/api/admin/users/{customer.id}/role", headers=admin_headers, json={"role": "ROOT"})

        assert resp.get_json()["role"] == "ADMIN"
        assert bad.status_code == 400

    def test_missing_user(self, client, admin_headers):
        resp = client.get("/api/admin/users/999", headers=admin_headers)

        assert resp.status_code == 404
        assert resp.get_json()["error"] == "UserNotFound"


# =============================================================================
# DASHBOARD
# =============================================================================


class TestDashboard:
    def test_empty_store(self, client, admin_headers):
        stats = client.get("/api/admin/dashboard/stats", headers=admin_headers).get_json()

        assert stats["totalUsers"] == 1
        assert stats["totalOrders"] == 0
        assert stats["totalRevenue"] == 0.0
        assert client.get("/api/admin/dashboard/revenue/monthly", headers=admin_headers).get_json() == []
        assert client.get("/api/admin/dashboard/products/top", headers=admin_headers).get_json() == []
        assert client.get("/api/admin/dashboard/orders/status", headers=admin_headers).get_json() == []

    def test_populated_dashboard(self, client, services, admin_headers, customer):
        aspirin = create_product(services, "Aspirin", price="2.00", stock=8)
        vitamin = create_product(services, "Vitamin", price="10.00", stock=100)
        place(client, services, customer, [{"productId": aspirin.id, "quantity": 3}])
        order = place(client, services, customer, [{"productId": vitamin.id, "quantity": 2}])
        client.patch(f"/api/admin/orders/{order['id']}/status", headers=admin_headers, json={"status": "DELIVERED"})

        stats = client.get("/api/admin/dashboard/stats", headers=admin_headers).get_json()
        top = client.get("/api/admin/dashboard/products/top?limit=1", headers=admin_headers).get_json()
        statuses = client.get("/api/admin/dashboard/orders/status", headers=admin_headers).get_json()
        low = client.get("/api/admin/dashboard/products/low-stock?threshold=5", headers=admin_headers).get_json()
        monthly = client.get("/api/admin/dashboard/revenue/monthly", headers=admin_headers).get_json()

        assert stats["totalOrders"] == 2
        assert stats["totalRevenue"] == 26.0
        assert stats["pendingOrders"] == 1
        assert stats["deliveredOrders"] == 1
        assert top == [{"productId": vitamin.id, "productName": "Vitamin", "totalSales": 2, "totalRevenue": 20.0}]
        assert statuses == [{"status": "PENDING", "count": 1}, {"status": "DELIVERED", "count": 1}]
        assert low == [{"id": aspirin.id, "name": "Aspirin", "stockQuantity": 5, "threshold": 5}]
        assert len(monthly) == 1
        assert monthly[0]["revenue"] == 26.0

    def test_bad_query_param(self, client, admin_headers):
        resp = client.get("/api/admin/dashboard/products/low-stock?threshold=ten", headers=admin_headers)
        assert resp.status_code == 400


# =============================================================================
# OUT-OF-RANGE IDENTIFIERS
# =============================================================================

HUGE = 10**20


class TestOutOfRangeIds:
    @pytest.mark.parametrize("method, path, payload", [
        ("get", f"/api/admin/products/{HUGE}", None),
        ("put", f"/api/admin/products/{HUGE}", {"name": "X"}),
        ("delete", f"/api/admin/products/{HUGE}", None),
        ("put", f"/api/admin/categories/{HUGE}", {"name": "X"}),
        ("delete", f"/api/admin/categories/{HUGE}", None),
        ("get", f"/api/admin/orders/{HUGE}", None),
        ("patch", f"/api/admin/orders/{HUGE}/status", {"status": "SHIPPED"}),
        ("get", f"/api/admin/users/{HUGE}", None),
        ("patch", f"/api/admin/users/{HUGE}/enable", {"enabled": False}),
        ("patch", f"/api/admin/users/{HUGE}/role", {"role": "ADMIN"}),
    ])
    def test_huge_path_id_is_404(self, client, admin_headers, method, path, payload):
        resp = getattr(client, method)(path, headers=admin_headers, json=payload)
        assert resp.status_code == 404

    @pytest.mark.parametrize("payload", [
        {"name": "X", "price": 1, "stockQuantity": HUGE},
        {"name": "X", "price": 1, "categoryId": HUGE},
    ])
    def test_huge_payload_int_is_400(self, client, admin_headers, payload):
        resp = client.post("/api/admin/products", headers=admin_headers, json=payload)

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "ValidationFailed"

    def test_huge_stock_update_is_400(self, client, services, admin_headers):
        product = create_product(services, stock=5)

        resp = client.put(f"/api/admin/products/{product.id}", headers=admin_headers, json={"stockQuantity": HUGE})

        assert resp.status_code == 400
        assert services.catalog.get_product(product.id).unwrap().stock_quantity == 5

    def test_huge_query_param_is_400(self, client, admin_headers):
        resp = client.get(f"/api/admin/dashboard/products/low-stock?threshold={HUGE}", headers=admin_headers)
        assert resp.status_code == 400
