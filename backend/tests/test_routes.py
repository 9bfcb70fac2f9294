"""
HTTP API tests.

Verifies:
- Requests without a known X-User-Id return 401
- Roles lacking a permission get 403
- Status mapping: validation 400, missing records 404
- Conversion and part reservation through the API
"""

import pytest

from conftest import user_headers


# =============================================================================
# SYSTEM
# =============================================================================


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert body["checks"]["store"]["details"]["clients"] == 8


def test_cors_header_for_allowed_origin(client, staff_headers):
    resp = client.get("/api/clients", headers={**staff_headers, "Origin": "http://localhost:5173"})
    assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    resp = client.get("/api/clients", headers={**staff_headers, "Origin": "http://evil.example"})
    assert "Access-Control-Allow-Origin" not in resp.headers


# =============================================================================
# IDENTIFICATION (401)
# =============================================================================


class TestIdentification:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/clients"),
            ("POST", "/api/clients"),
            ("GET", "/api/vehicles"),
            ("GET", "/api/appointments"),
            ("POST", "/api/appointments/apt-1/convert"),
            ("GET", "/api/work-orders"),
            ("GET", "/api/inventory/parts"),
            ("POST", "/api/inventory/movements"),
            ("GET", "/api/settings/branches"),
            ("GET", "/api/reports/dashboard?branch_id=branch-1"),
        ],
    )
    def test_requires_user(self, client, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_unknown_user(self, client):
        resp = client.get("/api/clients", headers=user_headers("user-ghost"))
        assert resp.status_code == 401

    def test_me(self, client, staff_headers):
        body = client.get("/api/settings/me", headers=staff_headers).get_json()
        assert body["role"] == "staff"
        assert "MANAGE_INVENTORY" not in body["permissions"]


# =============================================================================
# ROLES (403)
# =============================================================================


class TestRoles:

    def test_staff_cannot_view_reports(self, client, staff_headers, manager_headers):
        assert client.get("/api/reports/work-orders", headers=staff_headers).status_code == 403
        assert client.get("/api/reports/work-orders", headers=manager_headers).status_code == 200

    def test_staff_cannot_record_movements(self, client, staff_headers):
        resp = client.post("/api/inventory/movements", headers=staff_headers, json={
            "part_item_id": "part-1", "branch_id": "branch-1", "type": "in", "qty": 1,
        })
        assert resp.status_code == 403
        assert resp.get_json()["required_permission"] == "MANAGE_INVENTORY"

    def test_only_owner_manages_users(self, client, owner_headers, manager_headers):
        payload = {"name": "New Mechanic", "role": "staff", "branch_id": "branch-2"}
        assert client.post("/api/settings/users", headers=manager_headers, json=payload).status_code == 403

        resp = client.post("/api/settings/users", headers=owner_headers, json=payload)
        assert resp.status_code == 201
        assert resp.get_json()["id"].startswith("user-")

    def test_staff_can_read_catalog(self, client, staff_headers):
        resp = client.get("/api/settings/services?category=wash", headers=staff_headers)
        assert resp.status_code == 200
        assert [s["id"] for s in resp.get_json()["items"]] == ["srv-6", "srv-7", "srv-8"]

    def test_staff_cannot_edit_catalog(self, client, staff_headers):
        resp = client.patch("/api/settings/services/srv-1", headers=staff_headers, json={"base_price": 1})
        assert resp.status_code == 403


# =============================================================================
# CLIENTS
# =============================================================================


class TestClients:

    def test_search(self, client, staff_headers):
        resp = client.get("/api/clients?q=taxi", headers=staff_headers)
        assert [c["id"] for c in resp.get_json()["items"]] == ["client-5"]

    def test_detail_includes_related_records(self, client, staff_headers):
        body = client.get("/api/clients/client-1", headers=staff_headers).get_json()
        assert [v["id"] for v in body["vehicles"]] == ["veh-1", "veh-2"]
        assert [wo["id"] for wo in body["work_orders"]] == ["wo-2"]
        assert [a["id"] for a in body["appointments"]] == ["apt-1"]

    def test_create_and_update(self, client, staff_headers):
        resp = client.post("/api/clients", headers=staff_headers, json={"name": "Ivan Petrov", "phone": "+7 900"})
        assert resp.status_code == 201
        client_id = resp.get_json()["id"]

        resp = client.patch(f"/api/clients/{client_id}", headers=staff_headers, json={"tags": ["New"]})
        assert resp.status_code == 200
        assert resp.get_json()["tags"] == ["New"]

    def test_validation_error_is_400(self, client, staff_headers):
        resp = client.patch("/api/clients/client-1", headers=staff_headers, json={"created_at": "2020-01-01"})
        assert resp.status_code == 400
        assert "created_at" in resp.get_json()["error"]

    def test_missing_client_is_404(self, client, staff_headers):
        assert client.get("/api/clients/client-missing", headers=staff_headers).status_code == 404
        assert client.patch("/api/clients/client-missing", headers=staff_headers, json={}).status_code == 404
        assert client.delete("/api/clients/client-missing", headers=staff_headers).status_code == 404


# =============================================================================
# APPOINTMENTS
# =============================================================================


class TestAppointments:

    def test_create_estimates_end(self, client, staff_headers):
        resp = client.post("/api/appointments", headers=staff_headers, json={
            "branch_id": "branch-1",
            "client_id": "client-3",
            "vehicle_id": "veh-5",
            "service_ids": ["srv-2", "srv-3"],
            "start_at": "2024-06-03T10:00:00Z",
        })
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["end_at"] == "2024-06-03T12:00:00Z"
        assert body["status"] == "new"

    def test_upcoming_rejects_negative_limit(self, client, staff_headers):
        assert client.get("/api/appointments/upcoming?limit=-1", headers=staff_headers).status_code == 400
        assert client.get("/api/appointments/upcoming?limit=0", headers=staff_headers).get_json()["items"] == []

    def test_invalid_day_filter(self, client, staff_headers):
        assert client.get("/api/appointments?day=tomorrow", headers=staff_headers).status_code == 400

    def test_convert(self, client, staff_headers):
        resp = client.post("/api/appointments/apt-1/convert", headers=staff_headers)
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["number"] == "WO-2024-006"
        assert [line["service_id"] for line in body["service_lines"]] == ["srv-1", "srv-4"]

        apt = client.get("/api/appointments/apt-1", headers=staff_headers).get_json()
        assert apt["status"] == "done"

    def test_convert_missing(self, client, staff_headers):
        assert client.post("/api/appointments/apt-missing/convert", headers=staff_headers).status_code == 404


# =============================================================================
# WORK ORDERS
# =============================================================================


class TestWorkOrders:

    def test_detail_has_lines_and_totals(self, client, staff_headers):
        body = client.get("/api/work-orders/wo-3", headers=staff_headers).get_json()
        assert len(body["service_lines"]) == 2
        assert len(body["part_lines"]) == 2
        assert body["totals"]["grand_total"] == 8050

    def test_number_is_read_only(self, client, staff_headers):
        resp = client.patch("/api/work-orders/wo-1", headers=staff_headers, json={"number": "WO-1"})
        assert resp.status_code == 400

    def test_add_and_remove_service_line(self, client, staff_headers):
        resp = client.post("/api/work-orders/wo-5/service-lines", headers=staff_headers, json={"service_id": "srv-14"})
        assert resp.status_code == 201
        line_id = resp.get_json()["id"]
        assert resp.get_json()["price"] == 500

        assert client.delete(f"/api/work-orders/wo-5/service-lines/{line_id}", headers=staff_headers).status_code == 200
        assert client.delete(f"/api/work-orders/wo-1/service-lines/{line_id}", headers=staff_headers).status_code == 404

    def test_reserve_consume_release(self, client, staff_headers, store):
        resp = client.post("/api/work-orders/wo-1/parts", headers=staff_headers, json={"part_item_id": "part-4", "qty": 2})
        assert resp.status_code == 201
        line_id = resp.get_json()["id"]
        assert store.get_part_by_id("part-4").stock_at("branch-1") == 6

        resp = client.post(f"/api/work-orders/wo-1/parts/{line_id}/consume", headers=staff_headers)
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "consumed"

        resp = client.delete(f"/api/work-orders/wo-1/parts/{line_id}", headers=staff_headers)
        assert resp.status_code == 400

    def test_release_reserved(self, client, staff_headers, store):
        resp = client.delete("/api/work-orders/wo-2/parts/wopl-2", headers=staff_headers)
        assert resp.status_code == 200
        assert resp.get_json()["movement"]["type"] == "return"
        assert store.get_part_by_id("part-6").stock_at("branch-1") == 4

    def test_reserve_errors(self, client, staff_headers):
        assert client.post("/api/work-orders/wo-1/parts", headers=staff_headers, json={}).status_code == 400
        assert client.post(
            "/api/work-orders/wo-1/parts", headers=staff_headers, json={"part_item_id": "part-1", "qty": 0}
        ).status_code == 400
        assert client.post(
            "/api/work-orders/wo-missing/parts", headers=staff_headers, json={"part_item_id": "part-1"}
        ).status_code == 404

    def test_delete_cascades(self, client, staff_headers, store):
        assert client.delete("/api/work-orders/wo-3", headers=staff_headers).status_code == 200
        assert store.get_part_lines_for_work_order("wo-3") == []


# =============================================================================
# INVENTORY AND REPORTS
# =============================================================================


class TestInventoryAndReports:

    def test_record_movement(self, client, manager_headers):
        resp = client.post("/api/inventory/movements", headers=manager_headers, json={
            "part_item_id": "part-6", "branch_id": "branch-1", "type": "in", "qty": 5, "note": "Delivery",
        })
        assert resp.status_code == 201
        assert resp.get_json()["stock"] == 8

        low = client.get("/api/inventory/low-stock?branch_id=branch-1", headers=manager_headers).get_json()
        assert low["items"] == []

    def test_low_stock_requires_branch(self, client, staff_headers):
        assert client.get("/api/inventory/low-stock", headers=staff_headers).status_code == 400

    def test_dashboard(self, client, manager_headers):
        resp = client.get("/api/reports/dashboard?branch_id=branch-1", headers=manager_headers)
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["open_work_orders"] == 3
        assert body["low_stock_items"] == 1
        assert body["recent_work_orders"][0]["id"] == "wo-5"

    def test_top_services(self, client, owner_headers):
        items = client.get("/api/reports/top-services?limit=3", headers=owner_headers).get_json()["items"]
        assert len(items) == 3

        resp = client.get("/api/reports/top-services?limit=-1", headers=owner_headers)
        assert resp.status_code == 400
