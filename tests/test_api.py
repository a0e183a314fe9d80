import pytest
from rest_framework.test import APIClient

from imports.models import ImportJob
from orders.models import Order
from tenants.models import Tenant
from users.models import User, UserRole

from .conftest import PASSWORD

pytestmark = pytest.mark.django_db


class TestAuth:
    def test_register_creates_tenant_and_admin(self):
        client = APIClient()
        response = client.post(
            "/api/auth/register/",
            {"email": "owner@initech.test", "password": PASSWORD, "tenant_slug": "initech"},
            format="json",
        )
        assert response.status_code == 201
        assert response.data["role"] == UserRole.ADMIN
        assert {"access", "refresh", "tenant_id"} <= set(response.data)

        tenant = Tenant.objects.get(slug="initech")
        assert str(tenant.pk) == response.data["tenant_id"]

        second = client.post(
            "/api/auth/register/",
            {"email": "staff@initech.test", "password": PASSWORD, "tenant_slug": "initech"},
            format="json",
        )
        assert second.status_code == 201
        assert second.data["role"] == UserRole.USER
        assert Tenant.objects.filter(slug="initech").count() == 1

    def test_register_rejects_duplicate_email(self, acme_admin):
        response = APIClient().post(
            "/api/auth/register/",
            {"email": acme_admin.email, "password": PASSWORD, "tenant_slug": "other"},
            format="json",
        )
        assert response.status_code == 400
        assert "email" in response.data["errors"]

    def test_login_returns_tenant_scoped_tokens(self, acme_admin):
        response = APIClient().post(
            "/api/auth/login/", {"email": acme_admin.email, "password": PASSWORD}, format="json"
        )
        assert response.status_code == 200
        assert response.data["tenant_id"] == str(acme_admin.tenant_id)
        assert response.data["role"] == UserRole.ADMIN
        assert response.data["access"]

    def test_login_rejects_bad_password(self, acme_admin):
        response = APIClient().post(
            "/api/auth/login/", {"email": acme_admin.email, "password": "wrong"}, format="json"
        )
        assert response.status_code == 401

    def test_users_of_inactive_tenants_cannot_log_in(self, acme, acme_admin):
        acme.is_active = False
        acme.save()
        response = APIClient().post(
            "/api/auth/login/", {"email": acme_admin.email, "password": PASSWORD}, format="json"
        )
        assert response.status_code == 401
        assert response.data["code"] == "inactive_tenant"

    def test_me(self, acme_client, acme_admin):
        response = acme_client.get("/api/auth/me/")
        assert response.status_code == 200
        assert response.data["email"] == acme_admin.email
        assert response.data["tenant_id"] == str(acme_admin.tenant_id)


class TestOrders:
    def _create(self, client, number="ORD-1", **extra):
        return client.post("/api/orders/", {"order_number": number, **extra}, format="json")

    def test_requires_authentication(self):
        assert APIClient().get("/api/orders/").status_code == 401

    def test_create_and_read_back(self, acme_client, acme_admin):
        response = self._create(acme_client, status="SHIPPED", weight="12.50", latitude=6.5, longitude=3.4)
        assert response.status_code == 201
        assert response.data["status"] == "PENDING"
        assert response.data["tenant_id"] == str(acme_admin.tenant_id)

        fetched = acme_client.get(f"/api/orders/{response.data['id']}/")
        assert fetched.status_code == 200
        assert fetched.data == response.data
        assert Order.objects.get(pk=response.data["id"]).created_by == acme_admin

    def test_create_validates_input(self, acme_client):
        response = self._create(acme_client, number="   ", latitude=123)
        assert response.status_code == 400
        assert response.data["code"] == "invalid"
        assert response.data["detail"]
        assert {"order_number", "latitude"} <= set(response.data["errors"])

    def test_list_is_paginated_and_tenant_scoped(self, acme_client, globex_client):
        for n in range(3):
            self._create(acme_client, number=f"ORD-A{n}")
        self._create(globex_client, number="ORD-G1")

        response = acme_client.get("/api/orders/", {"size": 2, "ordering": "order_number"})
        assert response.status_code == 200
        assert response.data["count"] == 3
        assert response.data["total_pages"] == 2
        assert [o["order_number"] for o in response.data["results"]] == ["ORD-A0", "ORD-A1"]

    def test_transition(self, acme_client):
        order_id = self._create(acme_client).data["id"]

        response = acme_client.patch(f"/api/orders/{order_id}/status/", {"new_status": "APPROVED"}, format="json")
        assert response.status_code == 200
        assert response.data["status"] == "APPROVED"
        assert response.data["version"] == 1

    def test_invalid_transition_body(self, acme_client):
        order_id = self._create(acme_client).data["id"]

        response = acme_client.patch(f"/api/orders/{order_id}/status/", {"new_status": "DELIVERED"}, format="json")
        assert response.status_code == 400
        assert response.data["code"] == "invalid_transition"
        assert response.data["current"] == "PENDING"
        assert response.data["requested"] == "DELIVERED"

    def test_unknown_status_is_rejected_on_the_field(self, acme_client):
        order_id = self._create(acme_client).data["id"]

        response = acme_client.patch(f"/api/orders/{order_id}/status/", {"new_status": "approved"}, format="json")
        assert response.status_code == 400
        assert "new_status" in response.data["errors"]

    def test_cross_tenant_access_looks_like_absence(self, acme_client, globex_client):
        order_id = self._create(acme_client).data["id"]

        for response in (
            globex_client.get(f"/api/orders/{order_id}/"),
            globex_client.patch(f"/api/orders/{order_id}/status/", {"new_status": "APPROVED"}, format="json"),
        ):
            assert response.status_code == 404
            assert response.data == {"detail": "Order not found.", "code": "not_found"}

    def test_status_summary(self, acme_client, acme_admin):
        order_id = self._create(acme_client).data["id"]
        self._create(acme_client, number="ORD-2")
        acme_client.patch(f"/api/orders/{order_id}/status/", {"new_status": "CANCELLED"}, format="json")

        response = acme_client.get("/api/metrics/summary/")
        assert response.status_code == 200
        assert response.data["tenant_id"] == str(acme_admin.tenant_id)
        assert response.data["orders_by_status"]["PENDING"] == 1
        assert response.data["orders_by_status"]["CANCELLED"] == 1
        assert len(response.data["orders_by_status"]) == 6

    def test_token_of_a_deleted_user_is_rejected(self, acme_client, acme_admin):
        User.objects.filter(pk=acme_admin.pk).delete()
        assert acme_client.get("/api/orders/").status_code == 401


class TestInactiveTenant:
    @pytest.fixture(autouse=True)
    def deactivate(self, acme, acme_admin):
        acme.is_active = False
        acme.save()

    @pytest.mark.parametrize("path", [
        "/api/orders/",
        "/api/metrics/summary/",
        "/api/imports/",
        "/api/orders/stream/",
    ])
    def test_reads_are_blocked(self, acme_client, acme, path):
        ImportJob.objects.create(tenant=acme, original_name="orders.csv", source="imports/orders.csv")
        response = acme_client.get(path)
        assert response.status_code == 404
        assert response.data["code"] == "tenant_not_found"

    def test_writes_are_blocked(self, acme_client):
        response = acme_client.post("/api/orders/", {"order_number": "ORD-1"}, format="json")
        assert response.status_code == 404
        assert response.data["code"] == "tenant_not_found"
