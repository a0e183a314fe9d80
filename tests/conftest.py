import pytest
from rest_framework.test import APIClient

from core.tenant_context import clear_current_tenant
from notifications.channels import _load_layer
from smartlogix.celery import app as celery_app
from tenants.models import Tenant
from users.models import User, UserRole
from users.tokens import tokens_for_user

PASSWORD = "Str0ng-pass-2024"


@pytest.fixture(autouse=True)
def isolated_runtime(settings, tmp_path):
    """Uploads in a temp dir, in-process Celery, a fresh in-memory live channel and no tenant bound."""
    settings.MEDIA_ROOT = str(tmp_path / "media")
    settings.ORDER_EVENTS = {
        **settings.ORDER_EVENTS,
        "LIVE_CHANNEL_BACKEND": "notifications.channels.InMemoryChannelLayer",
    }
    celery_app.conf.task_always_eager = True
    celery_app.conf.task_eager_propagates = True
    _load_layer.cache_clear()
    clear_current_tenant()
    yield
    _load_layer.cache_clear()
    clear_current_tenant()


@pytest.fixture
def acme(db):
    return Tenant.objects.create(name="Acme", slug="acme")


@pytest.fixture
def globex(db):
    return Tenant.objects.create(name="Globex", slug="globex")


@pytest.fixture
def make_user(db):
    def _make(tenant, email, role=UserRole.USER):
        return User.objects.create_user(email=email, password=PASSWORD, tenant=tenant, role=role)
    return _make


@pytest.fixture
def acme_admin(acme, make_user):
    return make_user(acme, "admin@acme.test", UserRole.ADMIN)


@pytest.fixture
def acme_user(acme, make_user):
    return make_user(acme, "clerk@acme.test")


@pytest.fixture
def globex_admin(globex, make_user):
    return make_user(globex, "admin@globex.test", UserRole.ADMIN)


@pytest.fixture
def client_for():
    """APIClient sending a real bearer token, so TenantMiddleware binds the tenant."""
    def _client(user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens_for_user(user)['access']}")
        return client
    return _client


@pytest.fixture
def acme_client(client_for, acme_admin):
    return client_for(acme_admin)


@pytest.fixture
def globex_client(client_for, globex_admin):
    return client_for(globex_admin)


class RecordingSink:
    def __init__(self, fail_broker=False, fail_channel=False):
        self.fail_broker = fail_broker
        self.fail_channel = fail_channel
        self.broker = []
        self.channel = []

    def publish_to_broker(self, topic, event):
        if self.fail_broker:
            raise ConnectionError("broker unreachable")
        self.broker.append((topic, event))

    def publish_to_tenant_channel(self, tenant_id, event):
        if self.fail_channel:
            raise ConnectionError("channel unreachable")
        self.channel.append((tenant_id, event))


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def sink_factory():
    return RecordingSink
