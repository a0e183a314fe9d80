"""
Request-scoped storage for the current tenant id.

Every request, Celery task or management command that acts for a tenant binds
the tenant id here for exactly the duration of the work and releases it on
every exit path. The binding lives in a ContextVar, so concurrent requests
(threads or asyncio tasks) never see each other's tenant.
"""

from contextlib import contextmanager
from contextvars import ContextVar
import uuid

from core.exceptions import TenantRequired


_current_tenant_id = ContextVar("current_tenant_id", default=None)


def _coerce(tenant_id):
    if tenant_id is None or isinstance(tenant_id, uuid.UUID):
        return tenant_id
    return uuid.UUID(str(tenant_id))


def set_current_tenant(tenant_id):
    """Bind the tenant id to the current execution context."""
    return _current_tenant_id.set(_coerce(tenant_id))


def get_current_tenant():
    """Return the bound tenant id, or None when nothing is bound."""
    return _current_tenant_id.get()


def require_current_tenant():
    """Return the bound tenant id or raise TenantRequired."""
    tenant_id = _current_tenant_id.get()
    if tenant_id is None:
        raise TenantRequired()
    return tenant_id


def clear_current_tenant():
    """Remove the binding from the current execution context."""
    _current_tenant_id.set(None)


@contextmanager
def tenant_scope(tenant_id):
    """
    Bind ``tenant_id`` for the body of the ``with`` block.

    The previous binding (normally none) is restored on exit, including when
    the body raises, so a pooled worker never carries a tenant into its next job.
    """
    token = set_current_tenant(tenant_id)
    try:
        yield _current_tenant_id.get()
    finally:
        _current_tenant_id.reset(token)
