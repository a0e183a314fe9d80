import logging
import uuid

from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError

from core.tenant_context import tenant_scope

logger = logging.getLogger(__name__)


class TenantMiddleware:
    """
    Bind the caller's tenant for the whole request.

    The tenant id comes from the ``tenant_id`` claim of the bearer token.
    The binding is released when the response is returned *and* when the
    view raises, so a reused worker thread never inherits the previous
    request's tenant. Requests without a valid token run unbound; DRF
    authentication rejects them later where a login is required.

    Stores the tenant id on:
    - request.tenant_id
    - core.tenant_context (for the services)
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.jwt = JWTAuthentication()

    def __call__(self, request):
        tenant_id = self._tenant_from_token(request)
        request.tenant_id = tenant_id

        with tenant_scope(tenant_id):
            return self.get_response(request)

    def _tenant_from_token(self, request):
        header = self.jwt.get_header(request)
        if header is None:
            return None

        raw_token = self.jwt.get_raw_token(header)
        if raw_token is None:
            return None

        try:
            token = self.jwt.get_validated_token(raw_token)
        except (InvalidToken, TokenError):
            logger.debug("TenantMiddleware: invalid token on %s", request.path)
            return None

        claim = token.get("tenant_id")
        if not claim:
            return None

        try:
            return uuid.UUID(str(claim))
        except ValueError:
            logger.warning("TenantMiddleware: malformed tenant_id claim %r", claim)
            return None
