# users/tokens.py
from rest_framework import exceptions
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.tokens import RefreshToken


def tokens_for_user(user):
    """Issue a refresh/access pair carrying the user's tenant and role."""
    refresh = CustomTokenObtainPairSerializer.get_token(user)
    return {
        "refresh": str(refresh),
        "access": str(refresh.access_token),
        "email": user.email,
        "tenant_id": str(user.tenant_id),
        "role": user.role,
    }


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    default_error_messages = {
        "no_active_account": "Invalid email or password.",
        "inactive_tenant": "This tenant has been deactivated.",
    }

    @classmethod
    def get_token(cls, user):
        token = RefreshToken.for_user(user)
        # TenantMiddleware binds the request to this claim
        token["tenant_id"] = str(user.tenant_id)
        token["role"] = user.role
        token["email"] = user.email
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        user = self.user

        if not user.tenant.is_active:
            raise exceptions.AuthenticationFailed(
                self.error_messages["inactive_tenant"], "inactive_tenant"
            )

        data["email"] = user.email
        data["tenant_id"] = str(user.tenant_id)
        data["role"] = user.role
        return data
