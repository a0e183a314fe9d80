from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.db import transaction
from rest_framework import serializers

from tenants.models import Tenant
from .models import UserRole

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    tenant_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = User
        fields = ["id", "email", "role", "tenant_id", "created_at"]
        read_only_fields = fields


class RegisterSerializer(serializers.Serializer):
    """
    Register a user under a tenant slug.
    An unknown slug creates the tenant and makes this user its admin.
    """
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, validators=[validate_password])
    tenant_slug = serializers.SlugField(max_length=100)

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value

    def validate_tenant_slug(self, value):
        tenant = Tenant.objects.filter(slug=value).first()
        if tenant is not None and not tenant.is_active:
            raise serializers.ValidationError("This tenant has been deactivated.")
        return value

    @transaction.atomic
    def create(self, validated_data):
        slug = validated_data["tenant_slug"]
        tenant, created = Tenant.objects.get_or_create(
            slug=slug,
            defaults={"name": slug, "is_active": True},
        )

        return User.objects.create_user(
            email=validated_data["email"],
            password=validated_data["password"],
            tenant=tenant,
            role=UserRole.ADMIN if created else UserRole.USER,
        )
