import logging

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView

from .serializers import RegisterSerializer, UserSerializer
from .tokens import CustomTokenObtainPairSerializer, tokens_for_user

logger = logging.getLogger(__name__)


@extend_schema(tags=["Authentication"])
class LoginView(TokenObtainPairView):
    """Exchange email and password for a JWT pair scoped to the user's tenant."""
    serializer_class = CustomTokenObtainPairSerializer


@extend_schema(tags=["Authentication"])
class AuthViewSet(viewsets.ViewSet):
    permission_classes = [AllowAny]

    @extend_schema(summary="Register a new user", request=RegisterSerializer)
    @action(detail=False, methods=["post"])
    def register(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        logger.info("Registered new user: email=%s, tenant_id=%s, role=%s", user.email, user.tenant_id, user.role)
        return Response(tokens_for_user(user), status=status.HTTP_201_CREATED)

    @extend_schema(summary="Current user", responses=UserSerializer)
    @action(detail=False, methods=["get"], permission_classes=[IsAuthenticated])
    def me(self, request):
        return Response(UserSerializer(request.user).data)
