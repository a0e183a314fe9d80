from drf_spectacular.utils import extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from users.permissions import IsTenantAdmin, IsTenantMember
from .models import ImportJob
from .serializers import ImportJobSerializer
from .services import restart_import


@extend_schema(tags=["Imports"])
class ImportJobViewSet(viewsets.ReadOnlyModelViewSet):
    """Progress of the current tenant's order imports."""
    serializer_class = ImportJobSerializer
    permission_classes = [IsAuthenticated, IsTenantMember]

    def get_queryset(self):
        return ImportJob.objects.for_current_tenant().select_related("submitted_by")

    @extend_schema(summary="Restart a failed import from its last committed chunk", request=None, responses=ImportJobSerializer)
    @action(detail=True, methods=["post"], permission_classes=[IsAuthenticated, IsTenantAdmin])
    def restart(self, request, pk=None):
        job = self.get_object()
        return Response(ImportJobSerializer(restart_import(job)).data)
