import logging

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.tenant_context import get_current_tenant
from imports.serializers import ImportJobSerializer, ImportUploadSerializer
from imports.services import start_import
from notifications.streams import EventStreamRenderer, tenant_event_stream
from users.permissions import IsTenantMember
from .serializers import (
    OrderCreateSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
    PageParamsSerializer,
    StatusSummarySerializer,
)
from .services import OrderLifecycleService

logger = logging.getLogger(__name__)


@extend_schema(tags=["Orders"])
class OrderViewSet(viewsets.ViewSet):
    """
    Orders of the caller's tenant.
    The tenant is bound by TenantMiddleware; nothing here reads it from the request.
    """
    permission_classes = [IsAuthenticated, IsTenantMember]
    service_class = OrderLifecycleService

    def get_service(self):
        return self.service_class()

    @extend_schema(summary="List orders for current tenant", parameters=[PageParamsSerializer], responses=OrderSerializer(many=True))
    def list(self, request):
        params = PageParamsSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        page = self.get_service().get_orders(params.to_page_params())
        return Response({
            "count": page.paginator.count,
            "page": page.number,
            "size": page.paginator.per_page,
            "total_pages": page.paginator.num_pages,
            "results": OrderSerializer(page.object_list, many=True).data,
        })

    @extend_schema(summary="Create a new order", request=OrderCreateSerializer, responses={201: OrderSerializer})
    def create(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self.get_service().create_order(serializer.validated_data, actor_email=request.user.email)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @extend_schema(summary="Get order by ID", responses=OrderSerializer)
    def retrieve(self, request, pk=None):
        order = self.get_service().get_order_by_id(pk)
        return Response(OrderSerializer(order).data)

    @extend_schema(summary="Transition order status", request=OrderStatusUpdateSerializer, responses=OrderSerializer)
    @action(detail=True, methods=["patch"], url_path="status")
    def transition(self, request, pk=None):
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self.get_service().transition_status(pk, serializer.validated_data["new_status"])
        return Response(OrderSerializer(order).data)

    @extend_schema(summary="Import orders from CSV file", request=ImportUploadSerializer, responses={202: ImportJobSerializer})
    @action(detail=False, methods=["post"], url_path="import", parser_classes=[MultiPartParser])
    def import_csv(self, request):
        serializer = ImportUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        job = start_import(serializer.validated_data["file"], submitted_by=request.user)
        return Response(ImportJobSerializer(job).data, status=status.HTTP_202_ACCEPTED)

    @extend_schema(summary="Live order events for current tenant (server-sent events)", responses={200: str})
    @action(detail=False, methods=["get"], url_path="stream", renderer_classes=[EventStreamRenderer])
    def stream(self, request):
        return tenant_event_stream(get_current_tenant())


@extend_schema(tags=["Metrics"])
class StatusSummaryView(APIView):
    permission_classes = [IsAuthenticated, IsTenantMember]

    @extend_schema(summary="Order count by status for current tenant", responses=StatusSummarySerializer)
    def get(self, request):
        summary = OrderLifecycleService().status_summary()
        return Response({
            "tenant_id": str(get_current_tenant()),
            "orders_by_status": summary,
        })
