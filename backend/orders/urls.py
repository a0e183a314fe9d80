from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import OrderViewSet, StatusSummaryView

router = DefaultRouter()
router.register(r"orders", OrderViewSet, basename="order")

urlpatterns = [
    path("metrics/summary/", StatusSummaryView.as_view(), name="metrics-summary"),
] + router.urls
