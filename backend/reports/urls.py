from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r"reports/orders", views.OrderAnalyticsViewSet, basename="order-analytics")

urlpatterns = [
    path("", include(router.urls)),
]

# GET /reports/orders/summary/?start_date=2024-01-01&end_date=2024-01-31
# GET /reports/orders/status-summary/
# GET /reports/orders/trends/?bucket=hour
# GET /reports/orders/recent-activity/?limit=20
