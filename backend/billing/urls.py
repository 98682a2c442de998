from django.urls import path, include
from rest_framework import routers
from .views import BillingViewSet

app_name = "billing"

router = routers.DefaultRouter()
router.register(r"billing", BillingViewSet, basename="billing")

urlpatterns = [
    path("", include(router.urls)),
]
