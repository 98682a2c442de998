from django.urls import path, include
from rest_framework import routers
from .views import ComboViewSet, MenuItemViewSet

app_name = "menu"

router = routers.DefaultRouter()
router.register(r"menu/items", MenuItemViewSet, basename="menu-item")
router.register(r"menu/combos", ComboViewSet, basename="combo")

urlpatterns = [
    path("", include(router.urls)),
]
