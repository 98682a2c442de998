from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("orders.urls")),
    path("api/", include("billing.urls")),
    path("api/", include("menu.urls")),
    path("api/", include("reports.urls")),
]
