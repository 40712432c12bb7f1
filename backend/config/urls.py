from django.urls import include, path

from api.views.health import health

urlpatterns = [
    path("health", health),
    path("", include("api.urls")),
]
