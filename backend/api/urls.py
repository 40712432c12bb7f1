from django.urls import path

from api.views.route import calculate_route

urlpatterns = [
    path("calculate-route", calculate_route),
]
