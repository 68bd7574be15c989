"""
URL configuration for core_backend project.

Order routes are mounted by the web tier that consumes the order engine;
this project only exposes the health probe.
"""
from django.urls import path

from .views import health_check

urlpatterns = [
    path("health/", health_check, name="health-check"),
]
