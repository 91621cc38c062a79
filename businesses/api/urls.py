# businesses/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from businesses.api.viewsets import BusinessViewSet

router = DefaultRouter()
router.register(r"businesses", BusinessViewSet, basename="businesses")

urlpatterns = [
    path("", include(router.urls)),
]
