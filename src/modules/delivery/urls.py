"""Delivery URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.delivery.views import DeliveryViewSet, TripViewSet

router = DefaultRouter(trailing_slash=True)
router.register("delivery", DeliveryViewSet, basename="delivery")
router.register("trips", TripViewSet, basename="trip")

urlpatterns = router.urls
