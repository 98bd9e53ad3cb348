from django.urls import path
from .views import (
    DriverStatusView,
    DriverRidesView,
)

urlpatterns = [
    path("events/<int:event_id>/status/", DriverStatusView.as_view(), name="driver-status"),
    path("events/<int:event_id>/rides/", DriverRidesView.as_view(), name="driver-rides"),
]
