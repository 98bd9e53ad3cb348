from rest_framework import serializers

from accounts.serializers import UserBasicSerializer
from drivers.models import DriverAssignment


class DriverAssignmentSerializer(serializers.ModelSerializer):
    """
    A DD's assignment to an event, with availability and toggle-window state.
    """
    driver = UserBasicSerializer(read_only=True)

    class Meta:
        model = DriverAssignment
        fields = [
            "id",
            "driver",
            "event",
            "car_description",
            "is_active",
            "last_activity_change_at",
            "last_active_at",
            "last_inactive_at",
            "inactive_toggles",
            "toggle_window_started_at",
            "total_rides_completed",
        ]
        read_only_fields = fields


class DriverStatusSerializer(serializers.Serializer):
    """
    Used for PUT /events/<event_id>/status/
    """
    is_active = serializers.BooleanField()
