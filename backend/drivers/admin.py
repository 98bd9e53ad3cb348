from django.contrib import admin
from drivers.models import DriverAssignment


@admin.register(DriverAssignment)
class DriverAssignmentAdmin(admin.ModelAdmin):
    """Admin panel for DD enrollments per event"""

    list_display = [
        "driver",
        "event",
        "is_active",
        "inactive_toggles",
        "last_inactive_at",
        "total_rides_completed",
    ]

    list_filter = [
        "is_active",
        "event",
    ]

    search_fields = [
        "driver__username",
        "event__name",
        "car_description",
    ]

    readonly_fields = [
        "inactive_toggles",
        "toggle_window_started_at",
        "toggle_alert_sent",
        "inactivity_alerted_at",
        "last_activity_change_at",
        "total_rides_completed",
    ]

    ordering = ("event", "driver__username")
