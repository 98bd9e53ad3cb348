"""Tells what to show in the Django admin interface for rides app"""

from django.contrib import admin
from .models import Ride


@admin.register(Ride)
class RideAdmin(admin.ModelAdmin):
    """Ride admin"""
    list_display = ['id', 'rider', 'driver', 'event', 'status', 'priority', 'is_emergency',
                    'requested_at', 'assigned_at', 'completed_at']
    list_filter = ['status', 'is_emergency', 'event']
    search_fields = ['rider__username', 'driver__username', 'pickup_address']
    readonly_fields = ['priority', 'requested_at', 'assigned_at', 'enroute_at',
                       'completed_at', 'cancelled_at', 'emergency_escalated_at']
    date_hierarchy = 'requested_at'
