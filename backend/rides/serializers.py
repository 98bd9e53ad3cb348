from rest_framework import serializers

from accounts.serializers import UserBasicSerializer
from .models import Ride


class RideSerializer(serializers.ModelSerializer):
    """Serializer for rides"""
    rider = UserBasicSerializer(read_only=True)
    driver = UserBasicSerializer(read_only=True)

    class Meta:
        model = Ride
        fields = ['id', 'rider', 'driver', 'event', 'chapter', 'status', 'priority',
                  'is_emergency', 'emergency_reason', 'pickup_address', 'dropoff_address',
                  'notes', 'estimated_wait_minutes', 'requested_at', 'assigned_at',
                  'enroute_at', 'completed_at', 'cancelled_at', 'cancellation_reason']
        read_only_fields = fields


class RideRequestCreateSerializer(serializers.Serializer):
    """Serializer for creating ride requests"""
    event_id = serializers.IntegerField(min_value=1)
    pickup_address = serializers.CharField(max_length=500)
    dropoff_address = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')
    is_emergency = serializers.BooleanField(required=False, default=False)
    emergency_reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class RideCancelSerializer(serializers.Serializer):
    """Serializer for ride cancellation"""
    reason = serializers.CharField(required=False, allow_blank=True)


class QueueEntrySerializer(serializers.Serializer):
    """One ranked entry of an event queue (built from services.queue.RankedRide)."""
    ride_id = serializers.IntegerField(source='ride.id')
    position = serializers.IntegerField()
    priority = serializers.FloatField()
    status = serializers.CharField(source='ride.status')
    is_emergency = serializers.BooleanField(source='ride.is_emergency')
    rider = UserBasicSerializer(source='ride.rider')
    driver_id = serializers.IntegerField(source='ride.driver_id', allow_null=True)
    requested_at = serializers.DateTimeField(source='ride.requested_at')
