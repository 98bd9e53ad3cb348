from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from drivers.models import DriverAssignment
from drivers.serializers import DriverAssignmentSerializer, DriverStatusSerializer
from rides.serializers import RideSerializer

from services.monitoring import set_driver_active
from services.ride_management import get_driver_active_rides


# Utility: Ensure request.user is a DD for the event
def require_assignment(user, event_id):
    assignment = (
        DriverAssignment.objects
        .select_related("driver", "event")
        .filter(driver=user, event_id=event_id)
        .first()
    )
    if assignment is None:
        return False, Response(
            {"error": "assignment_not_found", "message": "You are not a DD for this event"},
            status=404,
        )
    return True, assignment


class DriverStatusView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        ok, assignment = require_assignment(request.user, event_id)
        if ok is False:
            return assignment  # Response object

        return Response(DriverAssignmentSerializer(assignment).data)

    def put(self, request, event_id):
        ok, assignment = require_assignment(request.user, event_id)
        if ok is False:
            return assignment

        serializer = DriverStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        is_active = serializer.validated_data["is_active"]

        result = set_driver_active(request.user, event_id, is_active)

        state = "active" if is_active else "inactive"
        return Response({
            "message": f"Status updated to {state}" if result.changed else f"Already {state}",
            "changed": result.changed,
            "assignment": DriverAssignmentSerializer(result.assignment).data,
        })


class DriverRidesView(APIView):
    """Rides currently assigned to (or being driven by) the DD at an event"""
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        ok, assignment = require_assignment(request.user, event_id)
        if ok is False:
            return assignment

        rides = get_driver_active_rides(request.user, event_id=event_id)
        return Response({
            "count": len(rides),
            "rides": RideSerializer(rides, many=True).data,
        })
