from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from events.models import Event
from .models import Ride
from .permissions import can_view_event_queue
from .serializers import (
    RideSerializer,
    RideRequestCreateSerializer,
    RideCancelSerializer,
    QueueEntrySerializer,
)

# Import from services layer
from services.ride_management import (
    request_ride,
    cancel_ride,
    start_enroute,
    complete_ride,
    get_current_rider_ride,
    RideNotFoundError,
    RideNotAvailableError,
    ActiveRideExistsError,
    EventNotActiveError,
    InvalidRideRequestError,
)
from services.queue import get_event_queue, get_queue_position, queue_stats


def _error(code, exc, http_status):
    return Response({'error': code, 'message': str(exc)}, status=http_status)


# ==================== Rider Ride APIs ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def create_ride_request(request):
    """Join the event queue (rider taps Request a Ride)"""
    serializer = RideRequestCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        result = request_ride(rider=request.user, **serializer.validated_data)
    except EventNotActiveError as exc:
        return _error('event_not_active', exc, status.HTTP_400_BAD_REQUEST)
    except InvalidRideRequestError as exc:
        return _error('invalid_request', exc, status.HTTP_400_BAD_REQUEST)
    except ActiveRideExistsError as exc:
        return _error('active_ride_exists', exc, status.HTTP_400_BAD_REQUEST)

    return Response({
        **RideSerializer(result.ride).data,
        'message': result.message,
        'queue_position': result.extra['queue_position'],
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_current_ride(request):
    """
    Get rider's current active ride (POLLING ENDPOINT)

    Includes the live queue position while the ride is waiting
    """
    ride = get_current_rider_ride(request.user)
    if ride is None:
        return Response({'ride': None, 'message': 'No active ride'})

    return Response({
        'ride': RideSerializer(ride).data,
        'queue_position': get_queue_position(ride.id),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cancel_ride_view(request, ride_id):
    """Rider cancels a queued or assigned ride"""
    serializer = RideCancelSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    reason = serializer.validated_data.get('reason') or 'No reason provided'

    try:
        result = cancel_ride(ride_id, rider=request.user, reason=reason)
    except RideNotFoundError as exc:
        return _error('ride_not_found', exc, status.HTTP_404_NOT_FOUND)
    except RideNotAvailableError as exc:
        return _error('ride_not_available', exc, status.HTTP_400_BAD_REQUEST)

    return Response({
        'message': result.message,
        'ride': RideSerializer(result.ride).data,
        'was_assigned': result.extra['was_assigned'],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def ride_position(request, ride_id):
    """Queue position of one of the caller's rides (null once it has left the queue)"""
    ride = Ride.objects.filter(id=ride_id, rider=request.user).first()
    if ride is None:
        return Response({'error': 'ride_not_found', 'message': 'Ride not found'},
                        status=status.HTTP_404_NOT_FOUND)

    return Response({
        'ride_id': ride.id,
        'status': ride.status,
        'queue_position': get_queue_position(ride.id),
    })


# ==================== DD Ride Actions ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def start_ride_enroute(request, ride_id):
    """DD picked up / is heading to the rider"""
    try:
        result = start_enroute(request.user, ride_id)
    except RideNotFoundError as exc:
        return _error('ride_not_found', exc, status.HTTP_404_NOT_FOUND)
    except RideNotAvailableError as exc:
        return _error('ride_not_available', exc, status.HTTP_400_BAD_REQUEST)

    return Response({'message': result.message, 'ride': RideSerializer(result.ride).data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def complete_ride_view(request, ride_id):
    """DD dropped the rider off"""
    try:
        result = complete_ride(request.user, ride_id)
    except RideNotFoundError as exc:
        return _error('ride_not_found', exc, status.HTTP_404_NOT_FOUND)
    except RideNotAvailableError as exc:
        return _error('ride_not_available', exc, status.HTTP_400_BAD_REQUEST)

    return Response({'message': result.message, 'ride': RideSerializer(result.ride).data})


# ==================== Event Queue APIs ====================

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def event_queue(request, event_id):
    """Full ranked queue of an event (admins and DDs)"""
    event = Event.objects.filter(id=event_id).first()
    if event is None:
        return Response({'error': 'event_not_found', 'message': 'Event not found'},
                        status=status.HTTP_404_NOT_FOUND)
    if not can_view_event_queue(request.user, event):
        return Response({'error': 'forbidden', 'message': 'Only admins and DDs can view the queue'},
                        status=status.HTTP_403_FORBIDDEN)

    queue = get_event_queue(event.id)
    return Response({
        'event_id': event.id,
        'count': len(queue),
        'queue': QueueEntrySerializer(queue, many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def event_queue_stats(request, event_id):
    """Ride counts and driver availability for an event dashboard"""
    event = Event.objects.filter(id=event_id).first()
    if event is None:
        return Response({'error': 'event_not_found', 'message': 'Event not found'},
                        status=status.HTTP_404_NOT_FOUND)
    if not can_view_event_queue(request.user, event):
        return Response({'error': 'forbidden', 'message': 'Only admins and DDs can view queue stats'},
                        status=status.HTTP_403_FORBIDDEN)

    return Response({'event_id': event.id, **queue_stats(event.id)})
