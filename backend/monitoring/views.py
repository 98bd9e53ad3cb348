from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from services.monitoring import list_unread_alerts, mark_alert_read, AlertNotFoundError
from .serializers import AdminAlertSerializer


def _require_chapter_admin(user):
    if user.role != 'admin' or user.chapter_id is None:
        return Response(
            {'error': 'forbidden', 'message': 'Only chapter admins can view alerts'},
            status=status.HTTP_403_FORBIDDEN
        )
    return None


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def unread_alerts(request):
    """Unread alerts for the admin's chapter, newest first"""
    denied = _require_chapter_admin(request.user)
    if denied:
        return denied

    alerts = list_unread_alerts(request.user.chapter_id)
    return Response({
        'count': len(alerts),
        'alerts': AdminAlertSerializer(alerts, many=True).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_read(request, alert_id):
    denied = _require_chapter_admin(request.user)
    if denied:
        return denied

    try:
        alert = mark_alert_read(alert_id, chapter_id=request.user.chapter_id)
    except AlertNotFoundError as exc:
        return Response({'error': 'alert_not_found', 'message': str(exc)},
                        status=status.HTTP_404_NOT_FOUND)

    return Response(AdminAlertSerializer(alert).data)
