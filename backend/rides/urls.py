from django.urls import path
from . import views

app_name = 'rides'

urlpatterns = [
    # Rider APIs
    path('rider/request/', views.create_ride_request, name='create-ride'),
    path('rider/current/', views.get_current_ride, name='current-ride'),
    path('rider/<int:ride_id>/cancel/', views.cancel_ride_view, name='cancel-ride'),
    path('<int:ride_id>/position/', views.ride_position, name='ride-position'),

    # DD Ride Actions
    path('driver/<int:ride_id>/enroute/', views.start_ride_enroute, name='enroute-ride'),
    path('driver/<int:ride_id>/complete/', views.complete_ride_view, name='complete-ride'),

    # Event queue
    path('events/<int:event_id>/queue/', views.event_queue, name='event-queue'),
    path('events/<int:event_id>/stats/', views.event_queue_stats, name='event-queue-stats'),
]
