from django.contrib import admin
from django.urls import path, include

from .views import health_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path("health/", health_check), # Health check endpoint

    # DD APIs (availability toggle, assigned rides)
    path('api/driver/', include('drivers.urls')),

    # Ride endpoints (request, cancel, queue position, DD actions, event queue)
    path('api/rides/', include('rides.urls')),

    # Admin alerts for chapter admins
    path('api/alerts/', include('monitoring.urls')),
]
