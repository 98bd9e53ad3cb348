from django.urls import path
from . import views

app_name = 'monitoring'

urlpatterns = [
    path('', views.unread_alerts, name='unread-alerts'),
    path('<int:alert_id>/read/', views.mark_read, name='mark-alert-read'),
]
