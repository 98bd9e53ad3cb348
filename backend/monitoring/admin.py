from django.contrib import admin
from .models import AdminAlert


@admin.register(AdminAlert)
class AdminAlertAdmin(admin.ModelAdmin):
    list_display = ['id', 'kind', 'chapter', 'event', 'driver', 'ride', 'is_read', 'created_at']
    list_filter = ['kind', 'is_read', 'chapter']
    search_fields = ['message', 'driver__username']
    readonly_fields = ['kind', 'message', 'chapter', 'event', 'driver', 'ride', 'created_at']
    date_hierarchy = 'created_at'
