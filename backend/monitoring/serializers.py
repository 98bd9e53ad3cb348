from rest_framework import serializers

from .models import AdminAlert


class AdminAlertSerializer(serializers.ModelSerializer):
    driver_name = serializers.SerializerMethodField()

    class Meta:
        model = AdminAlert
        fields = ['id', 'kind', 'message', 'chapter', 'event', 'driver', 'driver_name',
                  'ride', 'is_read', 'read_at', 'created_at']
        read_only_fields = fields

    def get_driver_name(self, obj):
        return obj.driver.display_name if obj.driver_id else None
