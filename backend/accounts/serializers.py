from rest_framework import serializers
from .models import User


class UserBasicSerializer(serializers.ModelSerializer):
    """Lite roster info embedded in ride and alert payloads."""
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "display_name",
            "phone_number",
            "chapter",
            "class_year",
        ]
        read_only_fields = fields
