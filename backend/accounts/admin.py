from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from accounts.models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin panel for roster members"""

    list_display = [
        "username",
        "email",
        "role",
        "chapter",
        "class_year",
        "is_active",
        "is_staff",
    ]

    list_filter = [
        "role",
        "chapter",
        "class_year",
        "is_active",
    ]

    search_fields = [
        "username",
        "email",
        "phone_number",
    ]

    ordering = ("username",)

    fieldsets = BaseUserAdmin.fieldsets + (
        (
            "Roster",
            {
                "fields": (
                    "role",
                    "phone_number",
                    "chapter",
                    "class_year",
                )
            },
        ),
    )

    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        (
            "Roster",
            {
                "fields": (
                    "role",
                    "chapter",
                    "class_year",
                )
            },
        ),
    )
