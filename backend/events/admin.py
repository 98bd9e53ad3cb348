from django.contrib import admin
from events.models import Chapter, Event


@admin.register(Chapter)
class ChapterAdmin(admin.ModelAdmin):
    list_display = ["id", "name", "created_at"]
    search_fields = ["name"]


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    """Events are created elsewhere; admin is read-mostly for operators."""

    list_display = ["id", "name", "chapter", "status", "starts_at", "created_at"]
    list_filter = ["status", "chapter"]
    search_fields = ["name", "chapter__name"]
