from django.db import models


class Chapter(models.Model):
    """A chapter (group) that owns events and members."""

    name = models.CharField(max_length=120, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'chapters'
        ordering = ['name']

    def __str__(self):
        return self.name


class Event(models.Model):
    """A live event during which DDs drive riders. Managed outside the dispatch core."""

    STATUS_CHOICES = [
        ('scheduled', 'Scheduled'),
        ('active', 'Active'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    name = models.CharField(max_length=200)
    chapter = models.ForeignKey(
        Chapter,
        on_delete=models.CASCADE,
        related_name='events'
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='scheduled')
    location = models.CharField(max_length=255, blank=True, default='')
    starts_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'events'
        ordering = ['-created_at']

    @property
    def is_active(self):
        return self.status == 'active'

    def __str__(self):
        return f"{self.name} ({self.chapter}) - {self.status}"
