from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """Chapter member. Roster data (chapter, class year) is owned by the identity service."""
    ROLE_CHOICES = [
        ('admin', 'Admin'),
        ('member', 'Member'),
    ]

    CLASS_YEAR_CHOICES = [
        (1, 'Freshman'),
        (2, 'Sophomore'),
        (3, 'Junior'),
        (4, 'Senior'),
    ]

    # Role & basic info
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='member')
    phone_number = models.CharField(max_length=20, blank=True, default='')

    # Roster
    chapter = models.ForeignKey(
        'events.Chapter',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='members'
    )
    class_year = models.PositiveSmallIntegerField(choices=CLASS_YEAR_CHOICES, default=1)

    class Meta:
        db_table = 'users'

    @property
    def display_name(self):
        return self.get_full_name() or self.username

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"
