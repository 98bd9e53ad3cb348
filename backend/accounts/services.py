"""
Read-only roster lookups.

The dispatch core never mutates roster data; it only resolves a user into
the fields the priority rule needs.
"""

from dataclasses import dataclass
from typing import Optional

from accounts.models import User


@dataclass(frozen=True)
class RosterEntry:
    user_id: int
    display_name: str
    class_year: int
    chapter_id: Optional[int]


def get_roster_entry(user: User) -> RosterEntry:
    return RosterEntry(
        user_id=user.pk,
        display_name=user.display_name,
        class_year=user.class_year,
        chapter_id=user.chapter_id,
    )


def get_display_name(user_id: Optional[int], default: str = "Unknown") -> str:
    """Resolve a user id to a display name; unknown ids fall back to ``default``."""
    if user_id is None:
        return default
    user = User.objects.filter(pk=user_id).only("username", "first_name", "last_name").first()
    if user is None:
        return default
    return user.display_name
