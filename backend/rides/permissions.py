# rides/permissions.py


def can_view_event_queue(user, event):
    """
    Chapter admins and the event's DDs can see the whole ranked queue.
    Everyone else only ever sees their own position.
    """
    if not user or not user.is_authenticated:
        return False
    if getattr(user, "role", None) == "admin" and user.chapter_id == event.chapter_id:
        return True
    return event.driver_assignments.filter(driver=user).exists()
