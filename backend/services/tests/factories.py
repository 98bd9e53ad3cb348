"""Small builders shared by the engine tests. Every timestamp is explicit."""

from datetime import datetime, timedelta, timezone as dt_timezone

from accounts.models import User
from drivers.models import DriverAssignment
from events.models import Chapter, Event
from rides.models import Ride, RideStatus

BASE_TIME = datetime(2026, 3, 14, 22, 0, tzinfo=dt_timezone.utc)


def minutes(n):
	return timedelta(minutes=n)


def make_chapter(name="Alpha Chapter"):
	return Chapter.objects.create(name=name)


def make_event(chapter, status="active", name="Spring Formal"):
	return Event.objects.create(name=name, chapter=chapter, status=status)


def make_user(username, chapter=None, class_year=1, role="member", **extra):
	return User.objects.create_user(
		username=username,
		password="pass1234",
		chapter=chapter,
		class_year=class_year,
		role=role,
		**extra,
	)


def make_assignment(driver, event, is_active=True, **extra):
	extra.setdefault("last_activity_change_at", BASE_TIME)
	return DriverAssignment.objects.create(driver=driver, event=event, is_active=is_active, **extra)


def make_ride(rider, event, requested_at=BASE_TIME, status=RideStatus.QUEUED, driver=None, **extra):
	extra.setdefault("class_rank", rider.class_year)
	extra.setdefault("is_same_chapter", rider.chapter_id == event.chapter_id)
	return Ride.objects.create(
		rider=rider,
		event=event,
		chapter_id=rider.chapter_id or event.chapter_id,
		status=status,
		driver=driver,
		requested_at=requested_at,
		**extra,
	)
