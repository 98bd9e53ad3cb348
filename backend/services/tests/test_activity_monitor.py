from unittest.mock import patch

from django.test import TestCase

from drivers.models import DriverAssignment
from monitoring.models import AdminAlert, AlertKind
from rides.models import RideStatus
from services.config import DispatchConfig
from services.monitoring import (
	check_prolonged_inactivity,
	monitor_active_events,
	record_toggle,
	reset_expired_toggle_windows,
	set_driver_active,
)
from services.ride_management import DriverAssignmentNotFoundError
from .factories import (
	BASE_TIME, minutes, make_assignment, make_chapter, make_event, make_ride, make_user,
)

CONFIG = DispatchConfig()


class ToggleAbuseTests(TestCase):
	def setUp(self):
		self.chapter = make_chapter()
		self.event = make_event(self.chapter)
		self.driver = make_user("dd", self.chapter, class_year=4, first_name="Casey", last_name="Lee")
		self.assignment = make_assignment(self.driver, self.event)

	def toggle(self, times, start=BASE_TIME, step=1):
		alerts = []
		for i in range(times):
			alert = record_toggle(self.assignment, now=start + minutes(i * step), config=CONFIG)
			if alert is not None:
				alerts.append(alert)
		return alerts

	def test_four_toggles_raise_nothing(self):
		self.assertEqual(self.toggle(4), [])
		self.assertEqual(AdminAlert.objects.count(), 0)
		self.assertEqual(self.assignment.inactive_toggles, 4)

	def test_six_toggles_in_window_raise_one_alert(self):
		alerts = self.toggle(6)

		self.assertEqual(len(alerts), 1)
		alert = alerts[0]
		self.assertEqual(alert.kind, AlertKind.DD_TOGGLE_ABUSE)
		self.assertEqual(alert.chapter_id, self.chapter.id)
		self.assertEqual(alert.driver_id, self.driver.id)
		self.assertIn("Casey Lee has toggled inactive 6 times", alert.message)

	def test_one_alert_per_window(self):
		alerts = self.toggle(9)
		self.assertEqual(len(alerts), 1)

		self.assignment.refresh_from_db()
		self.assertEqual(self.assignment.inactive_toggles, 9)
		self.assertTrue(self.assignment.toggle_alert_sent)

	def test_window_is_anchored_at_first_toggle(self):
		# 5 toggles spread over 25 minutes, then one more after the window closed
		self.toggle(5, step=5)
		alert = record_toggle(self.assignment, now=BASE_TIME + minutes(31), config=CONFIG)

		self.assertIsNone(alert)
		self.assignment.refresh_from_db()
		self.assertEqual(self.assignment.inactive_toggles, 1)
		self.assertEqual(self.assignment.toggle_window_started_at, BASE_TIME + minutes(31))

	def test_new_window_can_alert_again(self):
		self.toggle(6)
		alerts = self.toggle(6, start=BASE_TIME + minutes(45))
		self.assertEqual(len(alerts), 1)
		self.assertEqual(AdminAlert.objects.filter(kind=AlertKind.DD_TOGGLE_ABUSE).count(), 2)

	def test_reset_expired_windows(self):
		self.toggle(3)
		fresh = make_assignment(make_user("dd2", self.chapter), self.event)
		record_toggle(fresh, now=BASE_TIME + minutes(20), config=CONFIG)

		reset = reset_expired_toggle_windows(now=BASE_TIME + minutes(35), config=CONFIG)

		self.assertEqual(reset, 1)
		self.assignment.refresh_from_db()
		fresh.refresh_from_db()
		self.assertEqual(self.assignment.inactive_toggles, 0)
		self.assertIsNone(self.assignment.toggle_window_started_at)
		self.assertEqual(fresh.inactive_toggles, 1)


class SetDriverActiveTests(TestCase):
	def setUp(self):
		self.chapter = make_chapter()
		self.event = make_event(self.chapter)
		self.driver = make_user("dd", self.chapter)
		self.assignment = make_assignment(self.driver, self.event)

	def test_going_inactive_counts_a_toggle(self):
		result = set_driver_active(self.driver, self.event.id, False, now=BASE_TIME, config=CONFIG)

		self.assertTrue(result.changed)
		self.assignment.refresh_from_db()
		self.assertFalse(self.assignment.is_active)
		self.assertEqual(self.assignment.last_inactive_at, BASE_TIME)
		self.assertEqual(self.assignment.last_activity_change_at, BASE_TIME)
		self.assertEqual(self.assignment.inactive_toggles, 1)

	def test_going_active_does_not_count(self):
		set_driver_active(self.driver, self.event.id, False, now=BASE_TIME, config=CONFIG)
		with patch("services.matching.schedule_dispatch") as mock_schedule:
			result = set_driver_active(self.driver, self.event.id, True, now=BASE_TIME + minutes(2), config=CONFIG)

		self.assertTrue(result.changed)
		mock_schedule.assert_called_once_with(self.event.id)
		self.assignment.refresh_from_db()
		self.assertTrue(self.assignment.is_active)
		self.assertEqual(self.assignment.last_active_at, BASE_TIME + minutes(2))
		self.assertEqual(self.assignment.inactive_toggles, 1)

	def test_same_state_is_a_no_op(self):
		result = set_driver_active(self.driver, self.event.id, True, now=BASE_TIME, config=CONFIG)

		self.assertFalse(result.changed)
		self.assignment.refresh_from_db()
		self.assertIsNone(self.assignment.last_active_at)

	def test_six_flips_to_inactive_alert(self):
		alerts = []
		for i in range(6):
			result = set_driver_active(self.driver, self.event.id, False, now=BASE_TIME + minutes(2 * i), config=CONFIG)
			if result.alert:
				alerts.append(result.alert)
			set_driver_active(self.driver, self.event.id, True, now=BASE_TIME + minutes(2 * i + 1), config=CONFIG)

		self.assertEqual(len(alerts), 1)

	def test_not_a_driver_for_event(self):
		with self.assertRaises(DriverAssignmentNotFoundError):
			set_driver_active(make_user("rider", self.chapter), self.event.id, False, now=BASE_TIME)

	def test_toggling_never_touches_rides(self):
		ride = make_ride(make_user("rider", self.chapter), self.event,
						 status=RideStatus.ASSIGNED, driver=self.driver)
		set_driver_active(self.driver, self.event.id, False, now=BASE_TIME, config=CONFIG)

		ride.refresh_from_db()
		self.assertEqual(ride.status, RideStatus.ASSIGNED)
		self.assertEqual(ride.driver, self.driver)


class ProlongedInactivityTests(TestCase):
	def setUp(self):
		self.chapter = make_chapter()
		self.event = make_event(self.chapter)
		self.driver = make_user("dd", self.chapter)
		self.assignment = make_assignment(
			self.driver, self.event, is_active=False, last_inactive_at=BASE_TIME,
		)

	def test_alert_after_threshold(self):
		alert = check_prolonged_inactivity(self.assignment, now=BASE_TIME + minutes(16), config=CONFIG)

		self.assertIsNotNone(alert)
		self.assertEqual(alert.kind, AlertKind.DD_PROLONGED_INACTIVITY)
		self.assertIn("inactive for 16 minutes", alert.message)
		self.assignment.refresh_from_db()
		self.assertEqual(self.assignment.inactivity_alerted_at, BASE_TIME + minutes(16))

	def test_not_before_threshold(self):
		self.assertIsNone(check_prolonged_inactivity(self.assignment, now=BASE_TIME + minutes(15), config=CONFIG))

	def test_one_alert_per_episode(self):
		check_prolonged_inactivity(self.assignment, now=BASE_TIME + minutes(16), config=CONFIG)
		stale_copy = DriverAssignment.objects.select_related("event").get(pk=self.assignment.pk)
		stale_copy.inactivity_alerted_at = None  # a concurrent checker that read before the claim

		self.assertIsNone(check_prolonged_inactivity(stale_copy, now=BASE_TIME + minutes(40), config=CONFIG))
		self.assertEqual(AdminAlert.objects.count(), 1)

	def test_new_episode_alerts_again(self):
		check_prolonged_inactivity(self.assignment, now=BASE_TIME + minutes(16), config=CONFIG)
		set_driver_active(self.driver, self.event.id, True, now=BASE_TIME + minutes(20), config=CONFIG)
		set_driver_active(self.driver, self.event.id, False, now=BASE_TIME + minutes(21), config=CONFIG)

		assignment = DriverAssignment.objects.select_related("event").get(pk=self.assignment.pk)
		alert = check_prolonged_inactivity(assignment, now=BASE_TIME + minutes(40), config=CONFIG)

		self.assertIsNotNone(alert)
		self.assertEqual(AdminAlert.objects.filter(kind=AlertKind.DD_PROLONGED_INACTIVITY).count(), 2)

	def test_only_during_active_events(self):
		self.event.status = "completed"
		self.event.save()
		self.assignment.refresh_from_db()
		self.assertIsNone(check_prolonged_inactivity(self.assignment, now=BASE_TIME + minutes(60), config=CONFIG))

	def test_active_driver_is_never_flagged(self):
		self.assignment.is_active = True
		self.assignment.save()
		self.assertIsNone(check_prolonged_inactivity(self.assignment, now=BASE_TIME + minutes(60), config=CONFIG))

	def test_periodic_pass(self):
		quiet = make_assignment(make_user("dd2", self.chapter), self.event,
								is_active=False, last_inactive_at=BASE_TIME + minutes(10))

		report = monitor_active_events(now=BASE_TIME + minutes(20), config=CONFIG)

		self.assertEqual([a.driver_id for a in report.alerts], [self.driver.id])
		quiet.refresh_from_db()
		self.assertIsNone(quiet.inactivity_alerted_at)
