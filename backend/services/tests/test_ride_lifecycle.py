from unittest.mock import patch

from django.test import TestCase

from drivers.models import DriverAssignment
from monitoring.models import AdminAlert, AlertKind
from rides.models import Ride, RideStatus
from services.config import DispatchConfig
from services.matching import assign_ride
from services.monitoring import check_unassigned_emergency, format_address
from services.ride_management import (
	ActiveRideExistsError,
	EventNotActiveError,
	InvalidRideRequestError,
	RideNotAvailableError,
	RideNotFoundError,
	cancel_ride,
	complete_ride,
	get_current_rider_ride,
	get_driver_active_rides,
	request_ride,
	start_enroute,
)
from .factories import (
	BASE_TIME, minutes, make_assignment, make_chapter, make_event, make_ride, make_user,
)

CONFIG = DispatchConfig()


class RequestRideTests(TestCase):
	def setUp(self):
		self.chapter = make_chapter()
		self.other_chapter = make_chapter("Beta Chapter")
		self.event = make_event(self.chapter)
		self.rider = make_user("rider", self.chapter, class_year=3)

	def test_request_snapshots_roster_and_priority(self):
		result = request_ride(self.rider, self.event.id, pickup_address="Main Hall", now=BASE_TIME, config=CONFIG)

		ride = result.ride
		self.assertTrue(result.success)
		self.assertEqual(ride.status, RideStatus.QUEUED)
		self.assertEqual(ride.class_rank, 3)
		self.assertTrue(ride.is_same_chapter)
		self.assertEqual(ride.chapter_id, self.chapter.id)
		self.assertEqual(ride.priority, 30.0)
		self.assertEqual(ride.requested_at, BASE_TIME)
		self.assertEqual(result.extra["queue_position"], 1)

	def test_cross_chapter_rider(self):
		guest = make_user("guest", self.other_chapter, class_year=4)
		result = request_ride(guest, self.event.id, now=BASE_TIME, config=CONFIG)

		self.assertFalse(result.ride.is_same_chapter)
		self.assertEqual(result.ride.chapter_id, self.other_chapter.id)
		self.assertEqual(result.ride.priority, 0.0)

	def test_queue_position_reflects_other_riders(self):
		senior = make_user("senior", self.chapter, class_year=4)
		make_ride(senior, self.event, requested_at=BASE_TIME - minutes(5))

		result = request_ride(self.rider, self.event.id, now=BASE_TIME, config=CONFIG)

		self.assertEqual(result.extra["queue_position"], 2)

	def test_event_must_be_active(self):
		scheduled = make_event(self.chapter, status="scheduled", name="Next Week")
		with self.assertRaises(EventNotActiveError):
			request_ride(self.rider, scheduled.id, now=BASE_TIME)
		with self.assertRaises(EventNotActiveError):
			request_ride(self.rider, 999999, now=BASE_TIME)

	def test_rider_needs_a_chapter(self):
		loner = make_user("loner", None)
		with self.assertRaises(InvalidRideRequestError):
			request_ride(loner, self.event.id, now=BASE_TIME)

	def test_invalid_class_year(self):
		self.rider.class_year = 7
		self.rider.save()
		with self.assertRaises(InvalidRideRequestError):
			request_ride(self.rider, self.event.id, now=BASE_TIME)

	def test_one_active_ride_per_rider(self):
		request_ride(self.rider, self.event.id, now=BASE_TIME, config=CONFIG)
		with self.assertRaises(ActiveRideExistsError):
			request_ride(self.rider, self.event.id, now=BASE_TIME + minutes(1), config=CONFIG)
		self.assertEqual(Ride.objects.filter(rider=self.rider).count(), 1)

	def test_schedules_dispatch(self):
		with patch("services.ride_management.ride_lifecycle.schedule_dispatch") as mock_schedule:
			request_ride(self.rider, self.event.id, now=BASE_TIME, config=CONFIG)
		mock_schedule.assert_called_once_with(self.event.id)

	def test_dispatch_runs_after_commit(self):
		with patch("rides.tasks.dispatch_event_task.delay") as mock_delay:
			with self.captureOnCommitCallbacks(execute=True):
				request_ride(self.rider, self.event.id, now=BASE_TIME, config=CONFIG)
		mock_delay.assert_called_once_with(self.event.id)


class EmergencyRideTests(TestCase):
	def setUp(self):
		self.chapter = make_chapter()
		self.event = make_event(self.chapter, name="Homecoming")
		self.rider = make_user("rider", self.chapter, class_year=1, first_name="Sam", last_name="Park")

	def test_emergency_goes_first_and_alerts_admins(self):
		senior = make_user("senior", self.chapter, class_year=4)
		make_ride(senior, self.event, requested_at=BASE_TIME - minutes(30))

		result = request_ride(
			self.rider, self.event.id,
			pickup_address="221B Baker Street, Marylebone, London, United Kingdom NW1 6XE",
			is_emergency=True, emergency_reason="Feeling unsafe",
			now=BASE_TIME, config=CONFIG,
		)

		self.assertEqual(result.ride.priority, 9999.0)
		self.assertEqual(result.extra["queue_position"], 1)

		alert = AdminAlert.objects.get(kind=AlertKind.EMERGENCY_REQUEST)
		self.assertEqual(alert.chapter_id, self.chapter.id)
		self.assertEqual(alert.ride_id, result.ride.id)
		self.assertIn("Event: Homecoming", alert.message)
		self.assertIn("Rider: Sam Park", alert.message)
		self.assertIn("Reason: Feeling unsafe", alert.message)
		self.assertIn("Location: 221B Baker Street, Marylebone, London, United K...", alert.message)

	def test_format_address(self):
		self.assertEqual(format_address(""), "Unknown location")
		self.assertEqual(format_address("Short St"), "Short St")
		self.assertEqual(len(format_address("x" * 80)), 50)

	def test_unassigned_emergency_escalates_once(self):
		ride = request_ride(self.rider, self.event.id, is_emergency=True, emergency_reason="Stranded",
							now=BASE_TIME, config=CONFIG).ride

		first = check_unassigned_emergency(ride.id, now=BASE_TIME + minutes(2))
		second = check_unassigned_emergency(ride.id, now=BASE_TIME + minutes(3))

		self.assertIsNotNone(first)
		self.assertEqual(first.kind, AlertKind.EMERGENCY_UNASSIGNED)
		self.assertIn("no DD for 2 minute(s)", first.message)
		self.assertIsNone(second)

	def test_assigned_emergency_is_not_escalated(self):
		driver = make_user("dd", self.chapter)
		make_assignment(driver, self.event)
		ride = request_ride(self.rider, self.event.id, is_emergency=True, emergency_reason="Stranded",
							now=BASE_TIME, config=CONFIG).ride
		assign_ride(ride.id, driver.id, now=BASE_TIME + minutes(1))

		self.assertIsNone(check_unassigned_emergency(ride.id, now=BASE_TIME + minutes(2)))
		self.assertFalse(AdminAlert.objects.filter(kind=AlertKind.EMERGENCY_UNASSIGNED).exists())


class RideProgressTests(TestCase):
	def setUp(self):
		self.chapter = make_chapter()
		self.event = make_event(self.chapter)
		self.rider = make_user("rider", self.chapter, class_year=2)
		self.driver = make_user("dd", self.chapter, class_year=4)
		self.other_driver = make_user("dd_other", self.chapter, class_year=4)
		self.assignment = make_assignment(self.driver, self.event)
		self.ride = make_ride(self.rider, self.event, requested_at=BASE_TIME)
		assign_ride(self.ride.id, self.driver.id, now=BASE_TIME + minutes(3))

	def test_full_lifecycle(self):
		enroute = start_enroute(self.driver, self.ride.id, now=BASE_TIME + minutes(5))
		self.assertEqual(enroute.ride.status, RideStatus.ENROUTE)
		self.assertEqual(enroute.ride.enroute_at, BASE_TIME + minutes(5))

		done = complete_ride(self.driver, self.ride.id, now=BASE_TIME + minutes(20))
		self.assertEqual(done.ride.status, RideStatus.COMPLETED)
		self.assertEqual(done.ride.completed_at, BASE_TIME + minutes(20))

		ride = done.ride
		self.assertLess(ride.requested_at, ride.assigned_at)
		self.assertLess(ride.assigned_at, ride.enroute_at)
		self.assertLess(ride.enroute_at, ride.completed_at)
		self.assertIsNone(ride.cancelled_at)

		self.assignment.refresh_from_db()
		self.assertEqual(self.assignment.total_rides_completed, 1)

	def test_cannot_complete_before_enroute(self):
		with self.assertRaises(RideNotAvailableError):
			complete_ride(self.driver, self.ride.id, now=BASE_TIME + minutes(5))

	def test_only_the_assigned_driver(self):
		make_assignment(self.other_driver, self.event)
		with self.assertRaises(RideNotFoundError):
			start_enroute(self.other_driver, self.ride.id, now=BASE_TIME + minutes(5))

	def test_completed_ride_is_immutable(self):
		start_enroute(self.driver, self.ride.id, now=BASE_TIME + minutes(5))
		complete_ride(self.driver, self.ride.id, now=BASE_TIME + minutes(20))

		with self.assertRaises(RideNotAvailableError):
			cancel_ride(self.ride.id, rider=self.rider, now=BASE_TIME + minutes(21))
		with self.assertRaises(RideNotAvailableError):
			start_enroute(self.driver, self.ride.id, now=BASE_TIME + minutes(21))

	def test_cancel_assigned_ride(self):
		result = cancel_ride(self.ride.id, rider=self.rider, reason="Got a lift", now=BASE_TIME + minutes(4))

		self.assertTrue(result.extra["was_assigned"])
		self.assertEqual(result.ride.status, RideStatus.CANCELLED)
		self.assertEqual(result.ride.cancellation_reason, "Got a lift")
		self.assertIsNone(result.ride.completed_at)

	def test_driver_cannot_move_a_cancelled_ride(self):
		cancel_ride(self.ride.id, rider=self.rider, now=BASE_TIME + minutes(4))

		with self.assertRaisesMessage(RideNotAvailableError, "Ride is already cancelled"):
			start_enroute(self.driver, self.ride.id, now=BASE_TIME + minutes(5))

	@patch("rides.tasks.dispatch_event_task.delay")
	@patch("realtime.notifications.notify_driver_event")
	@patch("realtime.notifications.notify_rider_event")
	def test_rider_and_driver_hear_about_progress(self, mock_rider, mock_driver, mock_delay):
		with self.captureOnCommitCallbacks(execute=True):
			start_enroute(self.driver, self.ride.id, now=BASE_TIME + minutes(5))
		with self.captureOnCommitCallbacks(execute=True):
			complete_ride(self.driver, self.ride.id, now=BASE_TIME + minutes(20))

		self.assertEqual([c.args[0] for c in mock_rider.call_args_list], ["ride_enroute", "ride_completed"])
		self.assertEqual([c.args[0] for c in mock_driver.call_args_list], ["ride_enroute", "ride_completed"])
		for call in mock_driver.call_args_list:
			self.assertEqual(call.args[2], self.driver.id)
		mock_delay.assert_called_once_with(self.event.id)

	def test_cancel_enroute_ride_is_rejected(self):
		start_enroute(self.driver, self.ride.id, now=BASE_TIME + minutes(5))
		with self.assertRaises(RideNotAvailableError):
			cancel_ride(self.ride.id, rider=self.rider, now=BASE_TIME + minutes(6))

	def test_cannot_cancel_someone_elses_ride(self):
		stranger = make_user("stranger", self.chapter)
		with self.assertRaises(RideNotFoundError):
			cancel_ride(self.ride.id, rider=stranger, now=BASE_TIME + minutes(4))

	def test_queries(self):
		self.assertEqual(get_current_rider_ride(self.rider), self.ride)
		self.assertEqual(get_driver_active_rides(self.driver, event_id=self.event.id), [self.ride])
		self.assertEqual(get_driver_active_rides(self.other_driver), [])

		start_enroute(self.driver, self.ride.id, now=BASE_TIME + minutes(5))
		complete_ride(self.driver, self.ride.id, now=BASE_TIME + minutes(20))

		self.assertIsNone(get_current_rider_ride(self.rider))
		self.assertEqual(get_driver_active_rides(self.driver), [])
		self.assertEqual(DriverAssignment.objects.get(pk=self.assignment.pk).total_rides_completed, 1)
